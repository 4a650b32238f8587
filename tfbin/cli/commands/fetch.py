"""
Fetch command implementation.

Resolves a provider build (cache first, then registry), and writes the
binary into an output directory.
"""

import contextlib
import logging
import shutil
import stat

from tfbin.cli.utils import (
    build_cache,
    build_query,
    build_registry,
    default_output_dir,
    load_cli_config,
    print_error,
)
from tfbin.core.download import DownloadProgress, format_progress
from tfbin.core.exceptions import TfbinError

logger = logging.getLogger(__name__)


def show_progress(progress: DownloadProgress):
    """Report archive download progress."""
    logger.info(f"  {format_progress(progress)}")


def run(args) -> int:
    """
    Run the fetch command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    try:
        config = load_cli_config(args)
        cache = build_cache(args, config)
        registry = build_registry(config, cache, progress_callback=show_progress)
        query = build_query(args, config, registry.client)

        output_dir = args.output or default_output_dir(query)
        output_dir = output_dir.resolve()

        lock = cache.lock() if cache is not None else contextlib.nullcontext()
        with lock:
            meta = registry.search(query)
            with registry.provider_meta_reader(meta) as artifact:
                output_dir.mkdir(parents=True, exist_ok=True)
                local_path = output_dir / artifact.filename
                with open(local_path, "wb") as out:
                    shutil.copyfileobj(artifact.stream, out)
        mode = local_path.stat().st_mode
        local_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except TfbinError as e:
        print_error(str(e))
        return 1
    except OSError as e:
        print_error("Failed to write provider binary", str(e))
        return 1

    logger.debug(f"Resolved {meta}")
    print(f"Wrote provider plugin to local path {local_path}")
    print(
        "Where a provider plugin path is required, use the directory "
        f"containing the binary:\n{output_dir}"
    )
    return 0
