"""
Cache command implementation.

Lists the providers stored in the local provider cache.
"""

import logging

from tfbin.cli.utils import build_cache, load_cli_config, print_error
from tfbin.core.exceptions import TfbinError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the cache command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    if getattr(args, "cache_command", None) != "list":
        print_error("No cache sub-command specified", "Use: tfbin cache list")
        return 1

    try:
        config = load_cli_config(args)
        cache = build_cache(args, config)
        if cache is None:
            print_error("Provider cache is disabled in configuration")
            return 1
        entries = cache.entries()
    except TfbinError as e:
        print_error(str(e))
        return 1

    logger.debug(f"{len(entries)} providers in {cache.base_dir}")
    for meta in entries:
        print(meta)
    return 0
