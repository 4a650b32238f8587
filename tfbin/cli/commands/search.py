"""
Search command implementation.

Prints the provider build a query resolves to, without downloading it.
"""

import logging

from tfbin.cli.utils import (
    build_cache,
    build_query,
    build_registry,
    load_cli_config,
    print_error,
)
from tfbin.core.exceptions import TfbinError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the search command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 if a build matched)
    """
    try:
        config = load_cli_config(args)
        registry = build_registry(config, build_cache(args, config))
        query = build_query(args, config, registry.client)
        meta = registry.search(query)
    except TfbinError as e:
        print_error(str(e))
        return 1

    print(meta)
    return 0
