# -*- coding: utf-8 -*-
"""Location: ./mcphub/__main__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

MCP Hub command line entry point.

Serves the ``search`` and ``exec`` meta-tools over stdio on top of a tool
directory implementation named as ``module:attribute``. The attribute may be a
ready directory object, a class or a zero-argument factory.

Usage:
    python -m mcphub --directory mypackage.tools:build_directory
    HUB_DIRECTORY=mypackage.tools:Directory mcp-hub
"""

# Standard
import argparse
import asyncio
import importlib
import inspect
from typing import Optional, Sequence

# First-Party
from mcphub.config import settings
from mcphub.hub.directory import ToolDirectory
from mcphub.hub.server import HubServer
from mcphub.services.logging_service import LoggingService


def load_directory(target: str) -> ToolDirectory:
    """Import the tool directory named by ``target``.

    Args:
        target: ``module:attribute`` reference.

    Returns:
        The directory, instantiated when the attribute is a class or function.

    Raises:
        ValueError: If ``target`` is not of the form ``module:attribute``.

    Examples:
        >>> load_directory("collections:OrderedDict")
        OrderedDict()
        >>> load_directory("collections")
        Traceback (most recent call last):
        ...
        ValueError: Directory must be given as 'module:attribute', got 'collections'
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Directory must be given as 'module:attribute', got {target!r}")
    directory = getattr(importlib.import_module(module_name), attribute)
    if inspect.isclass(directory) or inspect.isfunction(directory):
        directory = directory()
    return directory


async def run_hub(directory: ToolDirectory) -> None:
    """Initialize logging and serve the hub over stdio until the client leaves.

    Args:
        directory: Upstream tool directory.
    """
    logging_service = LoggingService()
    await logging_service.initialize()
    try:
        await HubServer(directory).run_stdio()
    finally:
        await logging_service.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for the hub server.

    Args:
        argv: Command line arguments, ``sys.argv[1:]`` by default.
    """
    parser = argparse.ArgumentParser(
        description="Serve the MCP Hub search/exec meta-tools over stdio",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m mcphub --directory mypackage.tools:build_directory
        """,
    )
    parser.add_argument("--directory", default=settings.hub_directory, help="Tool directory as module:attribute (default: $HUB_DIRECTORY)")
    args = parser.parse_args(argv)

    if not args.directory:
        parser.error("a tool directory is required (--directory or HUB_DIRECTORY)")
    try:
        directory = load_directory(args.directory)
    except (ValueError, ImportError, AttributeError) as exc:
        parser.error(str(exc))

    asyncio.run(run_hub(directory))


if __name__ == "__main__":
    main()
