#!/usr/bin/env python3
"""
Mermaid Studio - Entry Point

Subcommands:
- serve: HTTP API for the editor UI (default)
- mcp: MCP server over stdio for AI editors
"""

import argparse
import logging
import sys

from pydantic import ValidationError as SettingsValidationError

from . import __version__
from .core.config import Settings
from .core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _common_options() -> argparse.ArgumentParser:
    # SUPPRESS lets the options appear before or after the subcommand
    # without the subparser's defaults overwriting earlier values.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--data-dir",
        type=str,
        default=argparse.SUPPRESS,
        help="Directory for diagrams/ and settings.json (default: ~/.mermaid-studio)"
    )
    common.add_argument(
        "--log-level",
        type=str,
        default=argparse.SUPPRESS,
        help="Logging level (default: INFO)"
    )
    return common


def _build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog="mermaid-studio",
        parents=[common],
        description="Author, version, and AI-generate Mermaid diagrams",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the HTTP API on the default port
  mermaid-studio serve

  # Keep diagrams in a custom folder
  mermaid-studio serve --data-dir ~/Diagrams --port 9000

  # Run as an MCP server for Claude Desktop / Cursor
  mermaid-studio mcp
"""
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", parents=[common], help="Run the HTTP API")
    serve.add_argument("--host", type=str, default=None, help="Host to bind (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=None, help="Port to bind (default: 8765)")

    sub.add_parser("mcp", parents=[common], help="Run the MCP server over stdio")
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides = {}
    if getattr(args, "data_dir", None):
        overrides["data_dir"] = args.data_dir
    if getattr(args, "log_level", None):
        overrides["log_level"] = args.log_level
    if getattr(args, "host", None):
        overrides["host"] = args.host
    if getattr(args, "port", None):
        overrides["port"] = args.port
    return Settings(**overrides)


def main(argv=None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_settings(args)
    except SettingsValidationError as e:
        print(f"Error: invalid configuration:\n{e}", file=sys.stderr)
        sys.exit(2)

    setup_logging(log_level=config.log_level, log_format=config.log_format)

    if args.command == "mcp":
        from . import mcp_server
        from .commands import build_command_surface

        mcp_server.configure(build_command_surface(config))
        mcp_server.main()
        return

    import uvicorn
    from .main import create_app

    logger.info("Starting HTTP server on %s:%s", config.host, config.port)
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
