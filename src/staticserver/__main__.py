"""
=============================================================================
COMMAND LINE INTERFACE
=============================================================================

    python -m staticserver ./www
    python -m staticserver ./www --port 3000 --workers 8
    HTTP_ROOT_DIR=./www python -m staticserver

Environment variables (see ServerConfig.from_env) provide the defaults;
command line arguments override them.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .access_log import LOG_FORMATS
from .config import ServerConfig
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="staticserver",
        description="Serve the files of a directory over HTTP/1.1",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m staticserver ./www                    # http://127.0.0.1:8000/
  python -m staticserver ./www --port 3000        # Custom port
  python -m staticserver ./www --host 0.0.0.0     # Listen on all interfaces
  python -m staticserver ./www --log-format json  # JSON access log
        """,
    )

    parser.add_argument(
        "root_dir",
        nargs="?",
        default=None,
        help="Directory to serve (default: $HTTP_ROOT_DIR)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8000)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION HANDLING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 16)",
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Socket read/write deadline in seconds (default: 30)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING AND IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--server-name",
        default=None,
        help="Value of the Server response header",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"staticserver {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Start from the environment, then apply whatever was given on the command line."""
    config = ServerConfig.from_env()

    overrides = {
        "root_dir": args.root_dir,
        "host": args.host,
        "port": args.port,
        "max_workers": args.workers,
        "timeout": args.timeout,
        "log_level": args.log_level,
        "log_format": args.log_format,
        "server_name": args.server_name,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(config, name, value)

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status.
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        # Malformed HTTP_PORT / HTTP_WORKERS / HTTP_TIMEOUT
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not config.root_dir:
        print("Pass a folder to be served", file=sys.stderr)
        return 1

    try:
        server = HTTPServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
