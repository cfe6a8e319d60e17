"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m webcache                              # ./serve and ./error
    python -m webcache --content ./public --port 3000
    python -m webcache --errors ./pages/errors --redirect-status 404
    webcache --host 0.0.0.0 --workers 16            # installed script

Exit status is 1 when the content cannot be loaded or the port cannot
be bound; nothing is served in that case.

=============================================================================
"""

import argparse
import sys
from typing import Optional

from . import __version__
from .config import ServerConfig
from .errors import CacheLoadError
from .server import WebCacheServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webcache",
        description="Serve a directory of static files from memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webcache                             # serve ./serve on :8080
  python -m webcache --content ./public -p 3000  # other directory and port
  python -m webcache --errors ./error-pages      # custom error pages
  python -m webcache --redirect-status 404       # 404 instead of 303
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=8,
        help="Number of worker threads (default: 8)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--content", "-c",
        default="serve",
        help="Directory to serve (default: ./serve)",
    )
    parser.add_argument(
        "--errors", "-e",
        default="error",
        help="Directory of custom error pages such as 404.html (default: ./error)",
    )
    parser.add_argument(
        "--index",
        default="index.html",
        help="File name served for its directory (default: index.html)",
    )
    parser.add_argument(
        "--redirect-status",
        type=int,
        choices=[303, 404],
        default=303,
        help="Status of the redirect sent for unknown paths (default: 303)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"webcache {__version__}",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed arguments into a ServerConfig."""
    return ServerConfig(
        host=args.host,
        port=args.port,
        workers=args.workers,
        content_dir=args.content,
        error_dir=args.errors,
        index_file=args.index,
        redirect_status=args.redirect_status,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        server = WebCacheServer(config_from_args(args))
        server.run()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1
    except CacheLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
