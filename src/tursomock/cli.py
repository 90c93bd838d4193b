"""Command-line entry point: ``tursomock serve`` and ``tursomock reset``.

Usage::

    tursomock serve --port 8080 --db-dir ./db
    tursomock reset --db-dir ./test-db --force
"""

from __future__ import annotations

import argparse
import sys

from tursomock import __version__
from tursomock.config import Settings
from tursomock.services.database_registry import DatabaseRegistry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tursomock",
        description="Local mock of the Turso database platform for development and testing.",
    )
    parser.add_argument("--version", action="version", version=f"tursomock v{__version__}")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Start the mock server")
    serve.add_argument("--port", "-p", type=int, default=None, help="Port to listen on (default: 8080)")
    serve.add_argument("--host", default=None, help="Interface to bind (default: 0.0.0.0)")
    serve.add_argument("--db-dir", default=None, help="Directory for database files (default: ./db)")
    serve.add_argument("--log-level", default=None, help="Minimum log level (default: INFO)")

    reset = sub.add_parser("reset", help="Delete all databases")
    reset.add_argument("--db-dir", default=None, help="Directory for database files (default: ./db)")
    reset.add_argument("--force", "-f", action="store_true", help="Skip confirmation prompt")

    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment-derived settings with any flags given on the command line applied on top."""
    overrides = {
        "port": getattr(args, "port", None),
        "host": getattr(args, "host", None),
        "db_dir": getattr(args, "db_dir", None),
        "log_level": getattr(args, "log_level", None),
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def confirm(message: str) -> bool:
    """Ask a yes/no question on stdin. Anything but y/yes means no."""
    try:
        answer = input(f"{message} (y/N): ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from tursomock.main import create_app

    settings = _settings_from_args(args)
    app = create_app(settings)

    print(f"Turso Mock Server running on http://localhost:{settings.port}")
    print(f"DB directory: {settings.resolved_db_dir()}")
    print(f"Use subdomain format: http://<dbname>.{settings.public_host}:{settings.port}")

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


def cmd_reset(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    registry = DatabaseRegistry(settings.resolved_db_dir())

    names = registry.list_databases()
    if not names:
        print(f"No databases found in {registry.db_dir}")
        return 0

    print(f"Found {len(names)} database(s) in {registry.db_dir}:")
    for name in names:
        print(f"  - {name}")

    if not args.force and not confirm("\nAre you sure you want to delete all databases?"):
        print("Aborted.")
        return 0

    registry.reset_all()
    print("\nAll databases have been deleted.")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    if args.command == "reset":
        return cmd_reset(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
