"""Employee Registry CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from employee_registry import __version__
from employee_registry.config import get_settings
from employee_registry.observability import configure_logging
from employee_registry.storage import (
    check_db_connection,
    close_db,
    ensure_employee_indexes,
    get_employee_collection,
    init_db,
    sanitize_mongodb_url,
)

logger = logging.getLogger(__name__)


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Employee Registry Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}")
        print(f"Environment: {settings.environment}")
        print(f"Log Level: {settings.log_level}\n")

        print("MongoDB:")
        print(f"  URI: {sanitize_mongodb_url(settings.mongo.uri)}")
        print(f"  Database: {settings.mongo.database}")
        print(f"  Collection: {settings.mongo.collection}")
        print(f"  Server Selection Timeout: {settings.mongo.server_selection_timeout_ms}ms")
        print(f"  Create Indexes On Startup: {settings.mongo.create_indexes}\n")

        print("API:")
        print(f"  Listen: {settings.api.host}:{settings.api.port}")
        print(f"  Prefix: {settings.api.prefix}")
        print(f"  Allowed Origins: {', '.join(settings.api.allowed_origins)}\n")

        print(f"Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")
        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1


async def _init_indexes() -> int:
    settings = get_settings()
    await init_db(settings)
    try:
        if not await check_db_connection():
            logger.error("MongoDB is not reachable")
            return 1
        created = await ensure_employee_indexes(get_employee_collection())
        print(f"\n✓ Indexes ensured: {', '.join(created)}\n")
        return 0
    finally:
        await close_db()


def cmd_init_indexes(args: argparse.Namespace) -> int:
    """Create the employee collection indexes."""
    return asyncio.run(_init_indexes())


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with Uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "employee_registry.api.server:app",
        host=args.host or settings.api.host,
        port=args.port or settings.api.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Employee Registry: employee records over MongoDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Employee Registry {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_indexes = subparsers.add_parser(
        "init-indexes",
        help="Create indexes on the employee collection",
    )
    parser_indexes.set_defaults(func=cmd_init_indexes)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Start the HTTP API",
    )
    parser_serve.add_argument("--host", help="Bind address (default from settings)")
    parser_serve.add_argument("--port", type=int, help="Port (default from settings)")
    parser_serve.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes",
    )
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        log_level = get_settings().log_level
    except ValidationError:
        # Commands report the configuration error themselves
        log_level = "INFO"
    configure_logging(log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
