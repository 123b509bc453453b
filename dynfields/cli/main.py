#!/usr/bin/env python3
"""dynfields CLI - management utility for the dynamic fields service."""

import argparse
import asyncio
import sys
from pathlib import Path
from uuid import UUID

from ..exceptions.domain import DynFieldsError
from ..settings import settings
from ..utils.db_manager import db_manager
from ..utils.logger import logger


def init_project(path: str) -> None:
    """Create a settings file and a data directory in the given directory."""
    project_path = Path(path).resolve()
    data_path = project_path / "data"
    data_path.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created directory: {data_path}")

    settings_content = f"""# dynfields configuration file

# Server settings
port = 8000
host = "127.0.0.1"
debug = true
api_prefix = "/api"

# Database settings
database_driver = "sqlite"
database_name = "dynfields"

# Storage settings
storage_path = "{data_path.as_posix()}"

# Client cache
client_cache_ttl = 300
"""

    settings_file = project_path / "settings.toml"
    if not settings_file.exists():
        settings_file.write_text(settings_content)
        logger.info(f"Created settings file: {settings_file}")
    else:
        logger.warning(f"Settings file already exists, left untouched: {settings_file}")

    env_example = """# Environment variables (optional)
# DYNFIELDS_DATABASE_DRIVER=postgresql+asyncpg
# DYNFIELDS_DATABASE_PASSWORD=secret
# DYNFIELDS_LOG_LEVEL=DEBUG
"""

    env_file = project_path / ".env.example"
    env_file.write_text(env_example)
    logger.info(f"Created .env.example: {env_file}")

    logger.info(f"Project initialized at {project_path}")


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Run the dynfields API server."""
    import uvicorn

    host = host or settings.host
    port = port or settings.port

    logger.info(f"Starting dynfields server at http://{host}:{port}{settings.api_prefix}")

    uvicorn.run(
        "dynfields.api.app:app",
        host=host,
        port=port,
        reload=settings.debug,
        log_level="info" if settings.debug else "warning",
    )


async def init_database(reset: bool = False) -> None:
    """Create the database tables, optionally dropping existing ones first."""
    if reset:
        logger.warning("Dropping all dynfields tables")
        await db_manager.drop_db_and_tables_async()
    logger.info("Initializing database...")
    await db_manager.create_db_and_tables_async()
    await db_manager.close()
    logger.info("Database initialized successfully")


async def export_user(user_id: UUID, export_format: str, include_inherited: bool) -> str:
    """Export the effective fields and values of a user."""
    import json

    from ..repositories import (
        FieldValueRepository,
        PersonalFieldRepository,
        TemplateFieldRepository,
        UserRepository,
    )
    from ..services import FieldValueService, PersonalFieldService

    try:
        async with db_manager.get_async_session_context() as session:
            personal_service = PersonalFieldService(
                PersonalFieldRepository(session),
                TemplateFieldRepository(session),
                UserRepository(session),
            )
            service = FieldValueService(personal_service, FieldValueRepository(session))
            exported = await service.export_values(
                user_id,
                "csv" if export_format == "csv" else "json",
                include_inherited,
            )
    finally:
        await db_manager.close()

    if isinstance(exported, str):
        return exported
    return json.dumps(exported, indent=2, default=str)


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="dynfields", description="dynfields - dynamic custom fields service"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init command
    init_parser = subparsers.add_parser("init", help="Initialize a new dynfields project")
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path where to create the project (default: current directory)",
    )

    # run command
    run_parser = subparsers.add_parser("run", help="Run the API server")
    run_parser.add_argument(
        "--host", type=str, default=None, help="Host to bind to (default from settings)"
    )
    run_parser.add_argument(
        "--port", type=int, default=None, help="Port to bind to (default from settings)"
    )

    # db command
    db_parser = subparsers.add_parser("db", help="Database management")
    db_subparsers = db_parser.add_subparsers(dest="db_command")
    db_subparsers.add_parser("init", help="Create database tables")
    db_subparsers.add_parser("reset", help="Drop and recreate database tables")

    # export command
    export_parser = subparsers.add_parser("export", help="Export the fields and values of a user")
    export_parser.add_argument("user_id", type=UUID, help="ID of the user to export")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json")
    export_parser.add_argument(
        "--personal-only",
        action="store_true",
        help="Leave out fields inherited unchanged from the user type",
    )

    args = parser.parse_args(argv)

    if args.command == "init":
        init_project(args.path)
    elif args.command == "run":
        run_server(args.host, args.port)
    elif args.command == "db":
        if args.db_command == "init":
            asyncio.run(init_database())
        elif args.db_command == "reset":
            asyncio.run(init_database(reset=True))
        else:
            db_parser.print_help()
    elif args.command == "export":
        try:
            output = asyncio.run(export_user(args.user_id, args.format, not args.personal_only))
        except DynFieldsError as e:
            logger.error(f"Export failed: {e}")
            sys.exit(1)
        sys.stdout.write(output)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
