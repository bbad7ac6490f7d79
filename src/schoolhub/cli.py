#!/usr/bin/env python3
"""
Main CLI entry point for the SchoolHub backend.
"""

import asyncio
import os
import sys

import click
import uvicorn

from schoolhub import __version__
from schoolhub.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="schoolhub")
def cli() -> None:
    """SchoolHub CLI - manage server, database and school data."""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
@click.option("--port", default=8000, type=int, help="Port to bind to (default: 8000)")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development")
@click.option(
    "--workers", default=1, type=int, help="Number of worker processes (default: 1)"
)
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(host: str, port: int, reload: bool, workers: int, log_level: str) -> None:
    """Start the SchoolHub API server."""
    configure_logging(debug=(log_level == "debug"))

    logger.info(
        "Starting SchoolHub API server",
        host=host,
        port=port,
        reload=reload,
        workers=workers,
        log_level=log_level,
    )

    # Worker and reload processes re-import the app and read settings from env
    if log_level == "debug":
        os.environ["SCHOOLHUB_DEBUG"] = "true"
        os.environ["SCHOOLHUB_LOG_LEVEL"] = "debug"
    else:
        os.environ.setdefault("SCHOOLHUB_DEBUG", "false")
        os.environ.setdefault("SCHOOLHUB_LOG_LEVEL", log_level)

    try:
        if reload or workers > 1:
            uvicorn.run(
                "schoolhub.api.app:app",
                host=host,
                port=port,
                reload=reload,
                workers=(workers if not reload else 1),
                log_level=log_level,
                access_log=True,
            )
        else:
            from schoolhub.api.app import app

            uvicorn.run(app, host=host, port=port, log_level=log_level, access_log=True)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.command("init-db")
def init_db() -> None:
    """Create the database tables if they do not exist."""
    from schoolhub.database.connection import create_tables, dispose_database, init_database

    configure_logging()

    async def do_init():
        init_database()
        try:
            await create_tables()
        finally:
            await dispose_database()

    try:
        asyncio.run(do_init())
    except Exception as e:
        logger.error("Failed to create tables", error=str(e))
        click.echo(f"✗ Error creating tables: {e}", err=True)
        sys.exit(1)
    click.echo("✓ Database tables created")


@cli.command("create-admin")
@click.option("--first-name", required=True, help="Admin first name")
@click.option("--last-name", required=True, help="Admin last name")
@click.option("--email", required=True, help="Admin email (must be unique)")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Admin password",
)
def create_admin(first_name: str, last_name: str, email: str, password: str) -> None:
    """Bootstrap an admin user; prints its id for use as an actor."""
    from schoolhub.core.invariants import name_is_exist
    from schoolhub.core.passwords import hash_password
    from schoolhub.core.validation import CreateUserInput, parse_input
    from schoolhub.errors import ConflictAlreadyExists, SchoolHubError
    from schoolhub.store.base import EntityKind
    from schoolhub.store.factory import create_gateway

    configure_logging()

    async def do_create():
        data = parse_input(
            CreateUserInput,
            {
                "first_name": first_name,
                "last_name": last_name,
                "email": email,
                "password": password,
            },
        )
        gateway = create_gateway()
        try:
            if await name_is_exist(gateway, EntityKind.USER, "email", data.email):
                raise ConflictAlreadyExists("Email already exist")
            return await gateway.create(
                EntityKind.USER,
                {
                    "first_name": data.first_name,
                    "last_name": data.last_name,
                    "email": data.email,
                    "password_hash": hash_password(data.password),
                    "roles": ["user", "admin"],
                    "created_by": None,
                },
            )
        finally:
            await gateway.close()

    try:
        record = asyncio.run(do_create())
    except SchoolHubError as e:
        logger.error("Failed to create admin", error=e.message)
        click.echo(f"✗ Error creating admin: {e.message}", err=True)
        sys.exit(1)

    logger.info("Admin created", user_id=str(record["id"]))
    click.echo(f"✓ Admin created: {record['id']}")
    click.echo(f"  Email: {record['email']}")


@cli.command("reconcile-schools")
def reconcile_schools() -> None:
    """Rebuild every school's student list from the students referencing it."""
    from schoolhub.core.relationships import RelationshipMaintainer
    from schoolhub.store.factory import create_gateway

    configure_logging()

    async def do_reconcile():
        gateway = create_gateway()
        try:
            return await RelationshipMaintainer(gateway).reconcile_all()
        finally:
            await gateway.close()

    try:
        repaired = asyncio.run(do_reconcile())
    except Exception as e:
        logger.error("Failed to reconcile schools", error=str(e))
        click.echo(f"✗ Error reconciling schools: {e}", err=True)
        sys.exit(1)
    click.echo(f"✓ Reconciled schools ({repaired} repaired)")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
