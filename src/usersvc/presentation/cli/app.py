"""usersvc CLI application using Typer.

This module provides command-line utilities for the users service:
running the API server and preparing the database.
"""

import asyncio
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from usersvc.domain.shared.exceptions import DomainException
from usersvc.infrastructure.persistence.sqlalchemy import (
    DatabaseConnection,
    UserRepositorySQLAlchemy,
)
from usersvc.infrastructure.persistence.sqlalchemy.seed import seed_sample_users
from usersvc_config.settings import get_settings

app = typer.Typer(
    name="usersvc",
    help="usersvc - users CRUD service CLI",
    no_args_is_help=True,
)
console = Console()


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (API_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (API_PORT)"),
    reload: bool = typer.Option(False, help="Restart on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    settings = get_settings()
    bind_host = host or settings.api_host
    bind_port = port or settings.api_port

    console.print(
        f"[bold green]{settings.app_name}[/bold green] "
        f"({settings.environment}) on [cyan]http://{bind_host}:{bind_port}[/cyan]"
    )
    uvicorn.run(
        "usersvc.presentation.api.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        use_colors=not settings.is_production,
    )


@app.command("init-db")
def init_db(
    seed: bool = typer.Option(False, "--seed", help="Insert the sample users"),
) -> None:
    """Create the users table (if missing) and optionally seed it."""
    settings = get_settings()
    try:
        database = DatabaseConnection.from_settings(settings)
        inserted = asyncio.run(_init_db(database, seed))
    except (SQLAlchemyError, OSError, DomainException) as e:
        console.print(f"[red]Database initialization failed:[/red] {e}")
        raise typer.Exit(code=1) from e

    console.print("[green]Schema is up to date.[/green]")
    if seed:
        console.print(f"Seeded [bold]{inserted}[/bold] sample user(s).")


async def _init_db(database: DatabaseConnection, seed: bool) -> int:
    try:
        await database.initialize()
        await database.create_schema()
        inserted = 0
        if seed:
            inserted = await seed_sample_users(UserRepositorySQLAlchemy(database))
        _print_pool_stats(database)
        return inserted
    finally:
        await database.close()


def _print_pool_stats(database: DatabaseConnection) -> None:
    stats = database.pool_stats()
    if not stats:
        return
    table = Table(title="Connection pool")
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    for key, value in stats.items():
        table.add_row(key, str(value))
    console.print(table)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
