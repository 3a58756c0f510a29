"""
CLI: ``trigger-spine deactivation``: manage persisted deactivation records.

All commands operate on the ``trigger_settings`` table at ``--database-url``
(defaults to ``TRIGGER_SPINE_DATABASE_URL``). Only ``init`` creates the table;
the other commands exit with status 1 when it is missing.
"""

from __future__ import annotations

import typer
from rich.table import Table

from trigger_spine.cli.utils import console, get_store, store_errors
from trigger_spine.core.orm import create_tables

app = typer.Typer(no_args_is_help=True)

DatabaseOption = typer.Option(None, "--database-url", "-d", help="SQLAlchemy database URL")


@app.command("init")
def init_store(database_url: str | None = DatabaseOption) -> None:
    """Create the deactivation table if it does not exist."""
    with store_errors():
        create_tables(get_store(database_url).engine)
    console.print("[green]✓[/green] trigger_settings table ready")


@app.command("list")
def list_records(database_url: str | None = DatabaseOption) -> None:
    """List deactivation records."""
    with store_errors():
        records = get_store(database_url).list_records()
    if not records:
        console.print("[dim]No deactivation records[/dim]")
        return

    table = Table()
    table.add_column("Entity Type")
    table.add_column("Inactive")
    table.add_column("Description")
    table.add_column("Updated")
    for record in records:
        table.add_row(
            record["entity_type"],
            "yes" if record["is_inactive"] else "no",
            record["description"] or "",
            str(record["updated_at"] or ""),
        )
    console.print(table)


@app.command("status")
def status(
    entity_type: str = typer.Argument(..., help="Entity type name"),
    database_url: str | None = DatabaseOption,
) -> None:
    """Show whether handling is deactivated for an entity type."""
    with store_errors():
        deactivated = get_store(database_url).is_deactivated(entity_type)
    if deactivated:
        console.print(f"{entity_type}: [yellow]deactivated[/yellow]")
    else:
        console.print(f"{entity_type}: [green]active[/green]")


@app.command("set")
def set_inactive(
    entity_type: str = typer.Argument(..., help="Entity type name"),
    description: str | None = typer.Option(None, "--description", help="Why handling is switched off"),
    database_url: str | None = DatabaseOption,
) -> None:
    """Deactivate all handlers for an entity type."""
    with store_errors():
        get_store(database_url).set_inactive(entity_type, True, description=description)
    console.print(f"[green]✓[/green] {entity_type} deactivated")


@app.command("clear")
def clear(
    entity_type: str = typer.Argument(..., help="Entity type name"),
    database_url: str | None = DatabaseOption,
) -> None:
    """Remove the deactivation record for an entity type."""
    with store_errors():
        deleted = get_store(database_url).delete(entity_type)
    if not deleted:
        console.print(f"[yellow]No record for {entity_type}[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] {entity_type} active")
