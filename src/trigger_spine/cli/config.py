"""
CLI: ``trigger-spine config``: configuration inspection.
"""

from __future__ import annotations

import typer
from rich.table import Table

from trigger_spine.cli.utils import console, err_console

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show current configuration."""
    from trigger_spine.core.settings import get_settings

    try:
        settings = get_settings()
    except ValueError as e:
        err_console.print("[red]Configuration Error:[/red]")
        err_console.print(str(e), markup=False)
        raise typer.Exit(1) from e

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    if format == "env":
        for key, value in sorted(settings.model_dump().items()):
            console.print(f"TRIGGER_SPINE_{key.upper()}={'' if value is None else value}", markup=False)
        return

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in sorted(settings.model_dump().items()):
        table.add_row(key, "—" if value is None else str(value))
    console.print(table)
