"""
Root Typer application for the trigger-spine CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from trigger_spine.cli.config import app as config_app
from trigger_spine.cli.deactivation import app as deactivation_app
from trigger_spine.cli.utils import err_console
from trigger_spine.core.logging import configure_from_settings
from trigger_spine.core.settings import get_settings

app = Typer(
    name="trigger-spine",
    help="trigger-spine: supervisory dispatch for record-change handlers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        from trigger_spine import __version__

        typer.echo(f"trigger-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """trigger-spine CLI: inspect settings and manage deactivation records."""
    try:
        settings = get_settings()
    except ValueError as e:
        err_console.print("[red]Configuration Error:[/red]")
        err_console.print(str(e), markup=False)
        raise typer.Exit(1) from e
    configure_from_settings(settings)


app.add_typer(config_app, name="config", help="Configuration inspection.")
app.add_typer(deactivation_app, name="deactivation", help="Deactivation records.")


if __name__ == "__main__":
    app()
