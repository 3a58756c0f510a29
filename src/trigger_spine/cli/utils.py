"""
CLI utility helpers: output consoles and store access.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from trigger_spine.core.deactivation import SqlDeactivationLookup
from trigger_spine.core.orm import get_db_engine
from trigger_spine.core.settings import get_settings

console = Console()
err_console = Console(stderr=True)


def get_store(database_url: str | None = None) -> SqlDeactivationLookup:
    """Open the deactivation store. Defaults to ``settings.database_url``.

    The table is not created here; ``trigger-spine deactivation init`` does that.
    """
    settings = get_settings()
    engine = get_db_engine(database_url or settings.database_url, echo=settings.database_echo)
    return SqlDeactivationLookup(engine)


@contextmanager
def store_errors() -> Iterator[None]:
    """Turn database failures into a readable message and exit code 1."""
    try:
        yield
    except SQLAlchemyError as e:
        err_console.print(f"[red]Database error:[/red] {type(e).__name__}")
        err_console.print(str(e).splitlines()[0], markup=False)
        err_console.print("Run [bold]trigger-spine deactivation init[/bold] if the table does not exist yet.")
        raise typer.Exit(1) from e
