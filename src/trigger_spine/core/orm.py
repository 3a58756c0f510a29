"""SQLAlchemy table for persisted deactivation records.

One row per entity type. A row with ``is_inactive = 1`` switches off every
handler for that entity type without a code change; a missing row means
the entity type is active.

Tags:
    trigger-spine, orm, sqlalchemy, tables, deactivation

Doc-Types:
    api-reference, data-model
"""

from __future__ import annotations

import datetime

from sqlalchemy import DateTime, Engine, Integer, Text, create_engine, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

_NOW = text("(CURRENT_TIMESTAMP)")


class TriggerSpineBase(DeclarativeBase):
    """Shared declarative base for trigger-spine tables.

    ``bool`` maps to ``Integer`` so SQLite (no native BOOLEAN) and other
    backends store the same 0/1 values.
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Integer,
        datetime.datetime: DateTime,
    }


class TriggerSettingTable(TriggerSpineBase):
    __tablename__ = "trigger_settings"

    entity_type: Mapped[str] = mapped_column(Text, primary_key=True)
    is_inactive: Mapped[bool] = mapped_column(Integer, default=False, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )


def create_db_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine for the deactivation store."""
    return create_engine(database_url, echo=echo, future=True)


# Shared engines keyed by (database_url, echo)
_engines: dict[tuple[str, bool], Engine] = {}


def get_db_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Get the process-wide engine for a database URL, creating it on first use."""
    key = (database_url, echo)
    engine = _engines.get(key)
    if engine is None:
        engine = _engines[key] = create_db_engine(database_url, echo=echo)
    return engine


def dispose_engines() -> None:
    """Dispose and forget every shared engine (for shutdown and tests)."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def create_tables(engine: Engine) -> None:
    """Create the trigger-spine tables if they do not exist."""
    TriggerSpineBase.metadata.create_all(engine)
