"""
Declarative deactivation: is handling switched off for an entity type?

The supervisor asks one question of configuration, ``is_deactivated(entity_type)``,
and must never be blocked by the answer being unavailable. Backends:

    ┌───────────────────────────┬──────────────────────────────────────────┐
    │ StaticDeactivationLookup  │ in-memory mapping (tests, embedding)     │
    │ EnvDeactivationLookup     │ TRIGGER_SPINE_DEACTIVATE_<ENTITY>=true   │
    │ SqlDeactivationLookup     │ ``trigger_settings`` table (SQLAlchemy)  │
    ├───────────────────────────┼──────────────────────────────────────────┤
    │ FailOpenLookup            │ wraps any of the above; errors → False   │
    └───────────────────────────┴──────────────────────────────────────────┘

Absence of a record always means "active" (fail-open).

Tags:
    deactivation, configuration, fail-open, trigger-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from trigger_spine.core.errors import DeactivationLookupError
from trigger_spine.core.logging import get_logger
from trigger_spine.core.orm import TriggerSettingTable, get_db_engine
from trigger_spine.core.result import try_result

if TYPE_CHECKING:
    from trigger_spine.core.settings import TriggerSpineSettings

logger = get_logger(__name__)

TRUTHY = frozenset({"1", "true", "yes", "on"})


@runtime_checkable
class DeactivationLookup(Protocol):
    """Answers whether handling is deactivated for an entity type."""

    def is_deactivated(self, entity_type: str) -> bool: ...


class StaticDeactivationLookup:
    """In-memory entity type → inactive flag mapping."""

    def __init__(self, records: Mapping[str, bool] | None = None) -> None:
        self._records: dict[str, bool] = dict(records or {})

    def is_deactivated(self, entity_type: str) -> bool:
        return bool(self._records.get(entity_type, False))

    def set(self, entity_type: str, inactive: bool = True) -> None:
        self._records[entity_type] = inactive

    def clear(self, entity_type: str) -> None:
        self._records.pop(entity_type, None)


class EnvDeactivationLookup:
    """Reads ``<prefix><ENTITY_TYPE>`` environment variables.

    ``TRIGGER_SPINE_DEACTIVATE_ACCOUNT=true`` deactivates ``Account``.
    Values are read on every call so changes take effect immediately.
    """

    def __init__(self, prefix: str = "TRIGGER_SPINE_DEACTIVATE_", environ: Mapping[str, str] | None = None) -> None:
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def env_name(self, entity_type: str) -> str:
        return f"{self.prefix}{entity_type.upper()}"

    def is_deactivated(self, entity_type: str) -> bool:
        value = self._environ.get(self.env_name(entity_type))
        if value is None:
            return False
        return value.strip().lower() in TRUTHY


class SqlDeactivationLookup:
    """Deactivation records stored in the ``trigger_settings`` table.

    Built either from an engine or from a ``database_url``. A URL is only
    turned into an engine on the first query, so an unusable URL surfaces
    as a lookup failure (which ``FailOpenLookup`` recovers) instead of
    breaking context construction. Engines built from URLs are shared
    process-wide.
    """

    def __init__(self, engine: Engine | None = None, *, database_url: str | None = None, echo: bool = False) -> None:
        if engine is None and database_url is None:
            raise ValueError("SqlDeactivationLookup needs an engine or a database_url")
        self._engine = engine
        self.database_url = database_url
        self.echo = echo

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = get_db_engine(self.database_url, echo=self.echo)
        return self._engine

    def is_deactivated(self, entity_type: str) -> bool:
        with Session(self.engine) as session:
            row = session.get(TriggerSettingTable, entity_type)
            if row is None:
                return False
            return bool(row.is_inactive)

    def set_inactive(self, entity_type: str, inactive: bool = True, description: str | None = None) -> None:
        """Create or update the record for an entity type."""
        with Session(self.engine) as session, session.begin():
            row = session.get(TriggerSettingTable, entity_type)
            if row is None:
                row = TriggerSettingTable(entity_type=entity_type)
                session.add(row)
            row.is_inactive = inactive
            if description is not None:
                row.description = description
            row.updated_at = datetime.now(UTC)
        logger.info("deactivation_record_saved", entity_type=entity_type, inactive=inactive)

    def delete(self, entity_type: str) -> bool:
        """Delete the record, returning whether one existed."""
        with Session(self.engine) as session, session.begin():
            row = session.get(TriggerSettingTable, entity_type)
            if row is None:
                return False
            session.delete(row)
        logger.info("deactivation_record_deleted", entity_type=entity_type)
        return True

    def list_records(self) -> list[dict[str, Any]]:
        with Session(self.engine) as session:
            rows = session.scalars(select(TriggerSettingTable).order_by(TriggerSettingTable.entity_type))
            return [
                {
                    "entity_type": row.entity_type,
                    "is_inactive": bool(row.is_inactive),
                    "description": row.description,
                    "updated_at": row.updated_at,
                }
                for row in rows
            ]


class FailOpenLookup:
    """Wraps a lookup so that any failure reads as "not deactivated".

    Failures are logged once per call as ``deactivation_lookup_failed``.
    """

    def __init__(self, inner: DeactivationLookup) -> None:
        self.inner = inner

    def is_deactivated(self, entity_type: str) -> bool:
        result = try_result(lambda: bool(self.inner.is_deactivated(entity_type)))
        return result.inspect_err(lambda e: self._log_failure(entity_type, e)).unwrap_or(False)

    @staticmethod
    def _log_failure(entity_type: str, error: Exception) -> None:
        wrapped = DeactivationLookupError(
            f"Deactivation lookup failed for {entity_type}", cause=error
        ).with_context(entity_type=entity_type)
        logger.warning("deactivation_lookup_failed", **wrapped.to_dict())


def build_lookup(settings: TriggerSpineSettings) -> DeactivationLookup:
    """Build the lookup selected by ``settings.deactivation_backend``."""
    if settings.deactivation_backend == "env":
        return EnvDeactivationLookup(prefix=settings.deactivation_env_prefix)
    if settings.deactivation_backend == "database":
        return SqlDeactivationLookup(database_url=settings.database_url, echo=settings.database_echo)
    return StaticDeactivationLookup()
