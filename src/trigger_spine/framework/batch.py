"""Trigger batches: the records a caller hands to a handler.

A batch carries the entity type, the lifecycle phase and the old/new views
of the changed records. Handlers read records from it; the supervisor
writes rejection messages onto its records when a callback fails.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from trigger_spine.core.phases import LifecyclePhase


@dataclass
class Record:
    """One domain record view plus the errors attached to it during processing."""

    data: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    errors: list[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value


def _as_records(items: Iterable[Record | Mapping[str, Any]] | None) -> list[Record]:
    records = []
    for item in items or ():
        if isinstance(item, Record):
            records.append(item)
        else:
            data = dict(item)
            records.append(Record(data=data, id=data.get("id")))
    return records


@dataclass
class TriggerBatch:
    """
    Ordered batch of changed records for one entity type and phase.

    ``new`` holds the new-state views (insert/update/undelete), ``old`` the
    old-state views (update/delete). Plain mappings are wrapped in
    ``Record`` on construction.
    """

    entity_type: str
    phase: LifecyclePhase
    new: list[Record] = field(default_factory=list)
    old: list[Record] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.phase = LifecyclePhase.parse(self.phase)
        self.new = _as_records(self.new)
        self.old = _as_records(self.old)

    @property
    def rejection_targets(self) -> list[Record]:
        """Records that receive rejection messages: old for delete phases, new otherwise."""
        preferred, fallback = (self.old, self.new) if self.phase.is_delete else (self.new, self.old)
        return preferred or fallback

    @property
    def size(self) -> int:
        return len(self.rejection_targets)

    def reject_all(self, message: str) -> int:
        """Attach ``message`` to every target record; returns how many were rejected."""
        targets = self.rejection_targets
        for record in targets:
            record.add_error(message)
        return len(targets)

    @property
    def old_by_id(self) -> dict[str | None, Record]:
        return {record.id: record for record in self.old}

    @property
    def has_errors(self) -> bool:
        return any(r.has_errors for r in self.new) or any(r.has_errors for r in self.old)
