"""
Lifecycle phases of a record-change execution.

Seven moments at which exactly one handler callback may run: before/after
insert, update and delete, plus after undelete. STDLIB ONLY.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from trigger_spine.core.errors import InvalidPhaseError


class LifecyclePhase(str, Enum):
    """
    Lifecycle phase tag supplied by the caller for each batch.

    The value doubles as the name of the handler callback for that phase
    (``LifecyclePhase.AFTER_UPDATE.callback_name == "after_update"``).
    """

    BEFORE_INSERT = "before_insert"
    BEFORE_UPDATE = "before_update"
    BEFORE_DELETE = "before_delete"
    AFTER_INSERT = "after_insert"
    AFTER_UPDATE = "after_update"
    AFTER_DELETE = "after_delete"
    AFTER_UNDELETE = "after_undelete"

    @property
    def callback_name(self) -> str:
        return self.value

    @property
    def is_before(self) -> bool:
        return self.value.startswith("before_")

    @property
    def is_after(self) -> bool:
        return self.value.startswith("after_")

    @property
    def is_delete(self) -> bool:
        """Delete phases carry only the old-state view of records."""
        return self in (LifecyclePhase.BEFORE_DELETE, LifecyclePhase.AFTER_DELETE)

    @classmethod
    def parse(cls, value: Any) -> LifecyclePhase:
        """
        Parse a phase from an enum member, value or name.

        Accepts ``"after_update"``, ``"AFTER_UPDATE"`` and ``"AfterUpdate"``.

        Raises:
            InvalidPhaseError: If the value names no phase
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise InvalidPhaseError(value)

        # CamelCase -> snake_case
        normalized = re.sub(r"(?<!^)(?=[A-Z][a-z])", "_", value.strip())
        normalized = re.sub(r"_+", "_", normalized).lower()
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidPhaseError(value) from None
