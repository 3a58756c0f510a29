"""Execution context shared by every handler of one top-level execution.

The context replaces the process-global statics of a classic trigger
framework: the bypass registry, the deactivation lookup and the error sink
are created once per top-level execution and threaded into every handler
instance, including those created by cascades. Two contexts never share
state.

    >>> ctx = ExecutionContext.create()
    >>> ctx.bypasses.bypass("AccountHandler")
    >>> ExecutionContext.create().bypasses.is_bypassed("AccountHandler")
    False
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from trigger_spine.core.bypass import BypassRegistry
from trigger_spine.core.deactivation import DeactivationLookup, FailOpenLookup, build_lookup
from trigger_spine.core.error_sink import ErrorSink, LoggingErrorSink
from trigger_spine.core.settings import TriggerSpineSettings, get_settings


@dataclass
class ExecutionContext:
    """State shared across handler instances within one execution."""

    bypasses: BypassRegistry
    deactivation: DeactivationLookup
    error_sink: ErrorSink
    settings: TriggerSpineSettings
    execution_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not isinstance(self.deactivation, FailOpenLookup):
            self.deactivation = FailOpenLookup(self.deactivation)

    @classmethod
    def create(
        cls,
        settings: TriggerSpineSettings | None = None,
        *,
        bypasses: BypassRegistry | None = None,
        deactivation: DeactivationLookup | None = None,
        error_sink: ErrorSink | None = None,
        **kwargs: Any,
    ) -> ExecutionContext:
        """Build a context, filling unspecified collaborators from settings."""
        settings = settings or get_settings()
        return cls(
            bypasses=bypasses if bypasses is not None else BypassRegistry(),
            deactivation=deactivation if deactivation is not None else build_lookup(settings),
            error_sink=error_sink if error_sink is not None else LoggingErrorSink(),
            settings=settings,
            **kwargs,
        )

    def is_deactivated(self, entity_type: str) -> bool:
        """Fail-open deactivation check."""
        return self.deactivation.is_deactivated(entity_type)
