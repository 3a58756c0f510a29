"""Error sinks: where isolated callback failures are reported.

When a handler callback raises, the supervisor builds one ``ErrorReport``
and hands it to the sink configured on the execution context. The same
correlation id goes into the rejection message on every record of the
batch, so a user-facing record error can be traced back to the report.

The core depends only on the ``ErrorSink`` protocol; transports (a logging
pipeline, an alerting channel, a database) are plugged in by the caller.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, fields
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from trigger_spine.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ErrorReport:
    """Structured failure report for one isolated callback failure."""

    correlation_id: str
    handler: str
    entity_type: str
    phase: str
    error_type: str
    message: str
    record_count: int = 0
    execution_id: str | None = None
    cause: BaseException | None = field(default=None, compare=False, repr=False)
    reported_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Serializable form (the cause object itself is dropped)."""
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "cause"}
        data["reported_at"] = self.reported_at.isoformat()
        return data


@runtime_checkable
class ErrorSink(Protocol):
    """Receives failure reports. Implementations should not raise."""

    def report(self, report: ErrorReport) -> None: ...


class LoggingErrorSink:
    """Default sink: one structlog ``error`` event per report, with traceback."""

    def __init__(self, event: str = "handler_callback_failed") -> None:
        self.event = event

    def report(self, report: ErrorReport) -> None:
        exc_info = report.cause if report.cause is not None else False
        logger.error(self.event, exc_info=exc_info, **report.to_dict())


class MemoryErrorSink:
    """Collects reports in memory. Useful for tests and batch summaries."""

    def __init__(self) -> None:
        self.reports: list[ErrorReport] = []

    def report(self, report: ErrorReport) -> None:
        self.reports.append(report)

    def clear(self) -> None:
        self.reports.clear()

    def __len__(self) -> int:
        return len(self.reports)


class CallbackErrorSink:
    """Adapts a plain function ``fn(report)`` to the sink protocol."""

    def __init__(self, fn: Callable[[ErrorReport], None]) -> None:
        self.fn = fn

    def report(self, report: ErrorReport) -> None:
        self.fn(report)
