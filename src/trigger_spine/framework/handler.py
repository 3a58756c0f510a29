"""
Trigger handler base class: the dispatch supervisor.

A handler is constructed for one batch (one entity type, one lifecycle
phase) and ``run()`` once by the caller. ``run()`` decides whether the
handler may execute, accounts for recursion, and calls exactly one phase
callback, isolating any failure it raises.

Manifesto:
    Record-change handlers should contain business logic only. Everything
    around it is the same for every handler and lives here:

    - **Eligibility:** deactivated entity types and bypassed handlers are
      skipped without side effects
    - **Recursion guard:** a per-instance loop ceiling aborts runaway
      cascades before the callback runs
    - **One callback per run:** selected by exact phase match from a
      phase → callable table; phases without an override are no-ops
    - **Failure isolation:** a failing callback is reported once, with a
      correlation id that also lands on every record of the batch
    - **Explicit outcomes:** ``run()`` returns a ``DispatchResult``; it only
      raises for programmer errors

Architecture:
    ::

        run()
          │
          ├─ deactivated(entity_type) or bypassed(handler)?
          │        └─ yes ──────────────────────────► SUPPRESSED
          │
          ├─ loop_guard.add_to_loop_count()
          │        └─ LoopLimitExceededError ────────► ABORTED
          │
          ├─ callback_table()[phase]()
          │        ├─ LoopLimitExceededError ────────► ABORTED
          │        ├─ Exception ─► sink.report()
          │        │              batch.reject_all() ► FAILED
          │        └─ returns ───────────────────────► COMPLETED

Examples:
    >>> class AccountHandler(TriggerHandler):
    ...     def before_insert(self):
    ...         for record in self.batch.new:
    ...             record["rating"] = record.get("rating") or "Warm"
    >>> batch = TriggerBatch("Account", LifecyclePhase.BEFORE_INSERT, new=[{"name": "Acme"}])
    >>> AccountHandler(batch).run().status
    <DispatchStatus.COMPLETED: 'completed'>

Guardrails:
    ❌ DON'T: Catch LoopLimitExceededError inside a callback
    ✅ DO: Let it propagate; the supervisor turns it into an ABORTED result

    ❌ DON'T: Share a handler instance between batches
    ✅ DO: Construct one handler per batch and run it once

Tags:
    trigger-handler, dispatch, supervisor, lifecycle, trigger-spine

Doc-Types:
    - API Reference
    - Handler Authoring Guide
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from trigger_spine.core.bypass import handler_identity
from trigger_spine.core.error_sink import ErrorReport
from trigger_spine.core.errors import (
    HandlerCallbackError,
    LoopLimitExceededError,
    TriggerContextError,
    TriggerSpineError,
)
from trigger_spine.core.logging import LogContext, get_logger
from trigger_spine.core.loop_guard import LoopGuard
from trigger_spine.core.phases import LifecyclePhase
from trigger_spine.core.settings import DEFAULT_REJECTION_MESSAGE
from trigger_spine.framework.batch import TriggerBatch
from trigger_spine.framework.context import ExecutionContext

if TYPE_CHECKING:
    from trigger_spine.framework.dispatcher import TriggerDispatcher

logger = get_logger(__name__)


class HandlerState(str, Enum):
    """Dispatch state of a handler instance."""

    CREATED = "created"
    ELIGIBLE = "eligible"
    RUNNING = "running"
    COMPLETED = "completed"
    SUPPRESSED = "suppressed"
    ABORTED = "aborted"


class DispatchStatus(str, Enum):
    """Outcome of one ``run()``."""

    COMPLETED = "completed"
    SUPPRESSED = "suppressed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class DispatchResult:
    """Result of running one handler against one batch."""

    status: DispatchStatus
    handler: str
    entity_type: str
    phase: LifecyclePhase
    reason: str | None = None
    error: TriggerSpineError | None = None
    correlation_id: str | None = None
    duration_ms: float = 0

    @property
    def ok(self) -> bool:
        return self.status == DispatchStatus.COMPLETED

    @property
    def suppressed(self) -> bool:
        return self.status == DispatchStatus.SUPPRESSED

    @property
    def failed(self) -> bool:
        return self.status in (DispatchStatus.ABORTED, DispatchStatus.FAILED)

    def raise_for_status(self) -> DispatchResult:
        """Raise the carried error for ABORTED/FAILED results, else return self."""
        if self.failed and self.error is not None:
            raise self.error
        return self


CallbackTable = dict[LifecyclePhase, Callable[[], None]]


class TriggerHandler:
    """Base class for record-change handlers.

    Subclasses override any of the seven phase callbacks. Class attributes:

    - ``name``: handler identity used for bypass (defaults to the class name)
    - ``max_loop_count``: loop ceiling for new instances (defaults to
      ``settings.default_max_loop_count``)
    """

    name: str = ""
    max_loop_count: int | None = None

    def __init__(self, batch: TriggerBatch, context: ExecutionContext | None = None) -> None:
        if not isinstance(batch, TriggerBatch):
            raise TriggerContextError(
                "Trigger handler called outside of trigger execution"
            ).with_context(handler=self.handler_name)

        self.batch = batch
        self.context = context if context is not None else ExecutionContext.create()
        self.entity_type = batch.entity_type
        self.phase = batch.phase
        self.state = HandlerState.CREATED

        ceiling = self.max_loop_count
        if ceiling is None:
            ceiling = self.context.settings.default_max_loop_count
        self.loop_guard = LoopGuard(self.handler_name, ceiling)

    @property
    def handler_name(self) -> str:
        return handler_identity(self)

    # ── Dispatch ─────────────────────────────────────────────────

    def run(self) -> DispatchResult:
        """Run the callback for this handler's phase, if eligible."""
        started_at = datetime.now(UTC)
        with LogContext(
            execution_id=self.context.execution_id,
            handler=self.handler_name,
            entity_type=self.entity_type,
            phase=self.phase.value,
        ):
            reason = self._suppression_reason()
            if reason is not None:
                self.state = HandlerState.SUPPRESSED
                logger.debug("handler_suppressed", reason=reason)
                return self._result(DispatchStatus.SUPPRESSED, started_at, reason=reason)

            self.state = HandlerState.ELIGIBLE
            try:
                self.loop_guard.add_to_loop_count()
            except LoopLimitExceededError as e:
                return self._abort(e, started_at)

            self.state = HandlerState.RUNNING
            callback = self.callback_table()[self.phase]
            try:
                callback()
            except LoopLimitExceededError as e:
                return self._abort(e, started_at)
            except Exception as e:
                return self._isolate_failure(e, started_at)

            self.state = HandlerState.COMPLETED
            result = self._result(DispatchStatus.COMPLETED, started_at)
            logger.info("handler_completed", loop_count=self.loop_guard.count, duration_ms=result.duration_ms)
            return result

    def callback_table(self) -> CallbackTable:
        """Phase → callback mapping, one entry per phase."""
        return {phase: getattr(self, phase.callback_name) for phase in LifecyclePhase}

    def _suppression_reason(self) -> str | None:
        if self.context.is_deactivated(self.entity_type):
            return "deactivated"
        if self.context.bypasses.is_bypassed(self.handler_name):
            return "bypassed"
        return None

    def _abort(self, error: LoopLimitExceededError, started_at: datetime) -> DispatchResult:
        self.state = HandlerState.ABORTED
        error.with_context(execution_id=self.context.execution_id)
        logger.error("handler_aborted", **error.to_dict())
        return self._result(DispatchStatus.ABORTED, started_at, error=error)

    def _isolate_failure(self, cause: Exception, started_at: datetime) -> DispatchResult:
        correlation_id = uuid.uuid4().hex
        error = HandlerCallbackError(
            f"{self.handler_name}.{self.phase.callback_name} failed: {cause}",
            correlation_id=correlation_id,
            cause=cause,
        ).with_context(
            handler=self.handler_name,
            entity_type=self.entity_type,
            phase=self.phase.value,
            execution_id=self.context.execution_id,
        )

        report = ErrorReport(
            correlation_id=correlation_id,
            handler=self.handler_name,
            entity_type=self.entity_type,
            phase=self.phase.value,
            error_type=type(cause).__name__,
            message=str(cause),
            record_count=self.batch.size,
            execution_id=self.context.execution_id,
            cause=cause,
        )
        try:
            self.context.error_sink.report(report)
        except Exception:
            logger.exception("error_sink_failed", correlation_id=correlation_id)

        rejected = self.batch.reject_all(self._rejection_message(correlation_id, cause))

        self.state = HandlerState.ABORTED
        logger.warning("handler_failed", correlation_id=correlation_id, rejected=rejected)
        return self._result(DispatchStatus.FAILED, started_at, error=error, correlation_id=correlation_id)

    def _rejection_message(self, correlation_id: str, cause: Exception) -> str:
        """Render the configured rejection message, falling back to the default template."""
        template = self.context.settings.rejection_message
        try:
            return template.format(correlation_id=correlation_id, handler=self.handler_name, error=str(cause))
        except (KeyError, IndexError, ValueError):
            logger.warning("rejection_message_invalid", correlation_id=correlation_id, template=template)
            return DEFAULT_REJECTION_MESSAGE.format(correlation_id=correlation_id)

    def _result(self, status: DispatchStatus, started_at: datetime, **kwargs: Any) -> DispatchResult:
        duration = (datetime.now(UTC) - started_at).total_seconds() * 1000
        return DispatchResult(
            status=status,
            handler=self.handler_name,
            entity_type=self.entity_type,
            phase=self.phase,
            duration_ms=duration,
            **kwargs,
        )

    # ── Phase callbacks (no-op defaults) ─────────────────────────

    def before_insert(self) -> None:
        pass

    def before_update(self) -> None:
        pass

    def before_delete(self) -> None:
        pass

    def after_insert(self) -> None:
        pass

    def after_update(self) -> None:
        pass

    def after_delete(self) -> None:
        pass

    def after_undelete(self) -> None:
        pass

    # ── Loop guard ───────────────────────────────────────────────

    def set_max_loop_count(self, max_count: int) -> None:
        self.loop_guard.set_max_loop_count(max_count)

    def clear_max_loop_count(self) -> None:
        self.loop_guard.clear_max_loop_count()

    def add_to_loop_count(self) -> None:
        self.loop_guard.add_to_loop_count()

    # ── Bypass (delegates to the shared registry) ────────────────

    def bypass(self, identity: Any) -> None:
        self.context.bypasses.bypass(identity)

    def clear_bypass(self, identity: Any) -> None:
        self.context.bypasses.clear_bypass(identity)

    def is_bypassed(self, identity: Any) -> bool:
        return self.context.bypasses.is_bypassed(identity)

    def clear_all_bypasses(self) -> None:
        self.context.bypasses.clear_all_bypasses()

    # ── Cascades ─────────────────────────────────────────────────

    def dispatcher(self) -> TriggerDispatcher:
        """Dispatcher sharing this handler's execution context."""
        from trigger_spine.framework.dispatcher import TriggerDispatcher

        return TriggerDispatcher(self.context)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(entity_type={self.entity_type!r}, "
            f"phase={self.phase.value!r}, state={self.state.value!r})"
        )


class FunctionHandler(TriggerHandler):
    """Handler whose callback table is a mapping of plain functions.

    Each function receives the handler instance. Phases missing from the
    mapping are no-ops.

        >>> handler = FunctionHandler(
        ...     batch,
        ...     callbacks={LifecyclePhase.AFTER_UPDATE: lambda h: sync_totals(h.batch)},
        ...     name="TotalsHandler",
        ... )
    """

    def __init__(
        self,
        batch: TriggerBatch,
        callbacks: Mapping[LifecyclePhase | str, Callable[[FunctionHandler], None]],
        context: ExecutionContext | None = None,
        name: str | None = None,
    ) -> None:
        self._name = name
        self._callbacks = {LifecyclePhase.parse(phase): fn for phase, fn in callbacks.items()}
        super().__init__(batch, context)

    @property
    def handler_name(self) -> str:
        return self._name or super().handler_name

    def callback_table(self) -> CallbackTable:
        table = super().callback_table()
        for phase, fn in self._callbacks.items():
            table[phase] = lambda fn=fn: fn(self)
        return table
