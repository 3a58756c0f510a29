"""Dispatcher: the caller-side entry point for running handlers on a batch.

The dispatcher constructs one handler per registered class for a batch and
runs them in order, all sharing one ``ExecutionContext``. Handlers use it
to start cascades (a callback that writes records of another type hands
the new batch to ``self.dispatcher().dispatch(...)``), which keeps the
bypass registry shared and lets loop aborts propagate through the stack.
"""

from __future__ import annotations

from collections.abc import Sequence

from trigger_spine.core.logging import get_logger
from trigger_spine.framework.batch import TriggerBatch
from trigger_spine.framework.context import ExecutionContext
from trigger_spine.framework.handler import DispatchResult, DispatchStatus, TriggerHandler
from trigger_spine.framework.registry import get_handlers

log = get_logger(__name__)


class TriggerDispatcher:
    """
    Runs handlers for batches within one execution context.

    Stops after the first FAILED result. An ABORTED result (loop limit) is
    re-raised as ``LoopLimitExceededError``: a loop abort is a hard failure
    for the whole cascade, and raising it lets an enclosing handler's
    ``run()`` classify its own outcome as ABORTED too.
    """

    def __init__(self, context: ExecutionContext | None = None) -> None:
        self.context = context if context is not None else ExecutionContext.create()

    def dispatch(
        self,
        batch: TriggerBatch,
        handlers: Sequence[type[TriggerHandler]] | None = None,
    ) -> list[DispatchResult]:
        """
        Run every handler for the batch's entity type.

        Args:
            batch: Records, entity type and phase
            handlers: Explicit handler classes; defaults to the registry

        Returns:
            One DispatchResult per handler that was run

        Raises:
            LoopLimitExceededError: If any handler aborted on its loop ceiling
        """
        handler_classes = list(handlers) if handlers is not None else get_handlers(batch.entity_type)
        if not handler_classes:
            log.debug("dispatch_no_handlers", entity_type=batch.entity_type, phase=batch.phase.value)
            return []

        results: list[DispatchResult] = []
        for handler_cls in handler_classes:
            result = handler_cls(batch, self.context).run()
            results.append(result)

            if result.status == DispatchStatus.ABORTED and result.error is not None:
                raise result.error

            if result.status == DispatchStatus.FAILED:
                log.warning("dispatch_stopped", failed_at=result.handler, correlation_id=result.correlation_id)
                break

        return results
