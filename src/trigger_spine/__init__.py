"""
trigger-spine - Supervisory dispatch for record-change handlers.

Routes lifecycle notifications (before/after insert, update, delete and
after undelete) for a batch of records to handler instances, with three
cross-cutting controls:

- trigger_spine.core.loop_guard: per-instance recursion ceiling
- trigger_spine.core.bypass: runtime suppression of named handlers
- trigger_spine.core.deactivation: declarative, configuration-driven switch-off

Usage:
    from trigger_spine import ExecutionContext, LifecyclePhase, TriggerBatch, TriggerHandler

    class OpportunityHandler(TriggerHandler):
        def after_update(self):
            ...

    ctx = ExecutionContext.create()
    batch = TriggerBatch("Opportunity", LifecyclePhase.AFTER_UPDATE, new=[...], old=[...])
    result = OpportunityHandler(batch, ctx).run()
"""

__version__ = "0.1.0"

from trigger_spine.core.bypass import BypassRegistry
from trigger_spine.core.errors import HandlerCallbackError, LoopLimitExceededError, TriggerSpineError
from trigger_spine.core.phases import LifecyclePhase
from trigger_spine.framework.batch import Record, TriggerBatch
from trigger_spine.framework.context import ExecutionContext
from trigger_spine.framework.dispatcher import TriggerDispatcher
from trigger_spine.framework.handler import (
    DispatchResult,
    DispatchStatus,
    FunctionHandler,
    HandlerState,
    TriggerHandler,
)
from trigger_spine.framework.registry import register_handler

__all__ = [
    "BypassRegistry",
    "DispatchResult",
    "DispatchStatus",
    "ExecutionContext",
    "FunctionHandler",
    "HandlerCallbackError",
    "HandlerState",
    "LifecyclePhase",
    "LoopLimitExceededError",
    "Record",
    "TriggerBatch",
    "TriggerDispatcher",
    "TriggerHandler",
    "TriggerSpineError",
    "register_handler",
]
