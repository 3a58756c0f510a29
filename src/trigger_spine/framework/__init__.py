"""
trigger-spine framework - handler base classes and dispatch.

This module provides:
- TriggerHandler / FunctionHandler (the dispatch supervisor)
- TriggerBatch / Record (caller-supplied batches)
- ExecutionContext (state shared across one execution)
- Handler registry and dispatcher
"""

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
from trigger_spine.framework.registry import clear_registry, get_handlers, list_handlers, register_handler

__all__ = [
    # Batches
    "Record",
    "TriggerBatch",
    # Context
    "ExecutionContext",
    # Handlers
    "TriggerHandler",
    "FunctionHandler",
    "HandlerState",
    "DispatchResult",
    "DispatchStatus",
    # Registry / dispatch
    "register_handler",
    "get_handlers",
    "list_handlers",
    "clear_registry",
    "TriggerDispatcher",
]
