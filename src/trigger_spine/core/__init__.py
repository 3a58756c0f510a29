"""trigger-spine core -- framework-independent primitives.

Architecture::

    errors.py          Error hierarchy (TriggerSpineError, LoopLimitExceededError)
    result.py          Ok / Err values
    phases.py          LifecyclePhase enum
    bypass.py          BypassRegistry
    loop_guard.py      LoopGuard
    deactivation.py    DeactivationLookup protocol + backends (fail-open)
    error_sink.py      ErrorReport + sinks
    settings.py        pydantic-settings configuration
    logging.py         structlog configuration
    orm.py             SQLAlchemy table for deactivation records
"""

from trigger_spine.core.bypass import BypassRegistry, handler_identity
from trigger_spine.core.deactivation import (
    DeactivationLookup,
    EnvDeactivationLookup,
    FailOpenLookup,
    SqlDeactivationLookup,
    StaticDeactivationLookup,
    build_lookup,
)
from trigger_spine.core.error_sink import (
    CallbackErrorSink,
    ErrorReport,
    ErrorSink,
    LoggingErrorSink,
    MemoryErrorSink,
)
from trigger_spine.core.loop_guard import LoopGuard
from trigger_spine.core.phases import LifecyclePhase

__all__ = [
    "BypassRegistry",
    "handler_identity",
    "DeactivationLookup",
    "EnvDeactivationLookup",
    "FailOpenLookup",
    "SqlDeactivationLookup",
    "StaticDeactivationLookup",
    "build_lookup",
    "CallbackErrorSink",
    "ErrorReport",
    "ErrorSink",
    "LoggingErrorSink",
    "MemoryErrorSink",
    "LoopGuard",
    "LifecyclePhase",
]
