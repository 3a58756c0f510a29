"""
Structured error types for trigger-spine.

Every failure that can leave the dispatch layer is a ``TriggerSpineError``
carrying a category, structured context (handler, entity type, phase,
correlation id) and an optional chained cause. Callers can log ``to_dict()``
output directly or route on ``category``.

Manifesto:
    - **Typed hierarchy:** Loop aborts, callback failures and lookup
      failures are different things and are handled differently
    - **Rich context:** Errors carry the handler, entity type and phase
    - **Error chaining:** The original callback exception is preserved
    - **No retries:** Nothing in this package retries; ``retryable`` is
      informational for callers that want to

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                    TriggerSpineError                         │
        │             (category, context, cause)                       │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  LoopLimitExceededError     HandlerCallbackError             │
        │  (LOOP_LIMIT, fatal)        (CALLBACK, isolated)             │
        │                                                              │
        │  ConfigError                DeactivationLookupError          │
        │  (CONFIG)                   (LOOKUP, recovered fail-open)    │
        │     │                                                        │
        │  InvalidConfigError         TriggerContextError              │
        │  InvalidPhaseError          (CONTEXT)                        │
        └─────────────────────────────────────────────────────────────┘

Tags:
    errors, exception-hierarchy, error-context, trigger-spine

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    LOOP_LIMIT = "LOOP_LIMIT"
    CALLBACK = "CALLBACK"
    LOOKUP = "LOOKUP"
    CONFIG = "CONFIG"
    CONTEXT = "CONTEXT"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only fields that are set show up in ``to_dict()``, so the same context
    type serves loop aborts (no correlation id) and callback failures (no
    loop counts).

    Examples:
        >>> ctx = ErrorContext(handler="AccountHandler", entity_type="Account")
        >>> ctx.to_dict()
        {'handler': 'AccountHandler', 'entity_type': 'Account'}

    Attributes:
        handler: Handler identity the error occurred in
        entity_type: Entity type of the batch being processed
        phase: Lifecycle phase value
        correlation_id: Identifier shared by the sink report and record errors
        execution_id: Identifier of the owning execution context
        metadata: Additional key-value pairs
    """

    handler: str | None = None
    entity_type: str | None = None
    phase: str | None = None
    correlation_id: str | None = None
    execution_id: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["handler", "entity_type", "phase", "correlation_id", "execution_id"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TriggerSpineError(Exception):
    """
    Base exception for all trigger-spine errors.

    Subclasses set ``default_category`` to classify themselves. Context can
    be attached after creation with the fluent ``with_context()``:

        >>> err = TriggerSpineError("boom").with_context(handler="AccountHandler")
        >>> err.context.handler
        'AccountHandler'
        >>> err.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TriggerSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise TriggerContextError("No batch").with_context(handler="AccountHandler")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DISPATCH ERRORS
# =============================================================================


class LoopLimitExceededError(TriggerSpineError):
    """
    A handler instance was entered more times than its max loop count allows.

    This is a deliberate abort. The supervisor never isolates it as a
    callback failure: it surfaces as an ABORTED result and, when raised from
    inside a cascade, propagates through every enclosing callback.
    """

    default_category = ErrorCategory.LOOP_LIMIT

    def __init__(self, handler: str, max_count: int, count: int):
        super().__init__(f"Maximum loop count of {max_count} reached in {handler}")
        self.handler = handler
        self.max_count = max_count
        self.count = count
        self.context.handler = handler
        self.context.metadata.update({"max_loop_count": max_count, "loop_count": count})


class HandlerCallbackError(TriggerSpineError):
    """Wraps an exception raised by a phase callback, tagged with a correlation id."""

    default_category = ErrorCategory.CALLBACK

    def __init__(self, message: str, *, correlation_id: str, cause: Exception | None = None, **kwargs: Any):
        super().__init__(message, cause=cause, **kwargs)
        self.correlation_id = correlation_id
        self.context.correlation_id = correlation_id


class TriggerContextError(TriggerSpineError):
    """A handler was constructed or run without a valid trigger batch."""

    default_category = ErrorCategory.CONTEXT


class DeactivationLookupError(TriggerSpineError):
    """Reading deactivation configuration failed. Always recovered as "not deactivated"."""

    default_category = ErrorCategory.LOOKUP
    default_retryable = True


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(TriggerSpineError):
    """Invalid configuration supplied by the programmer."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """A configuration value has the wrong type or range."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        super().__init__(message or f"Invalid value for '{key}': {value!r}")
        self.key = key
        self.value = value
        self.context.metadata["config_key"] = key


class InvalidPhaseError(ConfigError):
    """A value could not be parsed as a lifecycle phase."""

    def __init__(self, value: Any):
        super().__init__(f"Unknown lifecycle phase: {value!r}")
        self.value = value


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TriggerSpineError",
    "LoopLimitExceededError",
    "HandlerCallbackError",
    "TriggerContextError",
    "DeactivationLookupError",
    "ConfigError",
    "InvalidConfigError",
    "InvalidPhaseError",
]
