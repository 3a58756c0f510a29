"""
Result envelope for success/failure values.

``Ok[T]`` and ``Err[T]`` make the success and failure paths explicit without
exception-based control flow. trigger-spine uses them at the edge where a
collaborator may throw (deactivation lookups) so the fail-open default is a
single ``unwrap_or(False)`` rather than a nested try/except at every call
site.

Examples:
    >>> from trigger_spine.core.result import Ok, Err, try_result
    >>> try_result(lambda: 1 / 0).unwrap_or(0)
    0
    >>> Ok(2).map(lambda x: x * 10).unwrap()
    20
    >>> match try_result(lambda: {"Account": True}["Account"]):
    ...     case Ok(value):
    ...         print(value)
    ...     case Err(error):
    ...         print("failed", error)
    True

Guardrails:
    ❌ DON'T: Call unwrap() on a lookup result just to get a bool
    ✅ DO: Supply the fail-open default with unwrap_or(False)

Tags:
    result-pattern, error-handling, trigger-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the wrapped value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return the wrapped value; ``default`` is ignored."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Apply ``f`` to the wrapped value."""
        return Ok(f(self.value))

    def inspect_err(self, f: Callable[[Exception], None]) -> Result[T]:
        """No error to inspect; returns self."""
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """
    Failed result containing an error.

    ``map()`` passes the Err through unchanged; ``unwrap()`` raises the
    wrapped error.
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the wrapped error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        return self  # type: ignore[return-value]

    def inspect_err(self, f: Callable[[Exception], None]) -> Result[T]:
        """Pass the error to ``f`` (usually a logger) and return self."""
        f(self.error)
        return self

    def to_dict(self) -> dict[str, Any]:
        if hasattr(self.error, "to_dict"):
            return {"ok": False, "error": self.error.to_dict()}
        return {"ok": False, "error": {"error_type": type(self.error).__name__, "message": str(self.error)}}

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Execute a zero-argument function and wrap the outcome.

    Returns ``Ok`` with the return value, or ``Err`` with the raised
    exception. Wrap calls that need arguments in a lambda.
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


__all__ = ["Ok", "Err", "Result", "try_result"]
