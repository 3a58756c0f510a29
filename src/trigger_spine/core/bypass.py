"""Bypass registry for runtime handler suppression.

A bypassed handler is skipped entirely by the supervisor for the rest of
the execution, or until it is cleared. Typical use is a handler that
performs a DML-like side effect and does not want a sibling handler to
react to it:

    >>> from trigger_spine.core.bypass import BypassRegistry
    >>> registry = BypassRegistry()
    >>> registry.bypass("AccountHandler")
    >>> registry.is_bypassed("AccountHandler")
    True
    >>> with registry.bypassed("ContactHandler"):
    ...     registry.is_bypassed("ContactHandler")
    True
    >>> registry.is_bypassed("ContactHandler")
    False

Manifesto:
    Classic trigger frameworks keep one static set per transaction. Here the
    registry is an ordinary object owned by an ``ExecutionContext``:

    - **Shared within an execution:** every handler built with the same
      context sees every mutation, including ones made by other handlers
    - **Isolated across executions:** two contexts never share a registry,
      so tests and concurrent callers cannot leak bypasses into each other
    - **Total operations:** nothing here raises; clearing an identity that
      was never bypassed is a no-op

Guardrails:
    - SINGLE-THREADED: no locking; one registry per logical execution
    - Bypasses persist until cleared or the context is discarded

Tags:
    bypass, suppression, registry, trigger-spine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from trigger_spine.core.logging import get_logger

logger = get_logger(__name__)


def handler_identity(handler: Any) -> str:
    """Resolve a handler identity from a string, handler class or handler instance.

    Classes use their ``name`` attribute when set, otherwise ``__name__``.
    """
    if isinstance(handler, str):
        return handler
    cls = handler if isinstance(handler, type) else type(handler)
    return getattr(cls, "name", None) or cls.__name__


class BypassRegistry:
    """Set of suppressed handler identities for one execution context."""

    def __init__(self, identities: Any = ()) -> None:
        self._bypassed: set[str] = {handler_identity(i) for i in identities}

    def bypass(self, identity: Any) -> None:
        """Suppress a handler. Idempotent."""
        name = handler_identity(identity)
        if name not in self._bypassed:
            self._bypassed.add(name)
            logger.debug("bypass_added", handler=name)

    def clear_bypass(self, identity: Any) -> None:
        """Stop suppressing a handler. No-op if it was not bypassed."""
        name = handler_identity(identity)
        if name in self._bypassed:
            self._bypassed.discard(name)
            logger.debug("bypass_cleared", handler=name)

    def is_bypassed(self, identity: Any) -> bool:
        return handler_identity(identity) in self._bypassed

    def clear_all_bypasses(self) -> None:
        """Remove every bypass."""
        if self._bypassed:
            logger.debug("bypass_cleared_all", count=len(self._bypassed))
        self._bypassed.clear()

    def list_bypassed(self) -> list[str]:
        return sorted(self._bypassed)

    @contextmanager
    def bypassed(self, *identities: Any) -> Iterator[BypassRegistry]:
        """Temporarily bypass handlers for the duration of a block.

        Identities that were already bypassed before the block stay
        bypassed afterwards.

        Example:
            >>> with registry.bypassed("OpportunityHandler"):
            ...     dispatcher.dispatch(batch)
        """
        added = [handler_identity(i) for i in identities if not self.is_bypassed(i)]
        for name in added:
            self.bypass(name)
        try:
            yield self
        finally:
            for name in added:
                self.clear_bypass(name)

    def __contains__(self, identity: Any) -> bool:
        return self.is_bypassed(identity)

    def __len__(self) -> int:
        return len(self._bypassed)

    def __repr__(self) -> str:
        return f"BypassRegistry({self.list_bypassed()!r})"
