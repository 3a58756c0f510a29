"""Loop guard: per-handler-instance recursion ceiling.

A cascade (an update handler that itself updates records of the same type)
re-enters the supervisor. The guard counts entries into one handler
instance and aborts once the configured ceiling is passed. It is owned by
a single handler instance and never shared; callers that need to bound
recursion across instances must track that themselves.
"""

from __future__ import annotations

from trigger_spine.core.errors import InvalidConfigError, LoopLimitExceededError
from trigger_spine.core.logging import get_logger

logger = get_logger(__name__)


class LoopGuard:
    """
    Counter with an optional ceiling.

    With no ceiling (the default) ``add_to_loop_count()`` never fails. With
    a ceiling of N, the N-th call succeeds and the (N+1)-th raises
    ``LoopLimitExceededError``. The count only ever increases.

    Example:
        >>> guard = LoopGuard("OpportunityHandler")
        >>> guard.set_max_loop_count(1)
        >>> guard.add_to_loop_count()
        >>> guard.add_to_loop_count()
        Traceback (most recent call last):
        ...
        trigger_spine.core.errors.LoopLimitExceededError: Maximum loop count of 1 reached in OpportunityHandler
    """

    def __init__(self, handler: str, max_count: int | None = None) -> None:
        self.handler = handler
        self._count = 0
        self._max_count: int | None = None
        if max_count is not None:
            self.set_max_loop_count(max_count)

    @property
    def count(self) -> int:
        return self._count

    @property
    def max_count(self) -> int | None:
        return self._max_count

    @property
    def exceeded(self) -> bool:
        return self._max_count is not None and self._count > self._max_count

    def set_max_loop_count(self, max_count: int) -> None:
        """Set the ceiling.

        Raises:
            InvalidConfigError: If max_count is not a non-negative integer
        """
        if isinstance(max_count, bool) or not isinstance(max_count, int) or max_count < 0:
            raise InvalidConfigError(
                "max_loop_count",
                max_count,
                f"max_loop_count must be a non-negative integer, got {max_count!r}",
            ).with_context(handler=self.handler)
        self._max_count = max_count

    def clear_max_loop_count(self) -> None:
        """Remove the ceiling; the guard becomes permissive."""
        self._max_count = None

    def add_to_loop_count(self) -> None:
        """Record one more entry into the handler.

        Raises:
            LoopLimitExceededError: If a ceiling is set and the new count exceeds it
        """
        self._count += 1
        if self.exceeded:
            logger.warning(
                "loop_limit_exceeded",
                handler=self.handler,
                loop_count=self._count,
                max_loop_count=self._max_count,
            )
            raise LoopLimitExceededError(self.handler, self._max_count, self._count)

    def __repr__(self) -> str:
        return f"LoopGuard(handler={self.handler!r}, count={self._count}, max_count={self._max_count})"
