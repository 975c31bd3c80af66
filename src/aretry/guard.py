r"""Single-assignment holder for the terminal outcome of a request.

The guard wraps the caller's terminal callback so it runs at most once,
whichever of natural completion, exhaustion or abort resolves the
request first.
"""

from __future__ import annotations

__all__ = ["CompletionGuard", "GuardState", "Outcome"]

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)


class Outcome(NamedTuple):
    """Terminal outcome delivered to the caller.

    Attributes:
        error: The error of the last attempt, or ``AbortedError`` on abort.
        response: The response of the last attempt, if any.
        body: The response body of the last attempt, if any.
    """

    error: BaseException | None
    response: Any = None
    body: Any = None


class GuardState(Enum):
    """Completion guard states.

    Attributes:
        PENDING: No outcome has been recorded yet.
        RESOLVED: The outcome is recorded and the callback was invoked.
    """

    PENDING = "pending"
    RESOLVED = "resolved"


class CompletionGuard:
    """Invoke a terminal callback exactly once.

    The first call to ``resolve`` records the outcome, switches the
    state to ``RESOLVED`` and invokes the callback. Every later call is
    a no-op. The state changes before the callback runs, so a callback
    that resolves the guard again (for example by calling ``abort``)
    does not fire twice.

    Args:
        callback: Called with ``(error, response, body)``.

    Example:
        ```pycon
        >>> from aretry.guard import CompletionGuard
        >>> calls = []
        >>> guard = CompletionGuard(lambda *args: calls.append(args))
        >>> guard.resolve(None, "response", "body")
        True
        >>> guard.resolve(ValueError("late"))
        False
        >>> calls
        [(None, 'response', 'body')]

        ```
    """

    def __init__(self, callback: Callable[[BaseException | None, Any, Any], Any]) -> None:
        self._callback = callback
        self._state = GuardState.PENDING
        self._outcome: Outcome | None = None
        self._waiters: list[asyncio.Future[Outcome]] = []

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(state={self._state.value})"

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def is_resolved(self) -> bool:
        return self._state is GuardState.RESOLVED

    @property
    def outcome(self) -> Outcome | None:
        r"""The recorded outcome, or ``None`` while pending."""
        return self._outcome

    def resolve(self, error: BaseException | None, response: Any = None, body: Any = None) -> bool:
        """Record the outcome and invoke the callback, once.

        Args:
            error: The terminal error, if any.
            response: The terminal response, if any.
            body: The terminal response body, if any.

        Returns:
            ``True`` if this call resolved the guard, ``False`` if it was
            already resolved.
        """
        if self._state is GuardState.RESOLVED:
            logger.debug(f"Ignoring late resolution (error={error!r})")
            return False
        self._state = GuardState.RESOLVED
        self._outcome = Outcome(error, response, body)
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(self._outcome)
        self._callback(error, response, body)
        return True

    def add_waiter(self, waiter: asyncio.Future[Outcome]) -> None:
        """Complete ``waiter`` with the outcome once the guard is
        resolved.

        Args:
            waiter: The future to complete. It is completed immediately
                if the guard is already resolved.
        """
        if self._outcome is not None:
            waiter.set_result(self._outcome)
            return
        self._waiters.append(waiter)
