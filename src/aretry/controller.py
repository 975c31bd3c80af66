r"""Retry controller driving sequential transport attempts.

The controller issues one attempt at a time through the transport,
asks the retry strategy about each outcome, and either schedules the
next attempt on the event loop after the configured delay or resolves
the request with the attempt's outcome.

Given ``max_attempts=N`` and a strategy that always asks for a retry,
``N + 1`` attempts are made: the budget is decremented before each
attempt and a retry is still scheduled when it reaches zero.
"""

from __future__ import annotations

__all__ = ["DIAGNOSTIC_TAG", "RetryRequest"]

import asyncio
import functools
import logging
from typing import TYPE_CHECKING, Any

from aretry.exceptions import AbortedError
from aretry.facade import HandleFacade
from aretry.guard import CompletionGuard, Outcome

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from aretry.config import RetryConfig
    from aretry.sinks import DiagnosticSink
    from aretry.transport import Transport, TransportHandle

logger: logging.Logger = logging.getLogger(__name__)

DIAGNOSTIC_TAG = "[aretry]"


class RetryRequest(HandleFacade):
    """Single logical request retried until success, rejection,
    exhaustion or abort.

    Instances are created by ``aretry.request_retry``, which also starts
    the first attempt. A controller is not reusable.

    Args:
        options: The transport options, without the retry keys.
        callback: The terminal callback, called once with
            ``(error, response, body)``.
        config: The retry configuration.
        sink: The diagnostic sink receiving retry progress messages.
        transport: The transport issuing each attempt.
        loop: The event loop used to schedule retries. Defaults to the
            running loop.

    Attributes:
        attempts_remaining: The attempt budget. Decremented right before
            each attempt, so it is negative once exhausted.
        attempts: The number of attempts issued so far.
        active_handle: The handle of the attempt in flight, if any.
        pending_timer: The scheduled retry, if any.
        result: The completion guard holding the terminal outcome.
    """

    def __init__(
        self,
        options: Mapping[str, Any],
        callback: Callable[[BaseException | None, Any, Any], Any],
        config: RetryConfig,
        sink: DiagnosticSink,
        transport: Transport,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.options = dict(options)
        self.config = config
        self.sink = sink
        self.transport = transport
        self._loop = loop if loop is not None else asyncio.get_running_loop()

        self.attempts_remaining = config.max_attempts
        self.attempts = 0
        self.active_handle: TransportHandle | None = None
        self.pending_timer: asyncio.TimerHandle | None = None
        self.result = CompletionGuard(callback)
        # Attempt whose outcome is still expected, None otherwise
        self._awaiting: int | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(attempts={self.attempts}, "
            f"attempts_remaining={self.attempts_remaining}, state={self.result.state.value})"
        )

    @property
    def retry_delay(self) -> float:
        return self.config.retry_delay

    @property
    def retry_strategy(self) -> Callable[[BaseException | None, Any], bool]:
        return self.config.retry_strategy

    @property
    def done(self) -> bool:
        return self.result.is_resolved

    @property
    def outcome(self) -> Outcome | None:
        return self.result.outcome

    def abort(self) -> None:
        """Abort the request.

        The scheduled retry is cancelled, the attempt in flight is
        aborted, and the request resolves with ``AbortedError`` unless
        it was already resolved.
        """
        if self.pending_timer is not None:
            self.pending_timer.cancel()
            self.pending_timer = None
        if self.active_handle is not None:
            self.active_handle.abort()
            self.active_handle = None
        self._awaiting = None
        if self.result.resolve(AbortedError()):
            logger.debug(f"Aborted after {self.attempts} attempt(s)")

    async def wait(self) -> Outcome:
        """Wait for the terminal outcome.

        Returns:
            The ``(error, response, body)`` outcome delivered to the
            callback.
        """
        waiter: asyncio.Future[Outcome] = self._loop.create_future()
        self.result.add_waiter(waiter)
        return await waiter

    def _try_until_fail(self) -> None:
        self.pending_timer = None
        self.attempts_remaining -= 1
        self.attempts += 1
        attempt = self.attempts
        self._awaiting = attempt
        logger.debug(f"Issuing attempt {attempt} (attempts remaining: {self.attempts_remaining})")
        handle = self.transport(
            self.options, functools.partial(self._on_attempt_complete, attempt)
        )
        # The transport may have completed synchronously
        if self._awaiting == attempt:
            self.active_handle = handle

    def _retry(self) -> None:
        try:
            self._try_until_fail()
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"Attempt {self.attempts} could not be issued: {exc!r}")
            self._awaiting = None
            self.result.resolve(exc)

    def _on_attempt_complete(
        self, attempt: int, error: BaseException | None, response: Any, body: Any
    ) -> None:
        if attempt != self._awaiting:
            logger.debug(f"Ignoring outcome of attempt {attempt} (state={self.result.state.value})")
            return
        self._awaiting = None
        self.active_handle = None

        try:
            should_retry = bool(self.retry_strategy(error, response))
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"Retry strategy failed on attempt {attempt}: {exc!r}")
            self.result.resolve(exc)
            return
        if should_retry and self.attempts_remaining >= 0:
            if self.attempts_remaining > 0:
                self.sink.log(
                    DIAGNOSTIC_TAG,
                    "Retrying...",
                    f"(attempts remaining: {self.attempts_remaining}, "
                    f"retry_delay: {self.retry_delay})",
                )
            else:
                self.sink.log(DIAGNOSTIC_TAG, "Retrying... (last attempt!)")
            self.pending_timer = self._loop.call_later(
                self.config.retry_delay_seconds, self._retry
            )
            return

        if should_retry:
            self.sink.log(DIAGNOSTIC_TAG, "attempts exhausted. Return callback...")
        logger.debug(f"Resolving after {attempt} attempt(s) (error={error!r})")
        self.result.resolve(error, response, body)
