r"""Shared test helpers for the retry controller tests.

This module provides a scripted transport that completes attempts on
the event loop without any network access.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from aretry.transport import EventSource

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence


def always_retry(error: BaseException | None, response: Any) -> bool:  # noqa: ARG001
    return True


def never_retry(error: BaseException | None, response: Any) -> bool:  # noqa: ARG001
    return False


class FakeHandle(EventSource):
    """Transport handle completed by the test or by ``FakeTransport``."""

    def __init__(self, callback: Callable[..., None]) -> None:
        super().__init__()
        self.callback = callback
        self.aborted = False
        self.started = False
        self.chunks: list[bytes | str] = []
        self.ended = False
        self.destinations: list[Any] = []

    def start(self) -> None:
        self.started = True

    def write(self, data: bytes | str) -> bool:
        self.chunks.append(data)
        return True

    def end(self, data: bytes | str | None = None) -> None:
        if data is not None:
            self.chunks.append(data)
        self.ended = True

    def pipe(self, destination: Any) -> Any:
        self.destinations.append(destination)
        return destination

    def abort(self) -> None:
        self.aborted = True

    def complete(self, error: BaseException | None = None, response: Any = None, body: Any = None) -> None:
        self.callback(error, response, body)


class FakeTransport:
    """Transport returning scripted outcomes.

    With ``auto=True`` each attempt completes on the next event loop
    iteration with the next outcome of ``outcomes``; the last outcome is
    repeated once the script is exhausted. With ``auto=False`` the test
    completes the handles itself.

    Args:
        outcomes: Sequence of ``(error, response, body)`` tuples.
        auto: Whether attempts complete automatically.
        synchronous: Whether attempts complete before the handle is
            returned.
    """

    def __init__(
        self,
        outcomes: Sequence[tuple[Any, Any, Any]] = ((None, None, None),),
        auto: bool = True,
        synchronous: bool = False,
    ) -> None:
        self.outcomes = list(outcomes)
        self.auto = auto
        self.synchronous = synchronous
        self.calls: list[Mapping[str, Any]] = []
        self.call_times: list[float] = []
        self.handles: list[FakeHandle] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def __call__(self, options: Mapping[str, Any], callback: Callable[..., None]) -> FakeHandle:
        loop = asyncio.get_running_loop()
        handle = FakeHandle(callback)
        outcome = self.outcomes[min(len(self.handles), len(self.outcomes) - 1)]
        self.calls.append(options)
        self.call_times.append(loop.time())
        self.handles.append(handle)
        if self.synchronous:
            handle.complete(*outcome)
        elif self.auto:
            loop.call_soon(handle.complete, *outcome)
        return handle
