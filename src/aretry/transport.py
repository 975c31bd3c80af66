r"""Transport contract and the default httpx-based transport.

A transport is a callable taking the request options and a completion
callback, and returning a handle for the in-flight attempt. The callback
is later invoked with ``(error, response, body)``, unless the attempt is
aborted first.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_LISTENERS",
    "EventSource",
    "HttpxRequestHandle",
    "HttpxTransport",
    "Transport",
    "TransportCallback",
    "TransportHandle",
]

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    TransportCallback = Callable[[BaseException | None, Any, Any], None]
else:
    TransportCallback = Any

logger: logging.Logger = logging.getLogger(__name__)

# Number of listeners per event above which a warning is logged
DEFAULT_MAX_LISTENERS = 10


@runtime_checkable
class TransportHandle(Protocol):
    """Operations every in-flight transport attempt must support."""

    def on(self, event: str, listener: Callable[..., Any]) -> Any: ...

    def once(self, event: str, listener: Callable[..., Any]) -> Any: ...

    def remove_listener(self, event: str, listener: Callable[..., Any]) -> Any: ...

    def emit(self, event: str, *args: Any) -> bool: ...

    def set_max_listeners(self, n: int) -> Any: ...

    def start(self) -> None: ...

    def write(self, data: bytes | str) -> bool: ...

    def end(self, data: bytes | str | None = None) -> None: ...

    def pipe(self, destination: Any) -> Any: ...

    def abort(self) -> None: ...


class Transport(Protocol):
    """Callable issuing one attempt and returning its handle."""

    def __call__(
        self, options: Mapping[str, Any], callback: TransportCallback
    ) -> TransportHandle: ...


class EventSource:
    """Minimal listener registry used by transport handles.

    Example:
        ```pycon
        >>> from aretry.transport import EventSource
        >>> source = EventSource()
        >>> seen = []
        >>> _ = source.once("response", seen.append)
        >>> source.emit("response", 200), source.emit("response", 500)
        (True, False)
        >>> seen
        [200]

        ```
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Callable[..., Any], bool]]] = {}
        self._max_listeners = DEFAULT_MAX_LISTENERS

    @property
    def max_listeners(self) -> int:
        return self._max_listeners

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def on(self, event: str, listener: Callable[..., Any]) -> EventSource:
        self._add_listener(event, listener, once=False)
        return self

    def once(self, event: str, listener: Callable[..., Any]) -> EventSource:
        self._add_listener(event, listener, once=True)
        return self

    def remove_listener(self, event: str, listener: Callable[..., Any]) -> EventSource:
        listeners = self._listeners.get(event, [])
        for i, (registered, _) in enumerate(listeners):
            if registered == listener:
                del listeners[i]
                break
        return self

    def emit(self, event: str, *args: Any) -> bool:
        """Call the listeners of ``event`` in registration order.

        Args:
            event: The event name.
            *args: The arguments passed to each listener.

        Returns:
            ``True`` if the event had listeners.
        """
        listeners = self._listeners.get(event, [])
        if not listeners:
            return False
        self._listeners[event] = [entry for entry in listeners if not entry[1]]
        for listener, _ in listeners:
            listener(*args)
        return True

    def set_max_listeners(self, n: int) -> EventSource:
        """Set the per-event listener count above which a warning is
        logged.

        Args:
            n: The new limit. ``0`` means unlimited.

        Raises:
            ValueError: If ``n`` is negative.
        """
        if n < 0:
            msg = f"n must be >= 0, got {n}"
            raise ValueError(msg)
        self._max_listeners = n
        return self

    def _add_listener(self, event: str, listener: Callable[..., Any], once: bool) -> None:
        listeners = self._listeners.setdefault(event, [])
        listeners.append((listener, once))
        if self._max_listeners and len(listeners) > self._max_listeners:
            logger.warning(
                f"Possible listener leak: {len(listeners)} '{event}' listeners added "
                f"(max_listeners={self._max_listeners})"
            )


class HttpxRequestHandle(EventSource):
    """One in-flight HTTP attempt sent with ``httpx.AsyncClient``.

    The request is dispatched on the next event loop iteration, so body
    chunks written right after creation are sent. ``start`` or ``end``
    dispatch it immediately.

    Events:
        ``request``: the ``httpx.Request`` about to be sent.
        ``response``: the ``httpx.Response`` once received.
        ``data``: the raw response content.
        ``end``: the response was fully delivered.
        ``error``: the exception raised by the attempt.
        ``abort``: the attempt was aborted.

    Args:
        options: The request options. ``url`` is required, ``method``
            defaults to ``"GET"`` and the other keys are passed to
            ``httpx.AsyncClient.build_request``.
        callback: Called with ``(error, response, body)`` when the
            attempt completes. Never called after ``abort``.
        client: Optional client to send the request with. A short-lived
            client is created when omitted.
        loop: The event loop to run on. Defaults to the running loop.

    Raises:
        ValueError: If ``url`` is missing from the options.
    """

    def __init__(
        self,
        options: Mapping[str, Any],
        callback: TransportCallback,
        client: httpx.AsyncClient | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__()
        if options.get("url") is None:
            msg = "options must contain a 'url'"
            raise ValueError(msg)
        self._options = dict(options)
        self._callback = callback
        self._client = client
        self._loop = loop if loop is not None else asyncio.get_running_loop()
        self._chunks: list[bytes] = []
        self._destinations: list[Any] = []
        self._task: asyncio.Task[None] | None = None
        self.aborted = False
        self._dispatch = self._loop.call_soon(self.start)

    def __repr__(self) -> str:
        method = self._options.get("method", "GET")
        return f"{self.__class__.__qualname__}({method} {self._options['url']})"

    @property
    def started(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None or self.aborted:
            return
        self._dispatch.cancel()
        self._task = self._loop.create_task(self._run())

    def write(self, data: bytes | str) -> bool:
        if self._task is not None:
            msg = "Cannot write to a request that was already dispatched"
            raise RuntimeError(msg)
        self._chunks.append(data.encode() if isinstance(data, str) else bytes(data))
        return True

    def end(self, data: bytes | str | None = None) -> None:
        if data is not None:
            self.write(data)
        self.start()

    def pipe(self, destination: Any) -> Any:
        """Write the response content into ``destination`` once it
        arrives.

        ``destination.end()`` is called afterwards when it exists.

        Args:
            destination: An object with a ``write`` method.

        Returns:
            The destination, to allow chaining.
        """
        self._destinations.append(destination)
        return destination

    def abort(self) -> None:
        if self.aborted:
            return
        self.aborted = True
        self._dispatch.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.debug(f"Aborted {self!r}")
        self.emit("abort")

    def _build_request(self, client: httpx.AsyncClient) -> httpx.Request:
        options = dict(self._options)
        method = options.pop("method", "GET")
        url = options.pop("url")
        if self._chunks and not {"content", "data", "files", "json"} & options.keys():
            options["content"] = b"".join(self._chunks)
        return client.build_request(method, url, **options)

    async def _send(self, client: httpx.AsyncClient) -> httpx.Response:
        request = self._build_request(client)
        self.emit("request", request)
        response = await client.send(request)
        self.emit("response", response)
        return response

    async def _run(self) -> None:
        try:
            if self._client is None:
                async with httpx.AsyncClient() as client:
                    response = await self._send(client)
            else:
                response = await self._send(self._client)
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"{self!r} failed: {exc!r}")
            self.emit("error", exc)
            self._callback(exc, None, None)
            return

        self.emit("data", response.content)
        for destination in self._destinations:
            destination.write(response.content)
            if callable(getattr(destination, "end", None)):
                destination.end()
        self.emit("end")
        self._callback(None, response, response.text)


class HttpxTransport:
    """Default transport sending each attempt with httpx.

    Args:
        client: Optional ``httpx.AsyncClient`` shared by all attempts.
            It is not closed by the transport.
        loop: The event loop the attempts run on. Defaults to the
            running loop when an attempt is issued.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from aretry.transport import HttpxTransport
        >>> async def main():
        ...     transport = HttpxTransport()
        ...     done = asyncio.get_running_loop().create_future()
        ...     transport({"url": "https://example.com"}, lambda *args: done.set_result(args))
        ...     return await done
        ...
        >>> error, response, body = asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.client = client
        self.loop = loop

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(client={self.client!r})"

    def __call__(
        self, options: Mapping[str, Any], callback: TransportCallback
    ) -> HttpxRequestHandle:
        return HttpxRequestHandle(options, callback, client=self.client, loop=self.loop)
