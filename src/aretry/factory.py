r"""Entry points creating and starting retried requests."""

from __future__ import annotations

__all__ = ["request_retry", "request_retry_async"]

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from aretry.config import split_options
from aretry.controller import RetryRequest
from aretry.sinks import LoggingSink
from aretry.transport import HttpxTransport

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from aretry.guard import Outcome
    from aretry.sinks import DiagnosticSink
    from aretry.transport import Transport

logger: logging.Logger = logging.getLogger(__name__)


def _noop(*args: Any) -> None:
    pass


def request_retry(
    options: Mapping[str, Any] | None,
    callback: Callable[[BaseException | None, Any, Any], Any] | None = None,
    sink: DiagnosticSink | None = None,
    *,
    transport: Transport | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
) -> RetryRequest:
    """Send a request, retrying it with a fixed delay on failure.

    The first attempt is issued before this function returns, so
    listeners can be attached to the returned request right away.

    Args:
        options: The request options. ``max_attempts`` (default 5),
            ``retry_delay`` in milliseconds (default 5000) and
            ``retry_strategy`` (default ``http_or_network_error``) control
            the retries. The other keys (``url``, ``method``, ``headers``,
            ``json``, ...) are passed to the transport.
        callback: Called once with ``(error, response, body)``. A
            non-callable value is replaced by a no-op.
        sink: The diagnostic sink receiving retry progress messages.
            Defaults to a ``LoggingSink`` writing to the
            ``aretry.diagnostics`` logger at INFO level. Python only
            shows WARNING and above until logging is configured, so call
            ``logging.basicConfig(level=logging.INFO)`` or attach a
            handler to see these messages.
        transport: The transport issuing each attempt. Defaults to an
            ``HttpxTransport`` bound to ``loop``.
        loop: The event loop used to schedule retries and run the
            default transport. Defaults to the running loop.

    Returns:
        The started ``RetryRequest``.

    Raises:
        TypeError: If ``max_attempts`` or ``retry_delay`` has the wrong type.
        ValueError: If ``max_attempts`` or ``retry_delay`` is negative.
        RuntimeError: If no event loop is running and none is given.

    Example:
        ```pycon
        >>> import asyncio
        >>> from aretry import request_retry
        >>> async def main():
        ...     request = request_retry(
        ...         {"url": "https://api.example.com/data", "max_attempts": 2, "retry_delay": 100},
        ...         lambda error, response, body: print(error, response),
        ...     )
        ...     return await request.wait()
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """
    transport_options, config = split_options(options)
    if loop is None:
        loop = asyncio.get_running_loop()
    request = RetryRequest(
        transport_options,
        callback if callable(callback) else _noop,
        config=config,
        sink=sink if sink is not None else LoggingSink(),
        transport=transport if transport is not None else HttpxTransport(loop=loop),
        loop=loop,
    )
    logger.debug(f"Starting {request!r} with {config!r}")
    request._try_until_fail()
    return request


async def request_retry_async(
    options: Mapping[str, Any] | None,
    sink: DiagnosticSink | None = None,
    *,
    transport: Transport | None = None,
) -> Outcome:
    """Send a request with retries and wait for its outcome.

    Args:
        options: The request options, as for ``request_retry``.
        sink: The diagnostic sink receiving retry progress messages.
        transport: The transport issuing each attempt.

    Returns:
        The ``(error, response, body)`` outcome of the request.

    Example:
        ```pycon
        >>> import asyncio
        >>> from aretry import request_retry_async
        >>> error, response, body = asyncio.run(
        ...     request_retry_async({"url": "https://api.example.com/data"})
        ... )  # doctest: +SKIP

        ```
    """
    request = request_retry(options, sink=sink, transport=transport)
    try:
        return await request.wait()
    except BaseException:
        request.abort()
        raise
