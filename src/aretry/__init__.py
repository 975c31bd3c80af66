r"""aretry - Retry a single HTTP request with a fixed delay.

This package wraps one outbound request with automatic retry: each
attempt's error and response are inspected by a retry strategy and, while
the attempt budget allows it, the request is sent again after a fixed
delay. The terminal outcome ``(error, response, body)`` is delivered
exactly once, to a callback and to ``RetryRequest.wait``.

Example:
    ```pycon
    >>> import asyncio
    >>> from aretry import request_retry
    >>> async def main():
    ...     request = request_retry(
    ...         {"url": "https://api.example.com/data", "max_attempts": 3, "retry_delay": 500},
    ...     )
    ...     request.on("response", lambda response: print(response.status_code))
    ...     return await request.wait()
    ...
    >>> error, response, body = asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "AbortedError",
    "HandleUnavailableError",
    "HttpxTransport",
    "LoggingSink",
    "NullSink",
    "Outcome",
    "RetryConfig",
    "RetryRequest",
    "__version__",
    "http_error",
    "http_or_network_error",
    "network_error",
    "request_retry",
    "request_retry_async",
]

from importlib.metadata import PackageNotFoundError, version

from aretry.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_DELAY, RetryConfig
from aretry.controller import RetryRequest
from aretry.exceptions import AbortedError, HandleUnavailableError
from aretry.factory import request_retry, request_retry_async
from aretry.guard import Outcome
from aretry.sinks import LoggingSink, NullSink
from aretry.strategies import http_error, http_or_network_error, network_error
from aretry.transport import HttpxTransport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
