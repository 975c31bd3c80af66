r"""Retry strategies deciding whether an attempt should be retried.

A retry strategy is a plain function called with the error and the
response of an attempt, where at least one of them is not ``None``. It
returns ``True`` when the request should be attempted again.

Example:
    ```pycon
    >>> from unittest.mock import Mock
    >>> import httpx
    >>> from aretry.strategies import http_or_network_error
    >>> http_or_network_error(httpx.ConnectError("boom"), None)
    True
    >>> http_or_network_error(None, Mock(spec=httpx.Response, status_code=503))
    True
    >>> http_or_network_error(None, Mock(spec=httpx.Response, status_code=404))
    False

    ```
"""

from __future__ import annotations

__all__ = [
    "NETWORK_ERROR_TYPES",
    "RetryStrategyFunc",
    "http_error",
    "http_or_network_error",
    "network_error",
]

import socket
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from collections.abc import Callable

    RetryStrategyFunc = Callable[[BaseException | None, Any], bool]
else:
    RetryStrategyFunc = Any

# Transport-level failures: connection refused/reset, DNS failures,
# timeouts, broken pipes and protocol errors
NETWORK_ERROR_TYPES: tuple[type[BaseException], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
    socket.gaierror,
)


def http_error(error: BaseException | None, response: Any) -> bool:  # noqa: ARG001
    """Return ``True`` if the response has a 5xx status code.

    Args:
        error: The attempt's transport error, if any. Ignored.
        response: The attempt's response, if any.

    Returns:
        ``True`` if the server answered with a server-side error.

    Example:
        ```pycon
        >>> from unittest.mock import Mock
        >>> import httpx
        >>> from aretry.strategies import http_error
        >>> http_error(None, Mock(spec=httpx.Response, status_code=500))
        True
        >>> http_error(None, Mock(spec=httpx.Response, status_code=200))
        False
        >>> http_error(None, None)
        False

        ```
    """
    return response is not None and 500 <= response.status_code < 600


def network_error(error: BaseException | None, response: Any) -> bool:  # noqa: ARG001
    """Return ``True`` if the attempt failed with a transport-level
    error.

    Args:
        error: The attempt's transport error, if any.
        response: The attempt's response, if any. Ignored.

    Returns:
        ``True`` if the error is a network failure worth retrying.

    Example:
        ```pycon
        >>> import httpx
        >>> from aretry.strategies import network_error
        >>> network_error(httpx.ReadTimeout("timed out"), None)
        True
        >>> network_error(ValueError("not a network error"), None)
        False
        >>> network_error(None, None)
        False

        ```
    """
    return isinstance(error, NETWORK_ERROR_TYPES)


def http_or_network_error(error: BaseException | None, response: Any) -> bool:
    """Return ``True`` on a transport-level error or a 5xx response.

    This is the default retry strategy.

    Args:
        error: The attempt's transport error, if any.
        response: The attempt's response, if any.

    Returns:
        ``True`` if the request should be retried.
    """
    return network_error(error, response) or http_error(error, response)
