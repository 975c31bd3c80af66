r"""Unit tests for the request factories."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import Mock, patch

import httpx
import pytest

from aretry import (
    AbortedError,
    HttpxTransport,
    LoggingSink,
    RetryConfig,
    RetryRequest,
    http_error,
    http_or_network_error,
    request_retry,
    request_retry_async,
)
from aretry.transport import HttpxRequestHandle
from tests.unit.helpers import FakeTransport, never_retry


@pytest.mark.asyncio
async def test_request_retry_starts_first_attempt(mock_callback: Mock, mock_sink: Mock) -> None:
    """Test the first attempt is issued before the request is returned."""
    transport = FakeTransport(auto=False)
    request = request_retry(
        {"url": "https://example.com"}, mock_callback, mock_sink, transport=transport
    )

    assert isinstance(request, RetryRequest)
    assert transport.call_count == 1
    assert request.active_handle is transport.handles[0]
    assert request.attempts == 1
    mock_callback.assert_not_called()
    request.abort()


@pytest.mark.asyncio
async def test_request_retry_default_config(mock_sink: Mock) -> None:
    request = request_retry(
        {"url": "https://example.com"}, sink=mock_sink, transport=FakeTransport(auto=False)
    )

    assert request.config == RetryConfig(
        max_attempts=5, retry_delay=5000, retry_strategy=http_or_network_error
    )
    assert request.attempts_remaining == 4
    request.abort()


@pytest.mark.asyncio
async def test_request_retry_merges_retry_options(mock_sink: Mock) -> None:
    transport = FakeTransport(auto=False)
    request = request_retry(
        {
            "url": "https://example.com",
            "headers": {"accept": "application/json"},
            "max_attempts": 2,
            "retry_delay": 10,
            "retry_strategy": http_error,
        },
        sink=mock_sink,
        transport=transport,
    )

    assert request.config == RetryConfig(max_attempts=2, retry_delay=10, retry_strategy=http_error)
    assert transport.calls == [
        {"url": "https://example.com", "headers": {"accept": "application/json"}}
    ]
    request.abort()


@pytest.mark.asyncio
async def test_request_retry_non_callable_strategy_falls_back(mock_sink: Mock) -> None:
    request = request_retry(
        {"url": "https://example.com", "retry_strategy": "HTTPError"},
        sink=mock_sink,
        transport=FakeTransport(auto=False),
    )
    assert request.retry_strategy is http_or_network_error
    request.abort()


@pytest.mark.asyncio
@pytest.mark.parametrize("callback", [None, "not callable"])
async def test_request_retry_without_callback(callback: object, mock_sink: Mock) -> None:
    request = request_retry(
        {"url": "https://example.com"}, callback, mock_sink, transport=FakeTransport()
    )
    outcome = await request.wait()
    assert outcome.error is None


@pytest.mark.asyncio
async def test_request_retry_invalid_options(mock_sink: Mock) -> None:
    transport = FakeTransport()
    with pytest.raises(ValueError, match="max_attempts must be >= 0"):
        request_retry(
            {"url": "https://example.com", "max_attempts": -2}, sink=mock_sink, transport=transport
        )
    assert transport.call_count == 0


@pytest.mark.asyncio
async def test_request_retry_default_sink_and_transport() -> None:
    with patch("aretry.factory.HttpxTransport") as transport_cls:
        request = request_retry({"url": "https://example.com"})

    assert isinstance(request.sink, LoggingSink)
    transport_cls.assert_called_once_with(loop=asyncio.get_running_loop())
    transport_cls.return_value.assert_called_once()
    request.abort()


def test_request_retry_requires_event_loop(mock_sink: Mock) -> None:
    with pytest.raises(RuntimeError):
        request_retry({"url": "https://example.com"}, sink=mock_sink, transport=FakeTransport())


def test_request_retry_explicit_loop(mock_sink: Mock) -> None:
    loop = asyncio.new_event_loop()
    try:
        transport = Mock()
        request = request_retry(
            {"url": "https://example.com"}, sink=mock_sink, transport=transport, loop=loop
        )
        transport.assert_called_once()
        request.abort()
        assert isinstance(request.outcome.error, AbortedError)
    finally:
        loop.close()


def test_request_retry_explicit_loop_default_transport(mock_sink: Mock) -> None:
    """Test the default transport runs on the given loop when none is
    running."""
    loop = asyncio.new_event_loop()
    try:
        request = request_retry({"url": "https://example.com"}, sink=mock_sink, loop=loop)
        handle = request.active_handle
        assert isinstance(handle, HttpxRequestHandle)
        assert request.transport.loop is loop

        request.abort()

        assert handle.aborted
        assert isinstance(request.outcome.error, AbortedError)
    finally:
        loop.close()


def test_request_retry_explicit_loop_runs_default_transport(mock_sink: Mock) -> None:
    loop = asyncio.new_event_loop()
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    try:
        with patch("aretry.transport.httpx.AsyncClient", return_value=client):
            request = request_retry({"url": "https://example.com"}, sink=mock_sink, loop=loop)
            error, response, _ = loop.run_until_complete(request.wait())

        assert error is None
        assert response.status_code == 200
    finally:
        loop.close()


@pytest.mark.asyncio
async def test_request_retry_async(mock_sink: Mock) -> None:
    error, response, body = await request_retry_async(
        {"url": "https://example.com", "retry_strategy": never_retry},
        mock_sink,
        transport=FakeTransport([(None, "response", "body")]),
    )
    assert error is None
    assert response == "response"
    assert body == "body"


@pytest.mark.asyncio
async def test_request_retry_async_cancellation_aborts(mock_sink: Mock) -> None:
    transport = FakeTransport(auto=False)
    task = asyncio.ensure_future(
        request_retry_async({"url": "https://example.com"}, mock_sink, transport=transport)
    )
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert transport.handles[0].aborted


##########################################
#     Tests with the httpx transport     #
##########################################


@pytest.mark.asyncio
async def test_request_retry_httpx_retries_server_errors(
    mock_callback: Mock, caplog: pytest.LogCaptureFixture
) -> None:
    responses = iter(
        [httpx.Response(500), httpx.Response(503), httpx.Response(200, text="finally")]
    )
    handler = Mock(side_effect=lambda request: next(responses))
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    with caplog.at_level(logging.INFO, logger="aretry.diagnostics"):
        request = request_retry(
            {"url": "https://example.com", "max_attempts": 3, "retry_delay": 1},
            mock_callback,
            transport=HttpxTransport(client=client),
        )
        error, response, body = await request.wait()

    assert handler.call_count == 3
    assert error is None
    assert response.status_code == 200
    assert body == "finally"
    mock_callback.assert_called_once_with(None, response, "finally")
    assert [record.message for record in caplog.records] == [
        "[aretry] Retrying... (attempts remaining: 2, retry_delay: 1)",
        "[aretry] Retrying... (attempts remaining: 1, retry_delay: 1)",
    ]


@pytest.mark.asyncio
async def test_request_retry_httpx_does_not_retry_client_errors(
    mock_callback: Mock, mock_sink: Mock
) -> None:
    handler = Mock(return_value=httpx.Response(404, text="missing"))
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    request = request_retry(
        {"url": "https://example.com", "retry_delay": 1},
        mock_callback,
        mock_sink,
        transport=HttpxTransport(client=client),
    )
    error, response, body = await request.wait()

    handler.assert_called_once()
    assert error is None
    assert response.status_code == 404
    assert body == "missing"
    mock_sink.log.assert_not_called()


@pytest.mark.asyncio
async def test_request_retry_httpx_listeners_on_first_attempt(mock_sink: Mock) -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    statuses = []

    request = request_retry(
        {"url": "https://example.com"},
        sink=mock_sink,
        transport=HttpxTransport(client=client),
    )
    request.on("response", lambda response: statuses.append(response.status_code))
    await request.wait()

    assert statuses == [200]


@pytest.mark.asyncio
async def test_request_retry_httpx_abort_in_flight(mock_callback: Mock, mock_sink: Mock) -> None:
    received = asyncio.Event()

    async def handler(request: httpx.Request) -> httpx.Response:
        received.set()
        await asyncio.sleep(10)
        return httpx.Response(200)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    request = request_retry(
        {"url": "https://example.com"},
        mock_callback,
        mock_sink,
        transport=HttpxTransport(client=client),
    )
    await asyncio.wait_for(received.wait(), timeout=5)

    request.abort()
    await asyncio.sleep(0.01)

    mock_callback.assert_called_once()
    assert isinstance(mock_callback.call_args.args[0], AbortedError)
