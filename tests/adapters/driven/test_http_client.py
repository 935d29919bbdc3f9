"""Tests for the aiohttp exchange adapter."""

from unittest.mock import AsyncMock, Mock

import pytest

from librato_exporter.adapters.driven.http.client import AiohttpExchange, HttpClient

__all__ = []

HEADERS = {"Content-Type": "application/json; charset=utf-8", "Authorization": "Basic eDp5"}


def make_response(status: int = 200, reason: str = "OK") -> Mock:
    response = Mock()
    response.status = status
    response.reason = reason
    response.read = AsyncMock(return_value=b"")
    return response


@pytest.mark.asyncio
async def test_http_client_context_manager() -> None:
    """HTTP client should initialize and close session."""
    client = HttpClient()
    assert client.session is None

    async with client as c:
        assert c.session is not None
        assert c is client

    assert client.session.closed


def test_open_exchange_requires_session() -> None:
    """open_exchange should raise outside the context manager."""
    with pytest.raises(RuntimeError, match="Session not initialized"):
        HttpClient().open_exchange("http://test", HEADERS, None, 1000)


@pytest.mark.asyncio
async def test_exchange_posts_body_with_headers_proxy_and_timeout() -> None:
    """send() should POST with the configured options."""
    session = Mock()
    session.post = AsyncMock(return_value=make_response(202, "Accepted"))
    client = HttpClient()
    client.session = session

    exchange = client.open_exchange("http://test/v1/metrics", HEADERS, "http://proxy:3128", 1500)
    await exchange.send(b"{}")

    session.post.assert_awaited_once()
    args, kwargs = session.post.call_args
    assert args == ("http://test/v1/metrics",)
    assert kwargs["data"] == b"{}"
    assert kwargs["headers"] == HEADERS
    assert kwargs["proxy"] == "http://proxy:3128"
    assert kwargs["timeout"].sock_read == 1.5
    assert exchange.status_code == 202
    assert exchange.status_message == "Accepted"


@pytest.mark.asyncio
async def test_exchange_drain_and_close() -> None:
    """drain() reads the body; close() closes the response."""
    response = make_response()
    session = Mock()
    session.post = AsyncMock(return_value=response)
    exchange = AiohttpExchange(session, "http://test", HEADERS, None, 1000)

    await exchange.send(b"{}")
    await exchange.drain()
    await exchange.close()

    response.read.assert_awaited_once()
    response.close.assert_called_once()


@pytest.mark.asyncio
async def test_exchange_without_response_is_noop_on_cleanup() -> None:
    """Cleanup before a response exists should do nothing."""
    exchange = AiohttpExchange(Mock(), "http://test", HEADERS, None, 1000)

    await exchange.drain()
    await exchange.close()

    with pytest.raises(RuntimeError, match="No response yet"):
        _ = exchange.status_code
