"""Tests for the Librato transmitter."""

import base64
import logging
import warnings
from collections.abc import Mapping

import aiohttp
import pytest

from librato_exporter.adapters.driven.http.transmitter import (
    CONTENT_TYPE,
    Transmitter,
    basic_authorization,
)

__all__ = []

URL = "https://metrics-api.librato.com/v1/metrics"
PAYLOAD = b'{"counters":[],"gauges":[]}'


class FakeExchange:
    """Scriptable HttpExchangePort implementation."""

    def __init__(
        self,
        status: int = 200,
        reason: str = "OK",
        send_error: BaseException | None = None,
        drain_error: BaseException | None = None,
        close_error: BaseException | None = None,
    ) -> None:
        self.status = status
        self.reason = reason
        self.send_error = send_error
        self.drain_error = drain_error
        self.close_error = close_error
        self.sent: list[bytes] = []
        self.drained = False
        self.closed = False

    @property
    def status_code(self) -> int:
        return self.status

    @property
    def status_message(self) -> str:
        return self.reason

    async def send(self, body: bytes) -> None:
        self.sent.append(body)
        if self.send_error:
            raise self.send_error

    async def drain(self) -> None:
        if self.drain_error:
            raise self.drain_error
        self.drained = True

    async def close(self) -> None:
        self.closed = True
        if self.close_error:
            raise self.close_error


class FakeClient:
    """Records open_exchange() arguments and hands out one exchange."""

    def __init__(self, exchange: FakeExchange | None = None, error: Exception | None = None):
        self.exchange = exchange or FakeExchange()
        self.error = error
        self.calls: list[tuple[str, Mapping[str, str], str | None, int]] = []

    def open_exchange(self, url, headers, proxy, timeout_ms):
        self.calls.append((url, headers, proxy, timeout_ms))
        if self.error:
            raise self.error
        return self.exchange


def make_transmitter(client: FakeClient, **kwargs) -> Transmitter:
    params = {"url": URL, "username": "user@example.com", "token": "s3cr3t"}
    params.update(kwargs)
    return Transmitter(client=client, **params)


def test_basic_authorization_header() -> None:
    """Credentials should be base64-encoded as username:token."""
    header = basic_authorization("user@example.com", "s3cr3t")

    assert header == "Basic " + base64.b64encode(b"user@example.com:s3cr3t").decode("ascii")


def test_basic_authorization_rejects_colon_in_username() -> None:
    with pytest.raises(ValueError):
        basic_authorization("us:er", "token")


def test_basic_authorization_rejects_non_ascii_token() -> None:
    with pytest.raises(ValueError):
        basic_authorization("user", "t\u00f6ken")


def test_basic_authorization_emits_no_warnings() -> None:
    """Building the header should not trigger deprecation warnings."""
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        header = basic_authorization("user", "token")

    assert header == "Basic dXNlcjp0b2tlbg=="


@pytest.mark.asyncio
async def test_send_success() -> None:
    """A 200 response is a success; body is sent and the exchange released."""
    client = FakeClient()
    transmitter = make_transmitter(client, timeout_ms=2500)

    outcome = await transmitter.send(PAYLOAD)

    assert outcome.success is True
    assert outcome.http_status == 200
    assert outcome.duration_ms >= 0
    assert client.exchange.sent == [PAYLOAD]
    assert client.exchange.drained and client.exchange.closed

    url, headers, proxy, timeout_ms = client.calls[0]
    assert url == URL
    assert headers["Content-Type"] == CONTENT_TYPE
    assert headers["Authorization"].startswith("Basic ")
    assert proxy is None
    assert timeout_ms == 2500


@pytest.mark.asyncio
async def test_send_through_proxy() -> None:
    """Configured proxy should be passed as an http:// URL."""
    client = FakeClient()
    transmitter = make_transmitter(client, proxy_host="proxy.local", proxy_port=3128)

    await transmitter.send(PAYLOAD)

    assert client.calls[0][2] == "http://proxy.local:3128"


@pytest.mark.asyncio
async def test_send_non_200_is_failure(caplog: pytest.LogCaptureFixture) -> None:
    """A 503 should be reported as failure and logged, not raised."""
    client = FakeClient(FakeExchange(status=503, reason="Service Unavailable"))
    transmitter = make_transmitter(client, proxy_host="proxy.local", proxy_port=3128)

    with caplog.at_level(logging.WARNING):
        outcome = await transmitter.send(PAYLOAD)

    assert outcome.success is False
    assert outcome.http_status == 503
    assert "503:'Service Unavailable'" in caplog.text
    assert URL in caplog.text
    assert "proxy.local:3128" in caplog.text
    assert "user@example.com" in caplog.text
    assert client.exchange.closed


@pytest.mark.asyncio
async def test_send_201_is_failure() -> None:
    """Only 200 counts as success."""
    outcome = await make_transmitter(FakeClient(FakeExchange(status=201))).send(PAYLOAD)

    assert outcome.success is False


@pytest.mark.asyncio
async def test_transport_error_is_failure(caplog: pytest.LogCaptureFixture) -> None:
    """Connection errors should be reported, logged and the exchange closed."""
    error = aiohttp.ClientConnectionError("connection refused")
    client = FakeClient(FakeExchange(send_error=error))

    with caplog.at_level(logging.WARNING):
        outcome = await make_transmitter(client).send(PAYLOAD)

    assert outcome.success is False
    assert outcome.http_status is None
    assert "connection refused" in outcome.error
    assert "Failure to send result to Librato server" in caplog.text
    assert client.exchange.closed


@pytest.mark.asyncio
async def test_timeout_is_failure() -> None:
    """Read timeouts are transport errors."""
    client = FakeClient(FakeExchange(send_error=TimeoutError()))

    outcome = await make_transmitter(client).send(PAYLOAD)

    assert outcome.success is False


@pytest.mark.asyncio
async def test_open_exchange_error_is_failure() -> None:
    """Errors before an exchange exists should still be absorbed."""
    client = FakeClient(error=RuntimeError("Session not initialized"))

    outcome = await make_transmitter(client).send(PAYLOAD)

    assert outcome.success is False


@pytest.mark.asyncio
async def test_drain_failure_closes_and_logs_payload(caplog: pytest.LogCaptureFixture) -> None:
    """A failing drain should still close the exchange and dump the payload."""
    client = FakeClient(FakeExchange(drain_error=OSError("stream reset")))
    redumped = b'{"counters":[{"name":"a.b"}],"gauges":[]}'

    with caplog.at_level(logging.WARNING):
        outcome = await make_transmitter(client).send(PAYLOAD, redump=lambda: redumped)

    assert outcome.success is True
    assert client.exchange.closed
    assert "Exception flushing http connection" in caplog.text
    assert redumped.decode() in caplog.text


@pytest.mark.asyncio
async def test_drain_failure_without_redump_logs_sent_payload(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Without a redump callback the sent bytes are logged."""
    client = FakeClient(FakeExchange(drain_error=aiohttp.ClientPayloadError("truncated")))

    with caplog.at_level(logging.WARNING):
        await make_transmitter(client).send(PAYLOAD)

    assert PAYLOAD.decode() in caplog.text


@pytest.mark.asyncio
async def test_redump_failure_is_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    """A failing diagnostic dump is logged, never raised."""
    client = FakeClient(FakeExchange(drain_error=OSError("reset")))

    def broken_redump() -> bytes:
        raise ValueError("cannot serialize")

    with caplog.at_level(logging.WARNING):
        outcome = await make_transmitter(client).send(PAYLOAD, redump=broken_redump)

    assert outcome.success is True
    assert "Unable to re-serialize payload" in caplog.text
    assert client.exchange.closed


@pytest.mark.asyncio
async def test_close_failure_is_logged_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    """Close errors are swallowed and logged at debug level."""
    client = FakeClient(FakeExchange(close_error=OSError("already closed")))

    with caplog.at_level(logging.DEBUG, logger="librato_exporter"):
        outcome = await make_transmitter(client).send(PAYLOAD)

    assert outcome.success is True
    debug = [r for r in caplog.records if r.levelno == logging.DEBUG]
    assert any("Exception closing quietly" in r.getMessage() for r in debug)
