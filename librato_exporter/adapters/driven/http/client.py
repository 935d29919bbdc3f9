"""aiohttp adapter for single HTTP exchanges."""

from collections.abc import Mapping
from types import TracebackType

import aiohttp
from aiohttp import ClientResponse, ClientTimeout

from librato_exporter.ports.http import HttpExchangePort

__all__ = ["HttpClient", "AiohttpExchange", "TRANSPORT_ERRORS"]

# Exceptions raised by a failed connect, write or read
TRANSPORT_ERRORS = (
    aiohttp.ClientError,  # Connection refused, DNS failed, payload errors
    TimeoutError,  # Read timeout
    OSError,  # OS-level network error
)


class AiohttpExchange(HttpExchangePort):
    """One POST performed through a shared aiohttp session."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        headers: Mapping[str, str],
        proxy: str | None,
        timeout_ms: int,
    ) -> None:
        self.session = session
        self.url = url
        self.headers = dict(headers)
        self.proxy = proxy
        self.timeout = ClientTimeout(total=None, sock_read=timeout_ms / 1000.0)
        self.response: ClientResponse | None = None

    @property
    def status_code(self) -> int:
        if self.response is None:
            raise RuntimeError("No response yet; call send() first")
        return self.response.status

    @property
    def status_message(self) -> str:
        if self.response is None:
            raise RuntimeError("No response yet; call send() first")
        return self.response.reason or ""

    async def send(self, body: bytes) -> None:
        """POST body and wait for the response status line.

        Raises:
            aiohttp exceptions: Network/timeout errors.
        """
        self.response = await self.session.post(
            self.url,
            data=body,
            headers=self.headers,
            proxy=self.proxy,
            timeout=self.timeout,
        )

    async def drain(self) -> None:
        """Read the remaining body so the connection can go back to the pool."""
        if self.response is not None:
            await self.response.read()

    async def close(self) -> None:
        if self.response is not None:
            self.response.close()


class HttpClient:
    """Owner of the aiohttp session used for all exports.

    Use as an async context manager so the session and its pooled
    connections are closed on exit.
    """

    def __init__(self) -> None:
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "HttpClient":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.session:
            await self.session.close()

    def open_exchange(
        self,
        url: str,
        headers: Mapping[str, str],
        proxy: str | None,
        timeout_ms: int,
    ) -> AiohttpExchange:
        """Prepare one POST exchange.

        Args:
            url: Target endpoint.
            headers: Request headers.
            proxy: Proxy URL ("http://host:port"), or None for a direct connection.
            timeout_ms: Read timeout in milliseconds.

        Returns:
            Exchange ready for send().

        Raises:
            RuntimeError: If session not initialized.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")
        return AiohttpExchange(self.session, url, headers, proxy, timeout_ms)
