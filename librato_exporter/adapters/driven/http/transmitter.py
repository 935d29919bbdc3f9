"""Delivery of serialized metrics to the Librato HTTP API."""

import asyncio
import base64
import dataclasses
import logging
from collections.abc import Callable, Mapping
from typing import Protocol

from librato_exporter.adapters.driven.http.client import TRANSPORT_ERRORS
from librato_exporter.ports.http import HttpExchangePort, TransmitterPort
from librato_exporter.ports.metrics import ExportOutcome

__all__ = ["Transmitter", "ExchangeFactory", "CONTENT_TYPE", "basic_authorization"]

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/json; charset=utf-8"
SUCCESS_HTTP_CODE = 200


class ExchangeFactory(Protocol):
    """Anything able to open an HTTP exchange (see HttpClient)."""

    def open_exchange(
        self,
        url: str,
        headers: Mapping[str, str],
        proxy: str | None,
        timeout_ms: int,
    ) -> HttpExchangePort: ...


def basic_authorization(username: str, token: str) -> str:
    """Return the Authorization header value for username:token.

    Raises:
        ValueError: If username contains ':' or either part is not ASCII.
    """
    if ":" in username:
        raise ValueError('A ":" is not allowed in username')
    credentials = f"{username}:{token}".encode("ascii")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


class Transmitter(TransmitterPort):
    """POST payloads to Librato, one attempt per call.

    Never raises to the caller: non-200 responses and transport errors are
    logged and reported as failed outcomes. The response is always drained
    and closed so that pooled connections can be reused.
    """

    def __init__(
        self,
        client: ExchangeFactory,
        url: str,
        username: str,
        token: str,
        proxy_host: str | None = None,
        proxy_port: int | None = None,
        timeout_ms: int = 1000,
    ) -> None:
        """Initialize the transmitter.

        Args:
            client: Opens HTTP exchanges.
            url: Librato metrics endpoint.
            username: Librato user.
            token: Librato API token.
            proxy_host: Optional HTTP proxy host.
            proxy_port: HTTP proxy port, required with proxy_host.
            timeout_ms: Read timeout in milliseconds.
        """
        self.client = client
        self.url = url
        self.user = username
        self.proxy = f"http://{proxy_host}:{proxy_port}" if proxy_host else None
        self.timeout_ms = timeout_ms
        self.headers = {
            "Content-Type": CONTENT_TYPE,
            "Authorization": basic_authorization(username, token),
        }

    async def send(
        self, payload: bytes, redump: Callable[[], bytes] | None = None
    ) -> ExportOutcome:
        """POST payload and report the outcome.

        Args:
            payload: Serialized JSON document.
            redump: Rebuilds the payload for diagnostic logging when the
                response cannot be drained; defaults to payload itself.

        Returns:
            Success only for a 200 response.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        exchange: HttpExchangePort | None = None
        try:
            exchange = self.client.open_exchange(
                self.url, self.headers, self.proxy, self.timeout_ms
            )
            await exchange.send(payload)
            status = exchange.status_code
            if status == SUCCESS_HTTP_CODE:
                outcome = ExportOutcome(success=True, http_status=status)
            else:
                message = exchange.status_message
                logger.warning(
                    f"Failure {status}:'{message}' to send result to Librato server "
                    f"'{self.url}' with proxy {self.proxy}, user {self.user}"
                )
                outcome = ExportOutcome(
                    success=False, http_status=status, error=f"{status}:'{message}'"
                )
        except Exception as e:  # noqa: BLE001
            logger.warning(
                f"Failure to send result to Librato server '{self.url}' "
                f"with proxy {self.proxy}, user {self.user}: {e!r}",
                exc_info=True,
            )
            outcome = ExportOutcome(success=False, error=repr(e))
        finally:
            if exchange is not None:
                await self._release(exchange, redump or (lambda: payload))

        return dataclasses.replace(outcome, duration_ms=(loop.time() - started) * 1_000.0)

    async def _release(self, exchange: HttpExchangePort, redump: Callable[[], bytes]) -> None:
        """Drain then close the exchange; never raises."""
        try:
            await exchange.drain()
        except TRANSPORT_ERRORS as e:
            self._log_payload(e, redump)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Exception draining http connection: {e!r}", exc_info=True)
        finally:
            try:
                await exchange.close()
            except Exception as e:  # noqa: BLE001
                logger.debug(f"Exception closing quietly: {e!r}", exc_info=True)

    @staticmethod
    def _log_payload(cause: BaseException, redump: Callable[[], bytes]) -> None:
        try:
            dump = redump().decode("utf-8", errors="replace")
        except Exception as e:  # noqa: BLE001
            logger.warning(f"Unable to re-serialize payload for diagnostics: {e!r}")
            dump = "<unavailable>"
        logger.warning("Exception flushing http connection", exc_info=cause)
        logger.warning(dump)
