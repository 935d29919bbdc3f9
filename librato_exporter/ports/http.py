"""HTTP port definitions (interfaces)."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from librato_exporter.ports.metrics import ExportOutcome

__all__ = ["HttpExchangePort", "TransmitterPort"]


class HttpExchangePort(Protocol):
    """One HTTP request/response exchange.

    Decouples the transmitter from the concrete HTTP client. Transport
    errors (DNS, timeout, I/O) are raised from send() and drain().
    """

    @property
    def status_code(self) -> int:
        """Status code of the response; only valid after send()."""
        ...

    @property
    def status_message(self) -> str:
        """Reason phrase of the response; only valid after send()."""
        ...

    async def send(self, body: bytes) -> None:
        """Connect, write the request body and read the response status."""
        ...

    async def drain(self) -> None:
        """Read and discard whatever response body is left."""
        ...

    async def close(self) -> None:
        """Release the underlying response and connection."""
        ...


class TransmitterPort(Protocol):
    """Interface for delivering a serialized payload."""

    async def send(
        self, payload: bytes, redump: Callable[[], bytes] | None = None
    ) -> ExportOutcome:
        """Deliver payload and report the outcome without raising.

        Args:
            payload: Serialized JSON document.
            redump: Rebuilds the payload for diagnostic logging.

        Returns:
            Outcome of the attempt.
        """
        ...
