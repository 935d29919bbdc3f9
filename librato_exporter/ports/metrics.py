"""Metrics port definition (interface and DTO)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

__all__ = ["ExportOutcome", "MetricsPort"]


@dataclass(slots=True, frozen=True)
class ExportOutcome:
    """Immutable outcome of a single export attempt.

    Attributes:
        success: True only when the endpoint answered 200.
        http_status: HTTP status code when a response arrived; None otherwise.
        error: Short diagnostic for failed attempts.
        duration_ms: Wall time spent on the HTTP exchange.
    """

    success: bool
    http_status: int | None = None
    error: str | None = None
    duration_ms: float = 0.0


class MetricsPort(Protocol):
    """Interface for recording export outcomes.

    Core calls update() after each attempt; presentation layers call
    __str__() to render summaries.
    """

    def update(self, outcome: ExportOutcome, /) -> None:
        """Record a finished export attempt.

        Args:
            outcome: The outcome to record.
        """
        ...

    def __str__(self) -> str:
        """Return concise textual summary for humans.

        Returns:
            Formatted metrics string.
        """
        ...
