"""In-memory sliding-window statistics over export outcomes."""

from __future__ import annotations

import statistics
import threading
from collections import deque
from dataclasses import dataclass

from librato_exporter.ports.metrics import ExportOutcome, MetricsPort

__all__ = ["ExportMetrics"]


@dataclass(slots=True, frozen=True)
class _Sample:
    """Internal record for one export attempt."""

    duration_ms: float
    failed: bool
    status_code: int


class ExportMetrics(MetricsPort):
    """Recent export statistics for logs.

    Tracks:
    - Average HTTP exchange duration.
    - Failure rate (non-200 responses or transport errors).
    - Last status code (0 when no response arrived).
    - Total attempts seen.
    """

    def __init__(self, *, window_size: int = 100) -> None:
        """Initialize metrics collector.

        Args:
            window_size: Number of recent attempts to keep for statistics.
        """
        self._lock = threading.Lock()
        self._window: deque[_Sample] = deque(maxlen=window_size)
        self._total_seen: int = 0

    def update(self, outcome: ExportOutcome) -> None:
        """Record a finished export attempt.

        Args:
            outcome: Outcome reported by the transmitter.
        """
        sample = _Sample(
            duration_ms=outcome.duration_ms,
            failed=not outcome.success,
            status_code=outcome.http_status or 0,
        )
        with self._lock:
            self._window.append(sample)
            self._total_seen += 1

    def __str__(self) -> str:
        """Return human-readable one-line summary for logging.

        Returns:
            Formatted metrics string.
        """
        with self._lock:
            window = list(self._window)
            total = self._total_seen

        if not window:
            return "Metrics: waiting for data …"

        n_window = len(window)
        failures = sum(1 for s in window if s.failed)
        fail_pct = (failures / n_window) * 100
        avg_duration = statistics.fmean(s.duration_ms for s in window)
        last = window[-1]

        return (
            f"duration={avg_duration:6.1f} ms | "
            f"status={last.status_code:3d} | "
            f"fail={fail_pct:5.1f}% | "
            f"win={n_window}/{self._window.maxlen} | "
            f"total={total}"
        )
