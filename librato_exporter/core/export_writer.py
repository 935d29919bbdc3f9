"""Export orchestration: classify, serialize, transmit, count failures."""

import io
import logging
from collections.abc import Iterable

from librato_exporter.core.classifier import partition
from librato_exporter.core.counter import FailureCounter
from librato_exporter.core.serializer import PayloadSerializer
from librato_exporter.ports.http import TransmitterPort
from librato_exporter.ports.metrics import ExportOutcome, MetricsPort
from librato_exporter.ports.results import Result

__all__ = ["ExportWriter"]

logger = logging.getLogger(__name__)


class ExportWriter:
    """Deliver result batches to Librato, one attempt per call.

    Failures never propagate to the caller: they are logged and counted,
    and the count is exposed through failure_count().
    """

    def __init__(
        self,
        serializer: PayloadSerializer,
        transmitter: TransmitterPort,
        metrics: MetricsPort | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            serializer: Builds the JSON request body.
            transmitter: Performs the HTTP exchange.
            metrics: Optional collector of export outcomes.
        """
        self.serializer = serializer
        self.transmitter = transmitter
        self.metrics = metrics
        self._failures = FailureCounter()

    async def write(self, results: Iterable[Result]) -> None:
        """Export one batch of results.

        Args:
            results: Results collected for this cycle.
        """
        logger.debug("Export to Librato")
        counters: list[Result] = []
        gauges: list[Result] = []

        try:
            counters, gauges = partition(results)
            payload = self.serializer.serialize(counters, gauges)
            outcome = await self.transmitter.send(
                payload, redump=lambda: self._dump(counters, gauges)
            )
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected error while exporting to Librato: {e}", exc_info=True)
            outcome = ExportOutcome(success=False, error=repr(e))

        self._record(outcome, n_counters=len(counters), n_gauges=len(gauges))

    def _dump(self, counters: list[Result], gauges: list[Result]) -> bytes:
        """Re-serialize a batch into an in-memory buffer for diagnostics."""
        buffer = io.BytesIO()
        self.serializer.write_to(counters, gauges, buffer)
        return buffer.getvalue()

    def failure_count(self) -> int:
        """Return the number of failed exports since the writer was created."""
        return self._failures.value

    def _record(self, outcome: ExportOutcome, *, n_counters: int, n_gauges: int) -> None:
        if not outcome.success:
            self._failures.increment()
        else:
            logger.debug(f"Exported {n_counters} counters and {n_gauges} gauges")

        if self.metrics:
            self.metrics.update(outcome)
            logger.debug(f"Export metrics: {self.metrics}")
