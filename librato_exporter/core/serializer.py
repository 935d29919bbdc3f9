"""JSON payload construction for the Librato metrics API."""

import json
from collections.abc import Iterable
from typing import BinaryIO

from librato_exporter.core.model import MetricBatch, MetricRecord
from librato_exporter.ports.results import Result

__all__ = ["PayloadSerializer"]


class PayloadSerializer:
    """Render counters and gauges as a POST /v1/metrics document.

    Attributes:
        source: Label stamped on every record.
    """

    def __init__(self, source: str) -> None:
        self.source = source

    def build_batch(self, counters: Iterable[Result], gauges: Iterable[Result]) -> MetricBatch:
        """Normalize results into a MetricBatch."""
        return MetricBatch(
            counters=tuple(MetricRecord.from_result(r, self.source) for r in counters),
            gauges=tuple(MetricRecord.from_result(r, self.source) for r in gauges),
        )

    def serialize(self, counters: Iterable[Result], gauges: Iterable[Result]) -> bytes:
        """Return the UTF-8 encoded JSON document.

        Args:
            counters: Results exported as counters.
            gauges: Results exported as gauges.

        Returns:
            The request body.
        """
        document = self.build_batch(counters, gauges).to_wire()
        return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    def write_to(
        self, counters: Iterable[Result], gauges: Iterable[Result], stream: BinaryIO
    ) -> None:
        """Write the JSON document to a binary stream."""
        stream.write(self.serialize(counters, gauges))
