"""Librato metric model built from collected results."""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from librato_exporter.ports.results import Result

__all__ = ["MetricKind", "MetricRecord", "MetricBatch", "to_float32"]

logger = logging.getLogger(__name__)

_FLOAT32 = struct.Struct("<f")


class MetricKind(Enum):
    """Metric kinds understood by the Librato API."""

    COUNTER = "counter"
    GAUGE = "gauge"


def to_float32(value: float) -> float:
    """Round value to the nearest 32-bit float and return its shortest repr.

    Raises:
        OverflowError: If value does not fit in a 32-bit float.
    """
    narrowed = _FLOAT32.unpack(_FLOAT32.pack(value))[0]
    for digits in range(1, 10):
        candidate = float(f"{narrowed:.{digits}g}")
        if _FLOAT32.unpack(_FLOAT32.pack(candidate))[0] == narrowed:
            return candidate
    return narrowed


def _parse_numeric(raw: Any) -> float | None:
    """Return raw as a finite float, or None when it is not numeric."""
    if isinstance(raw, bool):
        return None
    if not isinstance(raw, (int, float, Decimal, str)):
        return None
    try:
        number = float(raw.strip() if isinstance(raw, str) else raw)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    try:
        return to_float32(number)
    except OverflowError:
        return None


def _epoch_ms_to_seconds(epoch_ms: int) -> int:
    """Convert milliseconds to whole seconds, truncating toward zero."""
    seconds = abs(int(epoch_ms)) // 1000
    return seconds if epoch_ms >= 0 else -seconds


@dataclass(slots=True, frozen=True)
class MetricRecord:
    """One measurement as sent to Librato.

    Attributes:
        name: "<class_name_alias>.<attribute_name>".
        measure_time: Measurement time in seconds since the epoch.
        value: Measured value with 32-bit float precision.
        source: Origin label shared by all records of a run.
    """

    name: str
    measure_time: int
    value: float
    source: str

    @classmethod
    def from_result(cls, result: Result, source: str) -> MetricRecord:
        """Build a record from a collected result.

        The last numeric entry of result.values wins. Non-numeric entries are
        logged and skipped; without any numeric entry the value stays 0.0.

        Args:
            result: Collected measurement.
            source: Origin label.

        Returns:
            The normalized record.
        """
        value = 0.0
        for raw in (result.values or {}).values():
            number = _parse_numeric(raw)
            if number is None:
                logger.warning(
                    f"Unable to submit non-numeric value to Librato: '{raw}' "
                    f"from result '{result}'"
                )
                continue
            value = number

        return cls(
            name=f"{result.class_name_alias}.{result.attribute_name}",
            measure_time=_epoch_ms_to_seconds(result.epoch),
            value=value,
            source=source,
        )

    def to_wire(self) -> dict[str, Any]:
        """Return the Librato JSON representation of this record."""
        return {
            "name": self.name,
            "measure_time": self.measure_time,
            "value": self.value,
            "source": self.source,
        }


@dataclass(slots=True, frozen=True)
class MetricBatch:
    """Counters and gauges sent in one POST."""

    counters: tuple[MetricRecord, ...] = ()
    gauges: tuple[MetricRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.counters) + len(self.gauges)

    def to_wire(self) -> dict[str, list[dict[str, Any]]]:
        """Return the Librato JSON representation of this batch."""
        return {
            "counters": [record.to_wire() for record in self.counters],
            "gauges": [record.to_wire() for record in self.gauges],
        }
