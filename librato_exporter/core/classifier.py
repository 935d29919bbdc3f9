"""Counter/gauge classification of collected results."""

from collections.abc import Iterable

from librato_exporter.core.model import MetricKind
from librato_exporter.ports.results import Result

__all__ = ["classify", "partition"]

COUNTER_ALIAS_MARKER = ".counter."
COUNTER_ATTRIBUTE = "Count"


def classify(result: Result) -> MetricKind:
    """Decide whether result is exported as a counter or a gauge.

    Results carry no explicit metric type, so the kind is inferred from
    naming: an alias containing ".counter." or an attribute named exactly
    "Count" makes a counter, anything else is a gauge.

    Args:
        result: Collected measurement.

    Returns:
        MetricKind.COUNTER or MetricKind.GAUGE.
    """
    if COUNTER_ALIAS_MARKER in (result.class_name_alias or "") or (
        result.attribute_name == COUNTER_ATTRIBUTE
    ):
        return MetricKind.COUNTER
    return MetricKind.GAUGE


def partition(results: Iterable[Result]) -> tuple[list[Result], list[Result]]:
    """Split results into (counters, gauges), preserving input order."""
    counters: list[Result] = []
    gauges: list[Result] = []
    for result in results:
        if classify(result) is MetricKind.COUNTER:
            counters.append(result)
        else:
            gauges.append(result)
    return counters, gauges
