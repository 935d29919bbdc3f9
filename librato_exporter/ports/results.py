"""Result port definition (DTO)."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

__all__ = ["Result"]


@dataclass(slots=True, frozen=True)
class Result:
    """One measurement handed over by the upstream collector.

    Attributes:
        class_name_alias: Alias of the measured object (e.g. "app.counter.requests").
        attribute_name: Name of the measured attribute (e.g. "Count").
        epoch: Measurement time in milliseconds since the Unix epoch.
        values: Named values read for the attribute.
    """

    class_name_alias: str
    attribute_name: str
    epoch: int
    values: Mapping[str, Any] = field(default_factory=dict)
