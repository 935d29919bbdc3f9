"""Settings port definition (DTO)."""

from dataclasses import dataclass, field

from librato_exporter.ports.results import Result

__all__ = ["SettingsPort"]


@dataclass
class SettingsPort:
    """Runtime settings for the export loop.

    Decouples core from concrete configuration sources, enabling
    easy testing and implementation swapping.

    Attributes:
        period_in_sec: Seconds between export cycles.
        results: Results exported on every cycle.
    """

    period_in_sec: float
    results: list[Result] = field(default_factory=list)
