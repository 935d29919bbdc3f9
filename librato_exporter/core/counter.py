"""Process-wide export failure counter."""

import threading

__all__ = ["FailureCounter"]


class FailureCounter:
    """Monotonic counter safe to share between threads and tasks.

    Never reset; read by health and monitoring collaborators.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def increment(self) -> int:
        """Add one failure and return the new total."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
