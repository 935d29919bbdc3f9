"""Signal handling for graceful shutdown."""

import asyncio
import logging
import signal
from collections.abc import Callable, Iterable

__all__ = ["make_stop_on_signals", "STOP_SIGNALS"]

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def make_stop_on_signals(signals: Iterable[signal.Signals] = STOP_SIGNALS) -> Callable[[], bool]:
    """Create a signal-based stop flag for the export loop.

    Registers handlers that set an asyncio.Event and returns its is_set
    for the main loop to poll. In-flight exports are cancelled by the
    loop once the flag is raised.

    Args:
        signals: Signals that request a shutdown.

    Returns:
        Callable that returns True once one of the signals has been received.
    """
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info(f"{sig.name} received, stopping Librato exporter...")
        stop.set()

    for sig in signals:
        loop.add_signal_handler(sig, handle_signal, sig)

    return stop.is_set
