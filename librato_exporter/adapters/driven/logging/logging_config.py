"""Console logging setup for the exporter."""

import logging
import os

__all__ = ["configure_logs", "APP_LOGGER"]

APP_LOGGER = "librato_exporter"
_HANDLER_NAME = "librato_exporter.console"


def configure_logs(level: int | str | None = None) -> None:
    """Configure console logging once per process.

    Root logs at INFO and aiohttp/asyncio at WARNING. Exporter loggers log at
    level, falling back to LIBRATO_LOG_LEVEL and then DEBUG. Calling it again
    only adjusts the level; no second console handler is installed.

    Args:
        level: Level name or number of the exporter loggers.
    """
    if level is None:
        level = os.getenv("LIBRATO_LOG_LEVEL", "DEBUG").upper()

    root = logging.getLogger()
    if not any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
                "%d/%m/%y %H:%M:%S",
            )
        )
        root.addHandler(handler)
    root.setLevel(logging.INFO)

    for framework in ("aiohttp", "asyncio"):
        logging.getLogger(framework).setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(level)
