"""Healthcheck validator for container orchestration."""

import logging

from librato_exporter.adapters.driven.config.settings import load_settings
from librato_exporter.adapters.driven.http.transmitter import basic_authorization
from librato_exporter.adapters.driven.logging.logging_config import configure_logs

__all__ = ["main"]

logger = logging.getLogger(__name__)


def main() -> int:
    """Run health check for container orchestration.

    Validates:
    - Librato endpoint is configured and well formed.
    - Librato credentials can be sent with basic authentication.
    - Results file exists and is valid JSON.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        settings = load_settings()
        basic_authorization(settings.username, settings.token)
    except Exception as exc:
        logger.error(f"Librato exporter healthcheck FAILED: {exc}")
        return 1

    logger.info(f"Librato exporter healthcheck OK ({settings.url}, user {settings.username})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
