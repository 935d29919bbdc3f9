"""Application entrypoint."""

import asyncio
import logging

from librato_exporter.adapters.driven.config.settings import ConfigurationError, load_settings
from librato_exporter.adapters.driven.http.client import HttpClient
from librato_exporter.adapters.driven.http.transmitter import Transmitter
from librato_exporter.adapters.driven.logging.logging_config import configure_logs
from librato_exporter.adapters.driven.metrics.export_metrics import ExportMetrics
from librato_exporter.adapters.driving.signals import make_stop_on_signals
from librato_exporter.core.event_loop import start_main_loop
from librato_exporter.core.export_writer import ExportWriter
from librato_exporter.core.serializer import PayloadSerializer
from librato_exporter.ports.settings import SettingsPort

__all__ = ["main", "run"]

logger = logging.getLogger(__name__)


async def main() -> None:
    """Start the Librato exporter service.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Build the export pipeline.
    4. Run the export loop.
    5. Gracefully shutdown on SIGTERM/SIGINT.
    """
    configure_logs()
    logger.info("Starting Librato exporter...")

    try:
        config = load_settings()
    except ConfigurationError as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check LIBRATO_URL, LIBRATO_USERNAME, LIBRATO_TOKEN, "
            "LIBRATO_PROXY_HOST/LIBRATO_PROXY_PORT, RESULTS_FILE_PATH "
            "and that the results file exists and is valid JSON.",
            exc,
        )
        return

    if not config.enabled:
        logger.info("Librato exporter disabled (LIBRATO_ENABLED=false), exiting.")
        return

    # Wrap config into port so core depends on interface (hexagonal)
    settings_port = SettingsPort(period_in_sec=config.period_in_sec, results=config.results)

    async with HttpClient() as http:
        try:
            transmitter = Transmitter(
                client=http,
                url=config.url,
                username=config.username,
                token=config.token,
                proxy_host=config.proxy_host,
                proxy_port=config.proxy_port,
                timeout_ms=config.librato_api_timeout_in_millis,
            )
        except ValueError as exc:
            logger.error(f"Configuration error: invalid Librato credentials: {exc}")
            return

        writer = ExportWriter(
            serializer=PayloadSerializer(source=config.resolved_source()),
            transmitter=transmitter,
            metrics=ExportMetrics(),
        )

        try:
            await start_main_loop(
                settings=settings_port,
                stop_fn=make_stop_on_signals(),
                write_fn=writer.write,
            )
        except Exception as e:
            logger.error(f"Unhandled exception in main loop: {e}", exc_info=True)

        logger.info(f"Librato exporter stopped, {writer.failure_count()} failed exports.")


def run() -> None:
    """Console script entrypoint."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")


if __name__ == "__main__":
    run()
