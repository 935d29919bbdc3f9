"""Main loop that periodically exports results."""

import asyncio
import dataclasses
import logging
import time
from collections.abc import Awaitable, Callable

from librato_exporter.ports.results import Result
from librato_exporter.ports.settings import SettingsPort

__all__ = ["start_main_loop", "get_now_time", "stamp_results"]

logger = logging.getLogger(__name__)


def get_now_time() -> float:
    """Get current monotonic time in seconds.

    Uses event loop's monotonic clock for accurate scheduling
    without wall-clock drift.

    Returns:
        Current time in seconds (monotonic).
    """
    return asyncio.get_running_loop().time()


def stamp_results(results: list[Result], epoch_ms: int) -> list[Result]:
    """Return copies of results measured at epoch_ms."""
    return [dataclasses.replace(result, epoch=epoch_ms) for result in results]


async def start_main_loop(
    settings: SettingsPort,
    stop_fn: Callable[[], bool],
    write_fn: Callable[[list[Result]], Awaitable[None]],
) -> None:
    """Run the main export loop.

    Periodically:
    1. Stamp the configured results with the current wall-clock time.
    2. Schedule an export as a background task (fire-and-forget).
    3. Sleep to maintain the configured period (based on monotonic time).
    4. Repeat until stop_fn() returns True, then cancel in-flight exports.

    Args:
        settings: Runtime configuration (period, results).
        stop_fn: Callable that returns True when loop should exit.
        write_fn: Async function exporting one batch of results.

    Notes:
        - A slow export never delays the next cycle, so two exports may
          overlap; write_fn must tolerate concurrent calls.
    """
    next_tick: float = get_now_time()
    pending: set[asyncio.Task[None]] = set()
    loop = asyncio.get_running_loop()

    async def _run_once(results: list[Result]) -> None:
        """Run one export and log unexpected errors."""
        try:
            await write_fn(results)
        except asyncio.CancelledError:
            logger.info("Shutdown requested (export cancelled).")
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected error in export task: {e}", exc_info=True)
        finally:
            task = asyncio.current_task()
            if task is not None:
                pending.discard(task)

    while not stop_fn():
        batch = stamp_results(settings.results, epoch_ms=time.time_ns() // 1_000_000)

        # Fire and forget
        task: asyncio.Task[None] = loop.create_task(_run_once(batch))
        pending.add(task)

        next_tick += settings.period_in_sec
        sleep_duration = max(0, next_tick - get_now_time())
        await asyncio.sleep(sleep_duration)

    if pending:
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
