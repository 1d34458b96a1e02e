import logging
import threading
from typing import Optional

from dirpulse.monitor.check_all import CycleResult
from dirpulse.monitor.monitor_cycle import MonitorCycle
from dirpulse.monitor.monitor_thread import MonitorThread
from dirpulse.monitor.thread_factory import create_monitor_thread
from dirpulse.startup_code.context import AppContext

logger = logging.getLogger(__name__)


class AppRunFailureError(Exception):
    """Raised when the main app.run() encounters a critical unhandled error during operation."""

    pass


class AppSetupError(Exception):
    """Raised when app.run() fails during the initial setup/build/start phase."""

    pass


THREAD_JOIN_TIMEOUT = 5.0
HEALTH_CHECK_INTERVAL_SECONDS = 5.0


def run_single_cycle(context: AppContext) -> CycleResult:
    """Runs one check-and-report cycle on the calling thread (the --once mode)."""
    processor = MonitorCycle(
        config=context.config, fs=context.fs, reporter=context.reporter
    )
    return processor.run_once()


def _stop_and_join(
    monitor: Optional[MonitorThread], shutdown_event: threading.Event
) -> None:
    shutdown_event.set()
    if monitor is None or not monitor.is_alive():
        return
    logger.info("Joining %s...", monitor.name)
    monitor.join(timeout=THREAD_JOIN_TIMEOUT)
    if monitor.is_alive():
        logger.warning("%s did not shut down cleanly.", monitor.name)


def run(context: AppContext) -> None:
    """
    Starts the monitor thread and supervises it until shutdown is requested.

    Raises:
        AppSetupError: If the monitor thread cannot be built or started.
        AppRunFailureError: If the monitor thread dies while running.
    """
    monitor: Optional[MonitorThread] = None

    logger.info("Starting main application run loop...")
    try:
        # --- Setup Phase ---
        try:
            monitor = create_monitor_thread(
                config=context.config,
                reporter=context.reporter,
                stop_event=context.shutdown_event,
                fs=context.fs,
            )
            logger.info("Starting %s...", monitor.name)
            monitor.start()
        except Exception as e:
            logger.critical("Setup phase encountered a fatal error: %s", e, exc_info=True)
            raise AppSetupError(f"app.run failed during setup: {e}") from e

        logger.info("Monitor started; supervising %s", monitor.name)

        # --- Operational Phase (Health-check loop) ---
        while not context.shutdown_event.is_set():
            if not monitor.is_alive() and not context.shutdown_event.is_set():
                logger.critical("%s died; triggering shutdown.", monitor.name)
                raise AppRunFailureError(
                    f"Health-check failure: '{monitor.name}' died."
                )
            if context.shutdown_event.wait(timeout=HEALTH_CHECK_INTERVAL_SECONDS):
                logger.info(
                    "Shutdown event received externally. Breaking health check loop."
                )
                break

    finally:
        logger.info("Initiating shutdown sequence.")
        _stop_and_join(monitor, context.shutdown_event)
        logger.info("Application shutdown complete.")
