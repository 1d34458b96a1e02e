import logging
import threading
from collections.abc import Callable

from dirpulse.monitor.monitor_cycle import MonitorCycle

logger = logging.getLogger(__name__)


class MonitorThread(threading.Thread):
    """
    A background thread that periodically triggers a folder activity check.

    The thread keeps no state between cycles; every cycle is computed from
    scratch by the injected `MonitorCycle`. A failing cycle is logged and the
    loop carries on, since the monitored root may come back later.
    """

    def __init__(
        self,
        *,
        processor: MonitorCycle,
        stop_event: threading.Event,
        scan_interval_seconds: float,
        monotonic_func: Callable[[], float],
        name: str,
    ):
        """
        Initializes the MonitorThread.

        Args:
            processor: A `MonitorCycle` performing one check and report.
            stop_event: A `threading.Event` used to signal the thread to stop.
            scan_interval_seconds: The target interval between the start of
                                   consecutive cycles.
            monotonic_func: A callable returning current monotonic time
                            (e.g., `time.monotonic()`), used for cycle timing.
            name: The name for this thread.
        """
        super().__init__(daemon=True, name=name)

        self.processor: MonitorCycle = processor
        self.scan_interval_seconds: float = scan_interval_seconds
        self.stop_event: threading.Event = stop_event
        self.monotonic_func: Callable[[], float] = monotonic_func
        self.log_root = getattr(self.processor, "root_path", "UnknownDir")

        logger.info(
            "Initialized %s for '%s' [Interval: %.1fs]",
            self.name,
            self.log_root,
            self.scan_interval_seconds,
        )

    def run(self) -> None:
        iteration: int = 0
        logger.info("Starting %s monitoring '%s'", self.name, self.log_root)

        while not self.stop_event.is_set():
            iteration += 1
            start_time: float = self.monotonic_func()
            logger.debug("%s cycle %d starting", self.name, iteration)

            cycle_success = False
            try:
                self.processor.run_once()
                cycle_success = True
            except Exception:
                logger.exception(
                    "%s: Unexpected error during cycle %d for '%s'; continuing.",
                    self.name,
                    iteration,
                    self.log_root,
                )

            cycle_duration: float = self.monotonic_func() - start_time
            logger.debug(
                "%s cycle %d finished (took %.3f sec, success: %s)",
                self.name,
                iteration,
                cycle_duration,
                cycle_success,
            )
            self._wait_or_stop(cycle_duration)

        logger.info(
            "Stopping %s monitoring for '%s' - Graceful exit after %d iterations.",
            self.name,
            self.log_root,
            iteration,
        )

    def stop(self) -> None:
        """Signals the thread to stop its loop gracefully."""
        if not self.stop_event.is_set():
            logger.info("%s received stop signal, requesting shutdown.", self.name)
            self.stop_event.set()
        else:
            logger.debug("%s is already stopping or has stopped.", self.name)

    def _wait_or_stop(self, cycle_duration: float) -> None:
        if self.stop_event.is_set():
            return

        wait_time: float = max(0.0, self.scan_interval_seconds - cycle_duration)
        if wait_time > 0:
            logger.debug(
                "%s waiting %.3f seconds before next cycle.", self.name, wait_time
            )
            if self.stop_event.wait(wait_time):
                logger.info("%s wait interrupted by stop signal.", self.name)
        else:
            logger.warning(
                "%s cycle took %.3f sec, longer than the %.1f sec interval; starting next cycle immediately.",
                self.name,
                cycle_duration,
                self.scan_interval_seconds,
            )
