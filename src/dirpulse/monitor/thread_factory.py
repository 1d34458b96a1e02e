import logging
import threading
import time
from collections.abc import Callable

from dirpulse.file_functions.fs_mock import FS
from dirpulse.monitor.monitor_cycle import MonitorCycle
from dirpulse.monitor.monitor_thread import MonitorThread
from dirpulse.protocols import NanoClock, StatusReporter
from dirpulse.startup_code.load_config import Config

logger = logging.getLogger(__name__)


def create_monitor_thread(
    *,
    config: Config,
    reporter: StatusReporter,
    stop_event: threading.Event,
    fs: FS,
    time_ns_func: NanoClock = time.time_ns,
    monotonic_func: Callable[[], float] = time.monotonic,
) -> MonitorThread:
    """
    Factory function to create a MonitorThread for the configured root.

    The root is not validated here: a missing root is reported
    by each cycle and the thread keeps polling until it appears.

    Returns:
        A configured but not started MonitorThread instance.
    """
    processor = MonitorCycle(
        config=config,
        fs=fs,
        reporter=reporter,
        time_ns_func=time_ns_func,
        monotonic_func=monotonic_func,
    )

    root_name = config.root_path.name or str(config.root_path)
    thread_name = f"Monitor-{root_name}"
    logger.debug("Creating %s for root %s", thread_name, config.root_path)
    return MonitorThread(
        processor=processor,
        stop_event=stop_event,
        scan_interval_seconds=config.scan_interval_seconds,
        monotonic_func=monotonic_func,
        name=thread_name,
    )
