import logging
import time
from collections.abc import Callable

from dirpulse.file_functions.fs_mock import FS
from dirpulse.monitor.check_all import CycleResult, check_all
from dirpulse.protocols import NanoClock, StatusReporter
from dirpulse.startup_code.load_config import Config

logger = logging.getLogger(__name__)


class MonitorCycle:
    """
    Performs one check cycle: read the clock, build the policy, scan, report.

    The wall clock is read exactly once per cycle, here; the threshold it
    yields is shared by every subdirectory scan of the cycle.
    """

    def __init__(
        self,
        *,
        config: Config,
        fs: FS,
        reporter: StatusReporter,
        time_ns_func: NanoClock = time.time_ns,
        monotonic_func: Callable[[], float] = time.monotonic,
    ):
        self.config: Config = config
        self.fs: FS = fs
        self.reporter: StatusReporter = reporter
        self.time_ns_func: NanoClock = time_ns_func
        self.monotonic_func: Callable[[], float] = monotonic_func
        self.root_path = config.root_path

        logger.info(
            "Initialized %s for '%s' [Window: %.1fh, Mode: %s, Max depth: %s, "
            "Latest subdir only: %s, Batch: %s, Timestamp: %s]",
            self.__class__.__name__,
            self.root_path,
            config.check_hours,
            config.parallel_mode.value,
            config.max_depth if config.max_depth is not None else "unlimited",
            config.latest_subdir_only,
            config.batch_mode,
            config.timestamp_kind.value,
        )

    def run_once(self) -> CycleResult:
        policy = self.config.build_policy(self.time_ns_func())
        result = check_all(
            self.root_path,
            policy,
            self.config.parallel_mode,
            self.config.max_parallel_tasks,
            fs=self.fs,
            monotonic_func=self.monotonic_func,
        )
        if result.error is not None:
            logger.error(
                "Monitored root is unavailable: %s. Check [Monitor] root_path; "
                "will retry next cycle.",
                result.error,
            )
        else:
            active = sum(1 for is_active in result.activity.values() if is_active)
            logger.debug(
                "%d of %d subdirectories active", active, len(result.activity)
            )

        self.reporter(result.activity)
        return result
