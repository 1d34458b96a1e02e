import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dirpulse.file_functions.file_exceptions import (
    RootDirectoryError,
    ScanDirectoryError,
)
from dirpulse.file_functions.fs_mock import FS
from dirpulse.monitor.dispatch import run_concurrent, run_parallel, run_sequential
from dirpulse.monitor.enumerate_subdirectories import list_subdirectories
from dirpulse.protocols import SubdirectoryScanner
from dirpulse.scanner.scan_policy import (
    ConcurrencyMode,
    ScanPolicy,
    SubdirectoryEntry,
)
from dirpulse.scanner.scan_subdirectory import scan_subdirectory

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """
    Everything one check cycle produced.

    `activity` maps subdirectory name to "has recent activity". When the root
    could not be read it is empty and `error` says why; the caller decides how
    loudly to report that. `mode` and `elapsed_seconds` are for logging only.
    """

    activity: dict[str, bool]
    mode: ConcurrencyMode
    elapsed_seconds: float
    error: Optional[RootDirectoryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_worker_count(max_parallel_tasks: Optional[int]) -> int:
    """Configured cap if set, otherwise the CPU count."""
    if max_parallel_tasks is not None and max_parallel_tasks >= 1:
        return max_parallel_tasks
    return os.cpu_count() or 1


def check_all(
    root: Path,
    policy: ScanPolicy,
    mode: ConcurrencyMode = ConcurrencyMode.SEQUENTIAL,
    max_parallel_tasks: Optional[int] = None,
    *,
    fs: FS = FS(),
    scanner: SubdirectoryScanner = scan_subdirectory,
    monotonic_func: Callable[[], float] = time.monotonic,
) -> CycleResult:
    """
    Scans every immediate subdirectory of `root` and reports which ones show
    recent activity.

    Holds no state between calls: the result depends only on the filesystem
    at call time and on `policy`.

    Args:
        root: The monitored root directory.
        policy: Immutable scan settings shared by every scan in this cycle.
        mode: Dispatch strategy for the per-subdirectory scans.
        max_parallel_tasks: Cap on simultaneous scans in concurrent and
                            parallel modes; None means the CPU count.
        fs: Filesystem abstraction instance.
        scanner: Per-subdirectory scan implementation.
        monotonic_func: Clock used for timing.

    Returns:
        A CycleResult. This function does not raise for filesystem problems:
        an unreadable root yields an empty mapping plus `error`, and a failed
        subdirectory scan yields False for that entry.
    """
    started = monotonic_func()

    try:
        entries = list_subdirectories(root, fs, monotonic_func=monotonic_func)
    except RootDirectoryError as e:
        logger.debug("Root unavailable, returning empty result: %s", e)
        return CycleResult(
            activity={},
            mode=mode,
            elapsed_seconds=monotonic_func() - started,
            error=e,
        )

    def scan_one(entry: SubdirectoryEntry) -> bool:
        try:
            outcome = scanner(entry.path, policy, fs)
        except ScanDirectoryError as e:
            logger.warning(
                "Scan of '%s' failed, reporting no activity: %s", entry.name, e
            )
            return False
        for warning in outcome.warnings:
            logger.warning(
                "Skipped '%s' while scanning '%s': %s",
                warning.path,
                entry.name,
                warning.message,
            )
        return outcome.has_recent_activity

    workers = resolve_worker_count(max_parallel_tasks)
    logger.debug(
        "Dispatching %d subdirectories (mode: %s, workers: %d)",
        len(entries),
        mode.value,
        workers,
    )

    if mode is ConcurrencyMode.CONCURRENT:
        activity = run_concurrent(entries, scan_one, max_in_flight=workers)
    elif mode is ConcurrencyMode.PARALLEL:
        activity = run_parallel(entries, scan_one, max_workers=workers)
    else:
        activity = run_sequential(entries, scan_one)

    elapsed = monotonic_func() - started
    logger.info(
        "Scanned %d subdirectories in %.2f ms (mode: %s)",
        len(entries),
        elapsed * 1000,
        mode.value,
        extra={"scan_mode": mode.value, "elapsed_seconds": elapsed},
    )
    return CycleResult(activity=activity, mode=mode, elapsed_seconds=elapsed)
