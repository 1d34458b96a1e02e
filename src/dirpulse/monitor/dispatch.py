"""
Dispatch strategies for the per-subdirectory scans of one cycle.

All three take the same list of entries and the same `scan_one` callable and
return the same mapping for an unchanging filesystem. They differ only in
where the blocking work runs:

- run_sequential: one entry at a time on the calling thread.
- run_concurrent: one asyncio task per entry; each task hands its blocking
  scan to a worker thread via asyncio.to_thread, and an asyncio.Semaphore
  caps how many scans are in flight.
- run_parallel: a ThreadPoolExecutor sized to the worker count.

An exception escaping `scan_one` marks that one entry as inactive; it never
aborts the cycle. No mode imposes a per-scan timeout, so a hung filesystem
call stalls its own entry (and, in sequential mode, every entry after it).
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from dirpulse.scanner.scan_policy import SubdirectoryEntry

logger = logging.getLogger(__name__)

ScanOne = Callable[[SubdirectoryEntry], bool]


def _log_failed_scan(entry: SubdirectoryEntry, error: BaseException) -> None:
    logger.error(
        "Unexpected error scanning '%s'; reporting it as inactive.",
        entry.name,
        exc_info=(type(error), error, error.__traceback__),
    )


def run_sequential(
    entries: Sequence[SubdirectoryEntry], scan_one: ScanOne
) -> dict[str, bool]:
    activity: dict[str, bool] = {}
    for entry in entries:
        try:
            activity[entry.name] = scan_one(entry)
        except Exception as e:
            _log_failed_scan(entry, e)
            activity[entry.name] = False
    return activity


async def _scan_all_async(
    entries: Sequence[SubdirectoryEntry], scan_one: ScanOne, max_in_flight: int
) -> list:
    semaphore = asyncio.Semaphore(max_in_flight)

    async def _scan_guarded(entry: SubdirectoryEntry) -> bool:
        async with semaphore:
            return await asyncio.to_thread(scan_one, entry)

    return await asyncio.gather(
        *(_scan_guarded(entry) for entry in entries), return_exceptions=True
    )


def run_concurrent(
    entries: Sequence[SubdirectoryEntry], scan_one: ScanOne, max_in_flight: int
) -> dict[str, bool]:
    """
    Runs the scans as asyncio tasks on a private event loop.

    A thread that is already running an event loop cannot start another one;
    called from such a thread, the scans go to run_parallel instead.
    """
    if max_in_flight < 1:
        raise ValueError(f"max_in_flight must be >= 1, got {max_in_flight}")

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        logger.warning(
            "Event loop already running in this thread; "
            "scanning %d entries with a thread pool instead.",
            len(entries),
        )
        return run_parallel(entries, scan_one, max_workers=max_in_flight)

    results = asyncio.run(_scan_all_async(entries, scan_one, max_in_flight))

    activity: dict[str, bool] = {}
    for entry, result in zip(entries, results):
        if isinstance(result, BaseException):
            _log_failed_scan(entry, result)
            activity[entry.name] = False
        else:
            activity[entry.name] = result
    return activity


def run_parallel(
    entries: Sequence[SubdirectoryEntry], scan_one: ScanOne, max_workers: int
) -> dict[str, bool]:
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}")
    if not entries:
        return {}

    activity: dict[str, bool] = {}
    with ThreadPoolExecutor(
        max_workers=max_workers, thread_name_prefix="dirpulse-scan"
    ) as executor:
        futures = {executor.submit(scan_one, entry): entry for entry in entries}
        for future in as_completed(futures):
            entry = futures[future]
            try:
                activity[entry.name] = future.result()
            except Exception as e:
                _log_failed_scan(entry, e)
                activity[entry.name] = False
    return activity
