import dataclasses
import logging
from pathlib import Path
from typing import Optional

from dirpulse.file_functions.file_exceptions import (
    ScanDirectoryError,
    TimestampUnavailableError,
)
from dirpulse.file_functions.fs_mock import FS
from dirpulse.file_functions.read_timestamp import read_timestamp_ns
from dirpulse.scanner.scan_policy import ScanOutcome, ScanPolicy, ScanWarning
from dirpulse.scanner.walk_tree import scan_full_tree

logger = logging.getLogger(__name__)


def find_latest_subdirectory(
    path: Path, policy: ScanPolicy, fs: FS, warnings: list[ScanWarning]
) -> Optional[Path]:
    """
    Returns the immediate child directory of `path` with the greatest
    timestamp (per `policy.timestamp_kind`), or None if there is none.

    Ties go to the lexicographically last name so the choice does not depend
    on directory enumeration order. Children whose timestamp cannot be read
    are skipped with a warning.

    Raises:
        ScanDirectoryError: If `path` cannot be listed.
    """
    best: Optional[tuple[int, str, Path]] = None
    try:
        with fs.scandir(path) as entries:
            for entry in entries:
                child = Path(entry.path)
                try:
                    if not entry.is_dir(follow_symlinks=policy.follow_symlinks):
                        continue
                    stat_result = entry.stat(follow_symlinks=policy.follow_symlinks)
                    timestamp_ns = read_timestamp_ns(
                        stat_result, policy.timestamp_kind
                    )
                except (OSError, TimestampUnavailableError) as e:
                    warnings.append(
                        ScanWarning(
                            path=child,
                            message=f"Could not read directory timestamp: {e}",
                        )
                    )
                    continue

                candidate = (timestamp_ns, entry.name, child)
                if best is None or candidate[:2] > best[:2]:
                    best = candidate
    except OSError as e:
        raise ScanDirectoryError(
            "Could not list directory while looking for latest subdirectory",
            path,
            e,
        ) from e

    return best[2] if best is not None else None


def scan_latest_only(path: Path, policy: ScanPolicy, fs: FS) -> ScanOutcome:
    """
    Heuristic scan that only descends into the most recently stamped child.

    1. If `path` itself is newer than the threshold, answer True at once.
    2. Otherwise pick the latest immediate subdirectory (none -> False).
    3. Walk only that subdirectory, with max_depth reduced by one (never
       below 1) for the level the selection consumed.

    Files that changed in any other child are not seen. This is a known
    trade-off of the mode, not an error.

    Raises:
        ScanDirectoryError: If `path` (or the selected child) cannot be read.
    """
    warnings: list[ScanWarning] = []

    # `path` was already accepted as a directory, so a link here is resolved
    # to the directory that scandir will list.
    try:
        own_stat = fs.stat(path)
    except OSError as e:
        raise ScanDirectoryError("Could not stat directory", path, e) from e

    try:
        own_ns = read_timestamp_ns(own_stat, policy.timestamp_kind)
    except TimestampUnavailableError as e:
        warnings.append(
            ScanWarning(path=path, message=f"Could not read directory timestamp: {e}")
        )
    else:
        if own_ns > policy.threshold_ns:
            logger.debug("Directory itself is recent: %s", path)
            return ScanOutcome(has_recent_activity=True, warnings=warnings)

    latest = find_latest_subdirectory(path, policy, fs, warnings)
    if latest is None:
        logger.debug("No subdirectories under %s; nothing to search", path)
        return ScanOutcome(has_recent_activity=False, warnings=warnings)

    inner_depth = (
        None if policy.max_depth is None else max(policy.max_depth - 1, 1)
    )
    inner_policy = dataclasses.replace(policy, max_depth=inner_depth)
    logger.debug("Searching latest subdirectory %s (max_depth=%s)", latest, inner_depth)

    inner = scan_full_tree(latest, inner_policy, fs)
    warnings.extend(inner.warnings)
    return ScanOutcome(has_recent_activity=inner.has_recent_activity, warnings=warnings)
