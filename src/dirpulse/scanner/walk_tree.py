import logging
import os
from pathlib import Path
from typing import Iterator, Optional

from dirpulse.file_functions.file_exceptions import (
    ScanDirectoryError,
    TimestampUnavailableError,
)
from dirpulse.file_functions.fs_mock import FS
from dirpulse.file_functions.read_timestamp import read_timestamp_ns
from dirpulse.scanner.scan_policy import ScanOutcome, ScanPolicy, ScanWarning

logger = logging.getLogger(__name__)


def _open_failure_message(error: OSError) -> str:
    if isinstance(error, FileNotFoundError):
        return "Directory not found during scan"
    if isinstance(error, NotADirectoryError):
        return "Path is not a directory during scan"
    if isinstance(error, PermissionError):
        return "Permission denied during scan"
    return "OS error during scan"


def _directory_identity(path: Path, fs: FS) -> Optional[tuple[int, int]]:
    try:
        st = fs.stat(path)
    except OSError:
        return None
    return st.st_dev, st.st_ino


def iter_file_entries(
    root: Path,
    policy: ScanPolicy,
    fs: FS,
    warnings: list[ScanWarning],
) -> Iterator[os.DirEntry]:
    """
    Yields the regular-file entries below `root`, honouring the policy's depth
    bound and symlink setting.

    Depth is counted from `root`: its direct children are at depth 1. With
    `follow_symlinks=False` symbolic links are never followed, neither to
    directories nor to files, so a link to a recent file does not count as
    activity. Only regular files are matched; tools that resolve the link
    before checking would report it.

    With `follow_symlinks=True` each directory carries the (st_dev, st_ino) ids
    of its ancestors, and a subdirectory is skipped only when it is one of
    them. A directory reachable by two routes is therefore walked on both, and
    the shallower route always sees it within `max_depth` regardless of the
    order entries are listed in.

    Subdirectories that cannot be listed, and entries whose type cannot be
    determined, are recorded in `warnings` and skipped.

    Raises:
        ScanDirectoryError: If `root` itself cannot be listed.
    """
    max_depth = policy.max_depth
    follow = policy.follow_symlinks
    if max_depth is not None and max_depth < 1:
        logger.debug("max_depth=%s leaves nothing to visit under %s", max_depth, root)
        return

    root_ancestors: frozenset[tuple[int, int]] = frozenset()
    if follow:
        root_id = _directory_identity(root, fs)
        if root_id is not None:
            root_ancestors = frozenset([root_id])

    # (directory, depth relative to root, ids of the directories on its path)
    pending: list[tuple[Path, int, frozenset[tuple[int, int]]]] = [
        (root, 0, root_ancestors)
    ]
    while pending:
        directory, depth, ancestors = pending.pop()
        child_depth = depth + 1
        try:
            with fs.scandir(directory) as entries:
                subdirs: list[Path] = []
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=follow):
                            yield entry
                        elif entry.is_dir(follow_symlinks=follow):
                            if max_depth is None or child_depth < max_depth:
                                subdirs.append(Path(entry.path))
                        else:
                            logger.debug("Skipping non-regular entry: %s", entry.path)
                    except OSError as entry_error:
                        warnings.append(
                            ScanWarning(
                                path=Path(entry.path),
                                message=f"Could not determine entry type: {entry_error}",
                            )
                        )
        except OSError as e:
            if directory == root:
                msg = _open_failure_message(e)
                logger.debug("%s: %s (%s)", msg, directory, e)
                raise ScanDirectoryError(msg, directory, e) from e
            warnings.append(
                ScanWarning(
                    path=directory, message=f"Could not open directory: {e}"
                )
            )
            continue

        for subdir in subdirs:
            subdir_ancestors = ancestors
            if follow:
                identity = _directory_identity(subdir, fs)
                if identity is not None:
                    if identity in ancestors:
                        logger.debug("Symlink cycle detected, not re-entering %s", subdir)
                        continue
                    subdir_ancestors = ancestors | {identity}
            pending.append((subdir, child_depth, subdir_ancestors))


def is_newer_than_threshold(
    stat_result: os.stat_result,
    path: Path,
    policy: ScanPolicy,
    warnings: list[ScanWarning],
) -> bool:
    """Strictly-greater comparison; an unavailable timestamp is a warning, not a match."""
    try:
        timestamp_ns = read_timestamp_ns(stat_result, policy.timestamp_kind)
    except TimestampUnavailableError as e:
        warnings.append(
            ScanWarning(
                path=path,
                message=f"Cannot read {policy.timestamp_kind.value} time: {e}",
            )
        )
        return False
    return timestamp_ns > policy.threshold_ns


def scan_full_tree(path: Path, policy: ScanPolicy, fs: FS) -> ScanOutcome:
    """
    Walks the tree under `path` and reports whether any regular file carries a
    timestamp newer than the policy threshold. Stops at the first match.

    Metadata is fetched per file with fs.stat (or fs.lstat when symlinks are
    not followed), immediately after the entry is found.

    Raises:
        ScanDirectoryError: If `path` itself cannot be listed.
    """
    warnings: list[ScanWarning] = []
    stat_func = fs.stat if policy.follow_symlinks else fs.lstat

    for entry in iter_file_entries(path, policy, fs, warnings):
        file_path = Path(entry.path)
        try:
            stat_result = stat_func(file_path)
        except OSError as e:
            warnings.append(
                ScanWarning(path=file_path, message=f"Could not read metadata: {e}")
            )
            continue

        if is_newer_than_threshold(stat_result, file_path, policy, warnings):
            logger.debug("Recent file found: %s", file_path)
            return ScanOutcome(has_recent_activity=True, warnings=warnings)

    return ScanOutcome(has_recent_activity=False, warnings=warnings)
