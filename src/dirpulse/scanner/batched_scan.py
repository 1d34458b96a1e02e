import logging
import os
from pathlib import Path

from dirpulse.file_functions.fs_mock import FS
from dirpulse.scanner.scan_policy import ScanOutcome, ScanPolicy, ScanWarning
from dirpulse.scanner.walk_tree import is_newer_than_threshold, iter_file_entries

logger = logging.getLogger(__name__)


def scan_batched(path: Path, policy: ScanPolicy, fs: FS) -> ScanOutcome:
    """
    Same answer as scan_full_tree, different I/O pattern.

    Pass 1 enumerates every regular file under the depth bound. Pass 2 checks
    the collected entries using DirEntry.stat(), which reuses metadata the
    directory listing already captured where the platform provides it
    (Windows) and otherwise costs one stat per file, as the full walk does.
    The check pass still stops at the first qualifying file.

    Raises:
        ScanDirectoryError: If `path` itself cannot be listed.
    """
    warnings: list[ScanWarning] = []
    entries: list[os.DirEntry] = list(
        iter_file_entries(path, policy, fs, warnings)
    )
    logger.debug("Collected %d file entries under %s", len(entries), path)

    for entry in entries:
        file_path = Path(entry.path)
        try:
            stat_result = entry.stat(follow_symlinks=policy.follow_symlinks)
        except OSError as e:
            warnings.append(
                ScanWarning(path=file_path, message=f"Could not read metadata: {e}")
            )
            continue

        if is_newer_than_threshold(stat_result, file_path, policy, warnings):
            logger.debug("Recent file found in batch check: %s", file_path)
            return ScanOutcome(has_recent_activity=True, warnings=warnings)

    return ScanOutcome(has_recent_activity=False, warnings=warnings)
