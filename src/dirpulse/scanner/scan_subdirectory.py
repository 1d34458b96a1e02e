from pathlib import Path

from dirpulse.file_functions.fs_mock import FS
from dirpulse.scanner.batched_scan import scan_batched
from dirpulse.scanner.latest_subdir_scan import scan_latest_only
from dirpulse.scanner.scan_policy import ScanOutcome, ScanPolicy
from dirpulse.scanner.walk_tree import scan_full_tree


def scan_subdirectory(path: Path, policy: ScanPolicy, fs: FS) -> ScanOutcome:
    """
    Implementation of the SubdirectoryScanner protocol.

    Selects the traversal variant from the policy flags: latest_subdir_only
    takes precedence, then batch_mode, otherwise the plain full-tree walk.

    Raises:
        ScanDirectoryError: Propagated from the chosen variant when `path`
                            cannot be read.
    """
    if policy.latest_subdir_only:
        return scan_latest_only(path, policy, fs)
    if policy.batch_mode:
        return scan_batched(path, policy, fs)
    return scan_full_tree(path, policy, fs)
