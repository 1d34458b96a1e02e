from typing import Protocol, Mapping, Callable
from pathlib import Path

from dirpulse.file_functions.fs_mock import FS
from dirpulse.scanner.scan_policy import ScanOutcome, ScanPolicy


# --- Scanning Related Protocols ---


class SubdirectoryScanner(Protocol):
    """
    Protocol for a callable that decides whether one subdirectory shows
    recent activity under a given policy.
    """

    def __call__(self, path: Path, policy: ScanPolicy, fs: FS) -> ScanOutcome:
        """
        Scans `path` using `fs`.

        Returns:
            A ScanOutcome carrying the boolean answer and any per-item
            warnings collected along the way.

        Raises:
            ScanDirectoryError: If `path` itself cannot be read.
        """
        ...


class StatusReporter(Protocol):
    """Protocol for the collaborator that presents one cycle's activity map."""

    def __call__(self, activity: Mapping[str, bool]) -> None: ...


# --- Timing Related Type Aliases ---

NanoClock = Callable[[], int]
"""Type alias for a callable matching the signature of time.time_ns."""
