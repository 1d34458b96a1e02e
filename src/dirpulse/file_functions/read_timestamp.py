import logging
import os
import sys
from typing import Optional

from dirpulse.file_functions.file_exceptions import TimestampUnavailableError
from dirpulse.scanner.scan_policy import TimestampKind

logger = logging.getLogger(__name__)

_NS_PER_SECOND = 1_000_000_000


def _birthtime_ns(stat_result: os.stat_result) -> Optional[int]:
    """
    Returns the creation instant in nanoseconds, or None when the platform
    does not expose one through stat().

    macOS/BSD (and Windows on Python 3.12+) provide st_birthtime. Older
    Windows interpreters report creation time in st_ctime. Linux stat()
    has no birth time at all.
    """
    birth_ns = getattr(stat_result, "st_birthtime_ns", None)
    if birth_ns is not None:
        return int(birth_ns)
    birth = getattr(stat_result, "st_birthtime", None)
    if birth is not None:
        return int(birth * _NS_PER_SECOND)
    if sys.platform == "win32":
        return int(stat_result.st_ctime_ns)
    return None


def read_timestamp_ns(stat_result: os.stat_result, kind: TimestampKind) -> int:
    """
    Extracts the timestamp named by `kind` from a stat result.

    Args:
        stat_result: Result of stat()/lstat()/DirEntry.stat().
        kind: Which timestamp to read.

    Returns:
        Nanoseconds since the epoch.

    Raises:
        TimestampUnavailableError: If `kind` is CREATED and the platform
                                   does not record creation time.
    """
    if kind is TimestampKind.MODIFIED:
        return int(stat_result.st_mtime_ns)

    birth_ns = _birthtime_ns(stat_result)
    if birth_ns is None:
        raise TimestampUnavailableError(
            f"creation time is not available on this platform ({sys.platform})"
        )
    return birth_ns
