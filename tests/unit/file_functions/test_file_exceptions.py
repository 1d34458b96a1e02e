from pathlib import Path

import pytest

from dirpulse.file_functions.file_exceptions import (
    RootDirectoryError,
    ScanDirectoryError,
    TimestampUnavailableError,
)


def test_scan_directory_error_carries_context():
    original = PermissionError(13, "Permission denied")
    directory = Path("/data/cam1")

    err = ScanDirectoryError("Permission denied during scan", directory, original)

    assert err.directory == directory
    assert err.original_exception is original
    assert "Permission denied during scan" in str(err)
    assert "[Directory: /data/cam1]" in str(err)


def test_root_directory_error_carries_context():
    original = FileNotFoundError(2, "No such file or directory")
    root = Path("/mnt/missing")

    err = RootDirectoryError("Monitored root does not exist", root, original)

    assert err.root == root
    assert err.original_exception is original
    assert str(err) == "Monitored root does not exist [Root: /mnt/missing]"


def test_timestamp_unavailable_is_plain_exception():
    with pytest.raises(TimestampUnavailableError, match="not available"):
        raise TimestampUnavailableError("creation time is not available")
