import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from dirpulse.file_functions.file_exceptions import RootDirectoryError
from dirpulse.file_functions.fs_mock import FS
from dirpulse.scanner.scan_policy import SubdirectoryEntry

logger = logging.getLogger(__name__)

# Listing the root slower than this usually means a stalled network mount.
SLOW_ROOT_READ_SECONDS = 1.0


def _is_text_name(name: str) -> bool:
    # os.scandir maps undecodable bytes to lone surrogates; those cannot be
    # encoded back to UTF-8.
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _read_root_entries(root: Path, fs: FS) -> list[os.DirEntry]:
    try:
        with fs.scandir(root) as scanner:
            return list(scanner)
    except FileNotFoundError as e:
        raise RootDirectoryError("Monitored root does not exist", root, e) from e
    except NotADirectoryError as e:
        raise RootDirectoryError("Monitored root is not a directory", root, e) from e
    except PermissionError as e:
        raise RootDirectoryError("Permission denied reading monitored root", root, e) from e
    except OSError as e:
        raise RootDirectoryError("OS error reading monitored root", root, e) from e


def list_subdirectories(
    root: Path,
    fs: FS,
    monotonic_func: Callable[[], float] = time.monotonic,
) -> list[SubdirectoryEntry]:
    """
    Lists the immediate child directories of `root`.

    Plain files and other non-directory entries are ignored. Symlinks to
    directories count as directories here, as they do for a shell listing.
    Entries whose type cannot be determined, or whose name is not valid
    text, are skipped with a warning.

    Args:
        root: The monitored root directory.
        fs: Filesystem abstraction instance.
        monotonic_func: Clock used to time the root listing.

    Returns:
        One SubdirectoryEntry per child directory, in listing order.

    Raises:
        RootDirectoryError: If `root` is missing, not a directory, or unreadable.
    """
    started = monotonic_func()
    raw_entries = _read_root_entries(root, fs)
    read_duration = monotonic_func() - started

    if read_duration > SLOW_ROOT_READ_SECONDS:
        logger.warning(
            "Reading root '%s' took %.2f s; the filesystem may be slow or a mount may be stalled.",
            root,
            read_duration,
        )
    else:
        logger.debug("Read root '%s' in %.2f ms", root, read_duration * 1000)

    subdirectories: list[SubdirectoryEntry] = []
    for entry in raw_entries:
        try:
            if not entry.is_dir():
                continue
        except OSError as e:
            logger.warning(
                "Could not determine type of '%s' in '%s': %s. Skipping.",
                entry.path,
                root,
                e,
            )
            continue

        if not _is_text_name(entry.name):
            logger.warning(
                "Skipping subdirectory with undecodable name %r in '%s'.",
                entry.name,
                root,
            )
            continue

        subdirectories.append(SubdirectoryEntry(name=entry.name, path=Path(entry.path)))

    logger.debug("Found %d subdirectories under '%s'", len(subdirectories), root)
    return subdirectories
