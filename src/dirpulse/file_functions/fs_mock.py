import os
import shutil
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import (
    Union,
    Callable,
    IO,
    ContextManager,
    Iterator,
    Protocol,
    Optional,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ResolveCallable(Protocol):
    def __call__(self, path: PathLike, *, strict: bool = False) -> Path: ...


class OpenFileCallable(Protocol):
    def __call__(
        self, path: PathLike, mode: str, *, encoding: Optional[str] = None
    ) -> ContextManager[IO]: ...


def _default_os_stat(path: PathLike) -> os.stat_result:
    return os.stat(str(path))


def _default_os_lstat(path: PathLike) -> os.stat_result:
    return os.lstat(str(path))


def _default_exists(path: PathLike) -> bool:
    return os.path.exists(str(path))


def _default_open(
    path: PathLike, mode: str, *, encoding: Optional[str] = None
) -> ContextManager[IO]:
    """
    Default implementation for opening a file.
    Matches the built-in open() signature for mode and encoding.
    """
    return open(str(path), mode, encoding=encoding)


def _default_isdir(path: PathLike) -> bool:
    return os.path.isdir(str(path))


def _default_isfile(path: PathLike) -> bool:
    return os.path.isfile(str(path))


def _default_resolve(path: PathLike, *, strict: bool = False) -> Path:
    p = Path(path)
    try:
        return p.resolve(strict=strict)
    except FileNotFoundError:
        if strict:
            raise
        return p.absolute()


def _default_scandir(path: PathLike) -> ContextManager[Iterator[os.DirEntry]]:
    return os.scandir(str(path))


def _default_replace(src: PathLike, dst: PathLike) -> None:
    os.replace(str(src), str(dst))


def _default_copy(src: PathLike, dst: PathLike) -> None:
    try:
        shutil.copy2(str(src), str(dst))
    except Exception as e:
        logger.debug("FS.copy failed (%s -> %s): %s", src, dst, e)
        raise


def _default_remove(path: PathLike) -> None:
    os.remove(str(path))


@dataclass(frozen=True)
class FS:
    """
    Bundle of filesystem callables used throughout dirpulse.

    Every metadata read and every config-file write goes through an instance
    of this class, so tests can swap single operations without touching the
    real filesystem.
    """

    stat: Callable[[PathLike], os.stat_result] = field(default=_default_os_stat)
    lstat: Callable[[PathLike], os.stat_result] = field(default=_default_os_lstat)
    exists: Callable[[PathLike], bool] = field(default=_default_exists)
    open: OpenFileCallable = field(default=_default_open)
    is_dir: Callable[[PathLike], bool] = field(default=_default_isdir)
    is_file: Callable[[PathLike], bool] = field(default=_default_isfile)
    resolve: ResolveCallable = field(default=_default_resolve)
    scandir: Callable[[PathLike], ContextManager[Iterator[os.DirEntry]]] = field(
        default=_default_scandir
    )
    replace: Callable[[PathLike, PathLike], None] = field(default=_default_replace)
    copy: Callable[[PathLike, PathLike], None] = field(default=_default_copy)
    remove: Callable[[PathLike], None] = field(default=_default_remove)
