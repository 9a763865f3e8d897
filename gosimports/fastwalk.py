"""A concurrent directory walker that reports only the type of each entry.

The callback runs on several worker threads at once and must be safe for
concurrent use. It steers the walk by raising :class:`SkipDir`,
:class:`SkipFiles` or :class:`TraverseLink`. Any other exception ends the
walk and is raised again from :func:`walk`.
"""

from __future__ import annotations

import enum
import os
import stat
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable

_MIN_WORKERS = 4


class FileType(enum.Flag):
    """The type of a directory entry; permission bits are never included."""

    REGULAR = 0
    DIR = enum.auto()
    SYMLINK = enum.auto()
    DEVICE = enum.auto()
    CHAR_DEVICE = enum.auto()
    NAMED_PIPE = enum.auto()
    SOCKET = enum.auto()


class _WalkSignal(Exception):
    """Base of the exceptions a callback raises to steer the walk."""


class TraverseLink(_WalkSignal):
    """Raised for a symlink to have it followed, assuming it names a directory."""

    def __init__(self, *args: object) -> None:
        super().__init__(*(args or ("traverse symlink, assuming target is a directory",)))


class SkipFiles(_WalkSignal):
    """Raised to skip the remaining regular files of the current directory.

    Child directories are still traversed.
    """

    def __init__(self, *args: object) -> None:
        super().__init__(*(args or ("skip remaining files in directory",)))


class SkipDir(_WalkSignal):
    """Raised for a directory (or a symlink) so that it is not descended into."""

    def __init__(self, *args: object) -> None:
        super().__init__(*(args or ("skip this directory",)))


WalkFunc = Callable[[str, FileType], None]


@dataclass(frozen=True)
class _Item:
    directory: str
    callback_done: bool = False


def _entry_type(entry: os.DirEntry) -> FileType | None:
    """Classify an entry without following symlinks; None for unknown kinds."""
    if entry.is_symlink():
        return FileType.SYMLINK
    if entry.is_dir(follow_symlinks=False):
        return FileType.DIR
    if entry.is_file(follow_symlinks=False):
        return FileType.REGULAR
    mode = entry.stat(follow_symlinks=False).st_mode
    if stat.S_ISFIFO(mode):
        return FileType.NAMED_PIPE
    if stat.S_ISSOCK(mode):
        return FileType.SOCKET
    if stat.S_ISBLK(mode):
        return FileType.DEVICE
    if stat.S_ISCHR(mode):
        return FileType.DEVICE | FileType.CHAR_DEVICE
    return None


def _walk_dir(directory: str, run_callback: bool, walk_fn: WalkFunc) -> list[_Item]:
    """Visit one directory's entries and return the directories to walk next."""
    if run_callback:
        try:
            walk_fn(directory, FileType.DIR)
        except SkipDir:
            return []

    found: list[_Item] = []
    skip_files = False
    with os.scandir(directory) as entries:
        for entry in entries:
            try:
                typ = _entry_type(entry)
            except FileNotFoundError:
                continue  # removed while we were looking
            if typ is None:
                continue
            if skip_files and typ == FileType.REGULAR:
                continue
            joined = directory + os.sep + entry.name
            if typ == FileType.DIR:
                found.append(_Item(joined))
                continue
            try:
                walk_fn(joined, typ)
            except TraverseLink:
                if typ != FileType.SYMLINK:
                    raise
                found.append(_Item(joined, callback_done=True))
            except SkipDir:
                if typ != FileType.SYMLINK:
                    raise
            except SkipFiles:
                skip_files = True
    return found


def walk(root: str, walk_fn: WalkFunc) -> None:
    """Walk the tree under ``root``, calling ``walk_fn(path, type)`` for each entry.

    ``root`` itself is reported as a directory. Symlinks are reported as such
    and only followed when the callback raises :class:`TraverseLink`; it is the
    callback's duty to avoid symlink cycles. The first exception other than the
    steering ones stops the walk and is raised.
    """
    workers = max(_MIN_WORKERS, os.cpu_count() or 1)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        pending: set[Future[list[_Item]]] = {
            pool.submit(_walk_dir, root, True, walk_fn)
        }
        try:
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    for item in future.result():
                        pending.add(
                            pool.submit(
                                _walk_dir, item.directory, not item.callback_done, walk_fn
                            )
                        )
        except BaseException:
            for future in pending:
                future.cancel()
            raise