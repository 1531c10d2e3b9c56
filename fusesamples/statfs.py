"""A file system that serves canned statfs and stat responses."""

from __future__ import annotations

import dataclasses
import errno
import stat
import threading
from datetime import datetime

from .fstypes import (
    ROOT_INODE_ID,
    ChildInodeEntry,
    FuseError,
    InodeAttributes,
    StatFSResponse,
)

CHILD_INODE_ID = ROOT_INODE_ID + 1


def _dir_attrs() -> InodeAttributes:
    return InodeAttributes(mode=stat.S_IFDIR | 0o777)


class StatFS:
    """Answers statfs with a configurable canned response.

    Any name under the root may be opened and written; the size of the most
    recent write is recorded. Safe for concurrent use.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._canned_response = StatFSResponse()
        self._canned_stat = InodeAttributes(mode=stat.S_IFREG | 0o666)
        self._most_recent_write_size = -1

    def _file_attrs(self) -> InodeAttributes:
        with self._lock:
            return dataclasses.replace(self._canned_stat)

    def set_stat_fs_response(self, response: StatFSResponse) -> None:
        """Use the given response for future statfs calls."""
        with self._lock:
            self._canned_response = response

    def set_stat_response(self, attributes: InodeAttributes) -> None:
        """Use the given attributes for future stat calls on files."""
        with self._lock:
            self._canned_stat = dataclasses.replace(attributes)

    def most_recent_write_size(self) -> int:
        """Size of the most recent write, or -1 if there has been none."""
        with self._lock:
            return self._most_recent_write_size

    def stat_fs(self) -> StatFSResponse:
        with self._lock:
            return self._canned_response

    def look_up_inode(self, parent: int, name: str) -> ChildInodeEntry:
        if parent != ROOT_INODE_ID:
            raise FuseError(errno.ENOENT)
        return ChildInodeEntry(child=CHILD_INODE_ID, attributes=self._file_attrs())

    def get_inode_attributes(self, inode_id: int) -> InodeAttributes:
        if inode_id == ROOT_INODE_ID:
            return _dir_attrs()
        if inode_id == CHILD_INODE_ID:
            return self._file_attrs()
        raise FuseError(errno.ENOENT)

    def set_inode_attributes(
        self,
        inode_id: int,
        size: int | None = None,
        mode: int | None = None,
        mtime: datetime | None = None,
    ) -> InodeAttributes:
        """Ignored, so that truncating on open succeeds; returns empty attributes."""
        return InodeAttributes()

    def open_file(self, inode_id: int) -> None:
        """Any file may be opened."""

    def write_file(self, inode_id: int, offset: int, data: bytes) -> None:
        with self._lock:
            self._most_recent_write_size = len(data)