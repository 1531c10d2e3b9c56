"""A read-only file system with a fixed layout of greeting files."""

from __future__ import annotations

import dataclasses
import errno
import stat
from datetime import datetime
from typing import Protocol

from .fstypes import (
    ROOT_INODE_ID,
    ChildInodeEntry,
    Dirent,
    DirentType,
    FuseError,
    InodeAttributes,
    StatFSResponse,
)

CONTENTS = b"Hello, world!"

ROOT_INODE = ROOT_INODE_ID
HELLO_INODE = ROOT_INODE_ID + 1
DIR_INODE = ROOT_INODE_ID + 2
WORLD_INODE = ROOT_INODE_ID + 3


class Clock(Protocol):
    def now(self) -> datetime: ...


@dataclasses.dataclass(frozen=True)
class _InodeInfo:
    attributes: InodeAttributes
    is_dir: bool = False
    children: tuple[Dirent, ...] = ()


def _dir_attrs() -> InodeAttributes:
    return InodeAttributes(nlink=1, mode=stat.S_IFDIR | 0o555)


def _file_attrs() -> InodeAttributes:
    return InodeAttributes(nlink=1, mode=stat.S_IFREG | 0o444, size=len(CONTENTS))


_INODES: dict[int, _InodeInfo] = {
    ROOT_INODE: _InodeInfo(
        attributes=_dir_attrs(),
        is_dir=True,
        children=(
            Dirent(offset=1, inode=HELLO_INODE, name="hello", type=DirentType.FILE),
            Dirent(offset=2, inode=DIR_INODE, name="dir", type=DirentType.DIRECTORY),
        ),
    ),
    HELLO_INODE: _InodeInfo(attributes=_file_attrs()),
    DIR_INODE: _InodeInfo(
        attributes=_dir_attrs(),
        is_dir=True,
        children=(
            Dirent(offset=1, inode=WORLD_INODE, name="world", type=DirentType.FILE),
        ),
    ),
    WORLD_INODE: _InodeInfo(attributes=_file_attrs()),
}


class HelloFS:
    """A fixed tree: ``hello`` and ``dir/world``, each holding "Hello, world!"."""

    def __init__(self, clock: Clock):
        self.clock = clock

    def _info(self, inode_id: int) -> _InodeInfo:
        try:
            return _INODES[inode_id]
        except KeyError:
            raise FuseError(errno.ENOENT) from None

    def _patched(self, attrs: InodeAttributes) -> InodeAttributes:
        now = self.clock.now()
        return dataclasses.replace(attrs, atime=now, mtime=now, crtime=now)

    def stat_fs(self) -> StatFSResponse:
        return StatFSResponse()

    def look_up_inode(self, parent: int, name: str) -> ChildInodeEntry:
        parent_info = self._info(parent)
        child = next((e.inode for e in parent_info.children if e.name == name), None)
        if child is None:
            raise FuseError(errno.ENOENT)
        return ChildInodeEntry(
            child=child, attributes=self._patched(_INODES[child].attributes)
        )

    def get_inode_attributes(self, inode_id: int) -> InodeAttributes:
        return self._patched(self._info(inode_id).attributes)

    def open_dir(self, inode_id: int) -> None:
        """Allow opening any known inode; unknown ones give ENOENT."""
        self._info(inode_id)

    def read_dir(self, inode_id: int, offset: int) -> list[Dirent]:
        info = self._info(inode_id)
        if not info.is_dir:
            raise FuseError(errno.EIO)
        if offset < 0 or offset > len(info.children):
            raise FuseError(errno.EIO)
        return list(info.children[offset:])

    def open_file(self, inode_id: int) -> None:
        """Allow opening any known inode; unknown ones give ENOENT."""
        self._info(inode_id)

    def read_file(self, inode_id: int, offset: int, size: int) -> bytes:
        """Read up to size bytes; a short result signals end of file."""
        if offset < 0:
            raise FuseError(errno.EINVAL, "negative offset")
        if size < 0:
            raise FuseError(errno.EINVAL, "negative size")
        return CONTENTS[offset:offset + size]