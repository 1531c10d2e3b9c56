"""Value types shared by the sample file systems."""

from __future__ import annotations

import enum
import errno
import os
import stat
from dataclasses import dataclass, field
from datetime import datetime

ROOT_INODE_ID = 1

ENOATTR = getattr(errno, "ENOATTR", errno.ENODATA)


class FuseError(OSError):
    """An error reported to the kernel as an errno value."""

    def __init__(self, code: int, message: str | None = None):
        super().__init__(code, message if message is not None else os.strerror(code))


class DirentType(enum.IntEnum):
    """Type of a directory entry, as in dirent's d_type."""

    UNKNOWN = 0
    FIFO = 1
    CHAR_DEVICE = 2
    DIRECTORY = 4
    BLOCK_DEVICE = 6
    FILE = 8
    LINK = 10
    SOCKET = 12


@dataclass(frozen=True)
class Dirent:
    """One entry of a directory listing."""

    offset: int = 0
    inode: int = 0
    name: str = ""
    type: DirentType = DirentType.UNKNOWN


@dataclass
class InodeAttributes:
    """Attributes of an inode; mode carries stat file-type bits."""

    size: int = 0
    nlink: int = 0
    mode: int = 0
    atime: datetime | None = None
    mtime: datetime | None = None
    ctime: datetime | None = None
    crtime: datetime | None = None
    uid: int = 0
    gid: int = 0

    def is_dir(self) -> bool:
        return stat.S_ISDIR(self.mode)

    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    def is_file(self) -> bool:
        return not (self.is_dir() or self.is_symlink())


@dataclass
class ChildInodeEntry:
    """The answer to a lookup or create: a child inode and its attributes."""

    child: int = 0
    attributes: InodeAttributes = field(default_factory=InodeAttributes)
    attributes_expiration: datetime | None = None
    entry_expiration: datetime | None = None


@dataclass(frozen=True)
class StatFSResponse:
    """File system capacity figures, as returned by statfs."""

    block_size: int = 0
    blocks: int = 0
    blocks_free: int = 0
    blocks_available: int = 0
    io_size: int = 0
    inodes: int = 0
    inodes_free: int = 0