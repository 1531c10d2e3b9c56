"""In-memory inode used by the memory-backed file system."""

from __future__ import annotations

import dataclasses
import errno
import stat
from datetime import datetime, timezone

from .fstypes import Dirent, DirentType, FuseError, InodeAttributes

_MODE_PERM = 0o777
_ALLOWED_TYPES = (0, stat.S_IFREG, stat.S_IFDIR, stat.S_IFLNK)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Inode:
    """A file, directory or symlink held in memory. Not thread-safe."""

    def __init__(self, attrs: InodeAttributes):
        now = _now()
        self.attrs = dataclasses.replace(attrs, mtime=now, crtime=now)
        # Indices are exposed as offsets, so entries are never moved or removed;
        # unused slots carry DirentType.UNKNOWN and may be reused.
        self.entries: list[Dirent] = []
        self.contents = bytearray()
        self.target = ""
        self.xattrs: dict[str, bytes] = {}

    def check_invariants(self) -> None:
        """Raise RuntimeError if the inode's internal state is inconsistent."""
        mode = self.attrs.mode
        if stat.S_IFMT(mode) not in _ALLOWED_TYPES or mode & ~(_MODE_PERM | stat.S_IFMT(mode)):
            raise RuntimeError(f"Unexpected mode: {oct(mode)}")
        if self.is_dir() and self.is_symlink():
            raise RuntimeError(f"Unexpected mode: {oct(mode)}")
        if self.attrs.size != len(self.contents):
            raise RuntimeError(
                f"Size mismatch: {self.attrs.size} vs. {len(self.contents)}"
            )
        if not self.is_dir() and self.entries:
            raise RuntimeError(f"Unexpected entries length: {len(self.entries)}")
        for index, entry in enumerate(self.entries):
            if entry.offset != index + 1:
                raise RuntimeError(
                    f"Unexpected offset for index {index}: {entry.offset}"
                )
        names: set[str] = set()
        for entry in self.entries:
            if entry.type is DirentType.UNKNOWN:
                continue
            if entry.name in names:
                raise RuntimeError(f"Duplicate name: {entry.name}")
            names.add(entry.name)
        if not self.is_file() and self.contents:
            raise RuntimeError(f"Unexpected length: {len(self.contents)}")
        if not self.is_symlink() and self.target:
            raise RuntimeError(f"Unexpected target length: {len(self.target)}")

    def is_dir(self) -> bool:
        return self.attrs.is_dir()

    def is_symlink(self) -> bool:
        return self.attrs.is_symlink()

    def is_file(self) -> bool:
        return self.attrs.is_file()

    def _require_dir(self, operation: str) -> None:
        if not self.is_dir():
            raise NotADirectoryError(f"{operation} called on non-directory")

    def _require_file(self, operation: str) -> None:
        if not self.is_file():
            raise TypeError(f"{operation} called on non-file")

    def _find_child(self, name: str) -> int | None:
        self._require_dir("find_child")
        return next(
            (index for index, entry in enumerate(self.entries) if entry.name == name),
            None,
        )

    def __len__(self) -> int:
        """Number of children in use."""
        return sum(1 for entry in self.entries if entry.type is not DirentType.UNKNOWN)

    def look_up_child(self, name: str) -> tuple[int, DirentType] | None:
        """Return (inode id, entry type) for the named child, or None."""
        index = self._find_child(name)
        if index is None:
            return None
        entry = self.entries[index]
        return entry.inode, entry.type

    def add_child(self, inode_id: int, name: str, dirent_type: DirentType) -> None:
        """Add an entry, reusing the first unused slot if there is one."""
        self.attrs.mtime = _now()
        for index, entry in enumerate(self.entries):
            if entry.type is DirentType.UNKNOWN:
                self.entries[index] = Dirent(index + 1, inode_id, name, dirent_type)
                return
        self.entries.append(
            Dirent(len(self.entries) + 1, inode_id, name, dirent_type)
        )

    def remove_child(self, name: str) -> None:
        """Mark the named child's entry as unused."""
        self.attrs.mtime = _now()
        index = self._find_child(name)
        if index is None:
            raise KeyError(f"Unknown child: {name}")
        self.entries[index] = Dirent(offset=index + 1, type=DirentType.UNKNOWN)

    def read_dir(self, offset: int) -> list[Dirent]:
        """Return the used entries from the given offset onwards."""
        self._require_dir("read_dir")
        return [
            entry
            for entry in self.entries[offset:]
            if entry.type is not DirentType.UNKNOWN
        ]

    def read_at(self, offset: int, size: int) -> bytes:
        """Read up to size bytes at offset; a short result means end of file."""
        self._require_file("read_at")
        if offset < 0 or size < 0:
            raise ValueError("offset and size must not be negative")
        return bytes(self.contents[offset:offset + size])

    def write_at(self, data: bytes, offset: int) -> int:
        """Write data at offset, growing the file with zeros as needed."""
        self._require_file("write_at")
        if offset < 0:
            raise ValueError("offset must not be negative")
        self.attrs.mtime = _now()
        new_len = offset + len(data)
        if len(self.contents) < new_len:
            self.contents.extend(bytes(new_len - len(self.contents)))
            self.attrs.size = new_len
        self.contents[offset:new_len] = data
        return len(data)

    def set_attributes(
        self,
        size: int | None,
        mode: int | None,
        mtime: datetime | None,
    ) -> None:
        """Update the attributes whose arguments are not None."""
        self.attrs.mtime = _now()
        if size is not None:
            if size <= len(self.contents):
                del self.contents[size:]
            else:
                self.contents.extend(bytes(size - len(self.contents)))
            self.attrs.size = size
        if mode is not None:
            self.attrs.mode = mode
        if mtime is not None:
            self.attrs.mtime = mtime

    def fallocate(self, mode: int, offset: int, length: int) -> None:
        """Extend the file to cover offset+length; only mode 0 is supported."""
        if mode != 0:
            raise FuseError(errno.ENOSYS)
        new_size = offset + length
        if new_size > len(self.contents):
            self.contents.extend(bytes(new_size - len(self.contents)))
            self.attrs.size = new_size