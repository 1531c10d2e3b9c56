"""A file system that keeps all data and metadata in memory."""

from __future__ import annotations

import dataclasses
import errno
import functools
import stat
import threading
from datetime import datetime, timedelta, timezone

from .fstypes import (
    ENOATTR,
    ROOT_INODE_ID,
    ChildInodeEntry,
    Dirent,
    DirentType,
    FuseError,
    InodeAttributes,
    StatFSResponse,
)
from .inode import Inode

XATTR_CREATE = 0x1
XATTR_REPLACE = 0x2

# Nothing here mutates on its own, so the kernel may cache for as long as it likes.
_CACHE_TTL = timedelta(days=365)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _guarded(method):
    """Run a method under the file system lock, checking invariants around it."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            self.check_invariants()
            result = method(self, *args, **kwargs)
            self.check_invariants()
            return result

    return wrapper


class MemFS:
    """Stores everything in memory.

    Every inode is owned by the supplied uid/gid. No permission checks are
    made, so the file system should be mounted with default_permissions.
    """

    def __init__(self, uid: int, gid: int):
        self.uid = uid
        self.gid = gid
        self._lock = threading.Lock()
        # Indexed by inode ID; free slots hold None. IDs below the root are
        # reserved and never used.
        self._inodes: list[Inode | None] = [None] * (ROOT_INODE_ID + 1)
        self._free_ids: list[int] = []
        self._inodes[ROOT_INODE_ID] = Inode(
            InodeAttributes(mode=stat.S_IFDIR | 0o700, uid=uid, gid=gid)
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise RuntimeError if the file system's state is inconsistent."""
        for inode_id, inode in enumerate(self._inodes[:ROOT_INODE_ID]):
            if inode is not None:
                raise RuntimeError(f"Non-nil inode for ID: {inode_id}")

        root = self._inodes[ROOT_INODE_ID]
        if root is None or not root.is_dir():
            raise RuntimeError("Expected root to be a directory.")

        free_seen = {
            inode_id
            for inode_id in range(ROOT_INODE_ID + 1, len(self._inodes))
            if self._inodes[inode_id] is None
        }
        if len(self._free_ids) != len(free_seen):
            raise RuntimeError(
                f"Length mismatch: {len(self._free_ids)} vs. {len(free_seen)}"
            )
        for inode_id in self._free_ids:
            if inode_id not in free_seen:
                raise RuntimeError(f"Unexpected free inode ID: {inode_id}")

        for inode in self._inodes:
            if inode is not None:
                inode.check_invariants()

    def _get(self, inode_id: int) -> Inode:
        inode = self._inodes[inode_id] if 0 <= inode_id < len(self._inodes) else None
        if inode is None:
            raise KeyError(f"Unknown inode: {inode_id}")
        return inode

    def _child(self, parent: Inode, name: str) -> tuple[int, DirentType]:
        found = parent.look_up_child(name)
        if found is None:
            raise FuseError(errno.ENOENT)
        return found

    def _allocate(self, attrs: InodeAttributes) -> tuple[int, Inode]:
        inode = Inode(attrs)
        if self._free_ids:
            inode_id = self._free_ids.pop()
            self._inodes[inode_id] = inode
        else:
            inode_id = len(self._inodes)
            self._inodes.append(inode)
        return inode_id, inode

    def _deallocate(self, inode_id: int) -> None:
        self._free_ids.append(inode_id)
        self._inodes[inode_id] = None

    @staticmethod
    def _entry(child_id: int, inode: Inode) -> ChildInodeEntry:
        expiration = _now() + _CACHE_TTL
        return ChildInodeEntry(
            child=child_id,
            attributes=dataclasses.replace(inode.attrs),
            attributes_expiration=expiration,
            entry_expiration=expiration,
        )

    @staticmethod
    def _ensure_absent(parent: Inode, name: str) -> None:
        if parent.look_up_child(name) is not None:
            raise FuseError(errno.EEXIST)

    def _new_attrs(self, mode: int, stamped: bool) -> InodeAttributes:
        attrs = InodeAttributes(nlink=1, mode=mode, uid=self.uid, gid=self.gid)
        if stamped:
            now = _now()
            attrs = dataclasses.replace(attrs, atime=now, mtime=now, ctime=now, crtime=now)
        return attrs

    def _add_new_child(
        self,
        parent_id: int,
        name: str,
        attrs: InodeAttributes,
        dirent_type: DirentType,
        target: str = "",
    ) -> ChildInodeEntry:
        parent = self._get(parent_id)
        self._ensure_absent(parent, name)
        child_id, child = self._allocate(attrs)
        child.target = target
        parent.add_child(child_id, name, dirent_type)
        return self._entry(child_id, child)

    def _create_file(self, parent_id: int, name: str, mode: int) -> ChildInodeEntry:
        return self._add_new_child(
            parent_id, name, self._new_attrs(mode, stamped=True), DirentType.FILE
        )

    # ------------------------------------------------------------------
    # File system operations
    # ------------------------------------------------------------------

    def stat_fs(self) -> StatFSResponse:
        return StatFSResponse()

    @_guarded
    def look_up_inode(self, parent: int, name: str) -> ChildInodeEntry:
        child_id, _ = self._child(self._get(parent), name)
        return self._entry(child_id, self._get(child_id))

    @_guarded
    def get_inode_attributes(self, inode_id: int) -> InodeAttributes:
        return dataclasses.replace(self._get(inode_id).attrs)

    @_guarded
    def set_inode_attributes(
        self,
        inode_id: int,
        size: int | None = None,
        mode: int | None = None,
        mtime: datetime | None = None,
    ) -> InodeAttributes:
        inode = self._get(inode_id)
        inode.set_attributes(size, mode, mtime)
        return dataclasses.replace(inode.attrs)

    @_guarded
    def mkdir(self, parent: int, name: str, mode: int) -> ChildInodeEntry:
        return self._add_new_child(
            parent,
            name,
            self._new_attrs(mode | stat.S_IFDIR, stamped=False),
            DirentType.DIRECTORY,
        )

    @_guarded
    def mknod(self, parent: int, name: str, mode: int) -> ChildInodeEntry:
        return self._create_file(parent, name, mode)

    @_guarded
    def create_file(self, parent: int, name: str, mode: int) -> ChildInodeEntry:
        return self._create_file(parent, name, mode)

    @_guarded
    def create_symlink(self, parent: int, name: str, target: str) -> ChildInodeEntry:
        return self._add_new_child(
            parent,
            name,
            self._new_attrs(stat.S_IFLNK | 0o444, stamped=True),
            DirentType.LINK,
            target=target,
        )

    @_guarded
    def create_link(self, parent: int, name: str, target: int) -> ChildInodeEntry:
        parent_inode = self._get(parent)
        self._ensure_absent(parent_inode, name)
        target_inode = self._get(target)
        target_inode.attrs.nlink += 1
        target_inode.attrs.ctime = _now()
        parent_inode.add_child(target, name, DirentType.FILE)
        return self._entry(target, target_inode)

    @_guarded
    def rename(
        self, old_parent: int, old_name: str, new_parent: int, new_name: str
    ) -> None:
        old_parent_inode = self._get(old_parent)
        child_id, child_type = self._child(old_parent_inode, old_name)

        new_parent_inode = self._get(new_parent)
        existing = new_parent_inode.look_up_child(new_name)
        if existing is not None:
            existing_inode = self._get(existing[0])
            if existing_inode.is_dir() and existing_inode.read_dir(0):
                raise FuseError(errno.ENOTEMPTY)
            new_parent_inode.remove_child(new_name)

        new_parent_inode.add_child(child_id, new_name, child_type)
        old_parent_inode.remove_child(old_name)

    def _remove(self, parent: int, name: str, require_empty: bool) -> None:
        parent_inode = self._get(parent)
        child_id, _ = self._child(parent_inode, name)
        child = self._get(child_id)
        if require_empty and len(child) != 0:
            raise FuseError(errno.ENOTEMPTY)
        parent_inode.remove_child(name)
        child.attrs.nlink -= 1

    @_guarded
    def rmdir(self, parent: int, name: str) -> None:
        self._remove(parent, name, require_empty=True)

    @_guarded
    def unlink(self, parent: int, name: str) -> None:
        self._remove(parent, name, require_empty=False)

    @_guarded
    def open_dir(self, inode_id: int) -> None:
        if not self._get(inode_id).is_dir():
            raise RuntimeError("Found non-dir.")

    @_guarded
    def read_dir(self, inode_id: int, offset: int) -> list[Dirent]:
        return self._get(inode_id).read_dir(offset)

    @_guarded
    def open_file(self, inode_id: int) -> None:
        if not self._get(inode_id).is_file():
            raise RuntimeError("Found non-file.")

    @_guarded
    def read_file(self, inode_id: int, offset: int, size: int) -> bytes:
        """Read up to size bytes; a short result signals end of file."""
        return self._get(inode_id).read_at(offset, size)

    @_guarded
    def write_file(self, inode_id: int, offset: int, data: bytes) -> None:
        self._get(inode_id).write_at(data, offset)

    @_guarded
    def read_symlink(self, inode_id: int) -> str:
        return self._get(inode_id).target

    @_guarded
    def get_xattr(self, inode_id: int, name: str, size: int) -> bytes:
        """Return the attribute's value; ERANGE if it does not fit in size."""
        xattrs = self._get(inode_id).xattrs
        if name not in xattrs:
            raise FuseError(ENOATTR)
        value = xattrs[name]
        if size < len(value):
            raise FuseError(errno.ERANGE)
        return value

    @_guarded
    def list_xattr(self, inode_id: int, size: int) -> list[str]:
        """Return the attribute names; ERANGE if their NUL-terminated list exceeds size."""
        names = list(self._get(inode_id).xattrs)
        needed = sum(len(name.encode()) + 1 for name in names)
        if needed > size:
            raise FuseError(errno.ERANGE)
        return names

    @_guarded
    def remove_xattr(self, inode_id: int, name: str) -> None:
        xattrs = self._get(inode_id).xattrs
        if name not in xattrs:
            raise FuseError(ENOATTR)
        del xattrs[name]

    @_guarded
    def set_xattr(self, inode_id: int, name: str, value: bytes, flags: int) -> None:
        xattrs = self._get(inode_id).xattrs
        exists = name in xattrs
        if flags == XATTR_CREATE and exists:
            raise FuseError(errno.EEXIST)
        if flags == XATTR_REPLACE and not exists:
            raise FuseError(ENOATTR)
        xattrs[name] = bytes(value)

    @_guarded
    def fallocate(self, inode_id: int, mode: int, offset: int, length: int) -> None:
        self._get(inode_id).fallocate(mode, offset, length)