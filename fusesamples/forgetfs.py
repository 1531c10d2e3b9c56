"""A file system that tracks kernel lookup counts and enforces their balance."""

from __future__ import annotations

import dataclasses
import errno
import stat
import threading

from .fstypes import (
    ROOT_INODE_ID,
    ChildInodeEntry,
    FuseError,
    InodeAttributes,
    StatFSResponse,
)

ROOT_ID = ROOT_INODE_ID
FOO_ID = ROOT_INODE_ID + 1
BAR_ID = ROOT_INODE_ID + 2
_FIRST_FREE_ID = ROOT_INODE_ID + 3

_CANNED_CHILDREN = {"foo": FOO_ID, "bar": BAR_ID}


def _attrs(kind: int, nlink: int) -> InodeAttributes:
    return InodeAttributes(nlink=nlink, mode=kind | 0o777)


@dataclasses.dataclass
class _Inode:
    attributes: InodeAttributes
    lookup_count: int = 0
    looked_up: bool = False

    @property
    def forgotten(self) -> bool:
        return self.looked_up and self.lookup_count == 0

    def increment(self) -> None:
        self.lookup_count += 1
        self.looked_up = True

    def decrement(self, n: int) -> None:
        if self.lookup_count < n:
            raise RuntimeError(f"Overly large decrement: {self.lookup_count}, {n}")
        self.lookup_count -= n

    def destroy(self) -> None:
        self.decrement(self.lookup_count)


class ForgetFS:
    """Holds a file ``foo`` and a directory ``bar``; created children appear unlinked.

    Raises RuntimeError if a lookup count goes negative or a forgotten inode
    is used again. ``check`` verifies no counts remain after destruction.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._inodes: dict[int, _Inode] = {
            ROOT_ID: _Inode(_attrs(stat.S_IFDIR, 1)),
            FOO_ID: _Inode(_attrs(stat.S_IFREG, 1)),
            BAR_ID: _Inode(_attrs(stat.S_IFDIR, 1)),
        }
        self._next_id = _FIRST_FREE_ID
        # The root starts with one lookup; the canned children are kept alive
        # with an extra reference until the file system is destroyed.
        for inode in self._inodes.values():
            inode.increment()

    def _check_invariants(self) -> None:
        if any(inode_id >= self._next_id for inode_id in self._inodes):
            raise RuntimeError("Unexpectedly large inode ID")

    def _find(self, inode_id: int) -> _Inode:
        """Return a live inode. The caller holds the lock."""
        self._check_invariants()
        inode = self._inodes.get(inode_id)
        if inode is None:
            raise RuntimeError(f"Unknown inode: {inode_id}")
        if inode.forgotten:
            raise RuntimeError(f"Forgotten inode: {inode_id}")
        return inode

    def _mint(self, parent: int, kind: int) -> ChildInodeEntry:
        with self._lock:
            self._find(parent)
            child_id = self._next_id
            self._next_id += 1
            child = _Inode(_attrs(kind, 0))
            self._inodes[child_id] = child
            child.increment()
            return ChildInodeEntry(
                child=child_id, attributes=dataclasses.replace(child.attributes)
            )

    def _touch(self, inode_id: int) -> _Inode:
        with self._lock:
            return self._find(inode_id)

    def check(self) -> None:
        """Raise RuntimeError if any inode still has a non-zero lookup count."""
        with self._lock:
            self._check_invariants()
            for inode_id, inode in self._inodes.items():
                if inode.lookup_count != 0:
                    raise RuntimeError(
                        f"Inode {inode_id} has lookup count {inode.lookup_count}"
                    )

    def stat_fs(self) -> StatFSResponse:
        return StatFSResponse()

    def look_up_inode(self, parent: int, name: str) -> ChildInodeEntry:
        with self._lock:
            self._find(parent)
            child_id = _CANNED_CHILDREN.get(name) if parent == ROOT_ID else None
            if child_id is None:
                raise FuseError(errno.ENOENT)
            child = self._find(child_id)
            child.increment()
            return ChildInodeEntry(
                child=child_id, attributes=dataclasses.replace(child.attributes)
            )

    def get_inode_attributes(self, inode_id: int) -> InodeAttributes:
        return dataclasses.replace(self._touch(inode_id).attributes)

    def forget_inode(self, inode_id: int, n: int) -> None:
        with self._lock:
            self._find(inode_id).decrement(n)

    def mkdir(self, parent: int, name: str, mode: int) -> ChildInodeEntry:
        return self._mint(parent, stat.S_IFDIR)

    def create_file(self, parent: int, name: str, mode: int) -> ChildInodeEntry:
        return self._mint(parent, stat.S_IFREG)

    def open_file(self, inode_id: int) -> None:
        self._touch(inode_id)

    def open_dir(self, inode_id: int) -> None:
        self._touch(inode_id)

    def destroy(self) -> None:
        """Drop every remaining lookup count to zero."""
        for inode in self._inodes.values():
            inode.destroy()