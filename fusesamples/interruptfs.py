"""A single-file file system whose reads and flushes can hang until interrupted."""

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

FOO_ID = ROOT_INODE_ID + 1

_ROOT_ATTRS = InodeAttributes(nlink=1, mode=stat.S_IFDIR | 0o777)
_FOO_ATTRS = InodeAttributes(nlink=1, mode=stat.S_IFREG | 0o777, size=1234)


class InterruptedError_(FuseError):
    """Raised when a blocked operation is cancelled."""

    def __init__(self, message: str = "operation interrupted"):
        super().__init__(errno.EINTR, message)


class InterruptFS:
    """Holds one file named ``foo``.

    Reads and flushes can be made to block until their cancellation event is
    set. The first read and first flush are signalled so callers can wait for
    their arrival.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._block_for_reads = False
        self._block_for_flushes = False
        self._read_received = threading.Event()
        self._flush_received = threading.Event()

    def wait_for_first_read(self, timeout: float | None = None) -> bool:
        """Block until the first read arrives; False if the timeout expired."""
        return self._read_received.wait(timeout)

    def wait_for_first_flush(self, timeout: float | None = None) -> bool:
        """Block until the first flush arrives; False if the timeout expired."""
        return self._flush_received.wait(timeout)

    def enable_read_blocking(self) -> None:
        """Make this and later reads block until interrupted."""
        with self._lock:
            self._block_for_reads = True

    def enable_flush_blocking(self) -> None:
        """Make this and later flushes block until interrupted."""
        with self._lock:
            self._block_for_flushes = True

    def stat_fs(self) -> StatFSResponse:
        return StatFSResponse()

    def look_up_inode(self, parent: int, name: str) -> ChildInodeEntry:
        if parent != ROOT_INODE_ID:
            raise FuseError(errno.EIO, f"Unexpected parent: {parent}")
        if name != "foo":
            raise FuseError(errno.ENOENT)
        return ChildInodeEntry(child=FOO_ID, attributes=dataclasses.replace(_FOO_ATTRS))

    def get_inode_attributes(self, inode_id: int) -> InodeAttributes:
        if inode_id == ROOT_INODE_ID:
            return dataclasses.replace(_ROOT_ATTRS)
        if inode_id == FOO_ID:
            return dataclasses.replace(_FOO_ATTRS)
        raise FuseError(errno.EIO, f"Unexpected inode ID: {inode_id}")

    def open_file(self, inode_id: int) -> None:
        """Any file may be opened."""

    @staticmethod
    def _wait(cancel: threading.Event | None) -> None:
        if cancel is None:
            raise ValueError("Expected a cancellation event.")
        cancel.wait()
        raise InterruptedError_()

    def read_file(
        self,
        inode_id: int,
        offset: int,
        size: int,
        cancel: threading.Event | None = None,
    ) -> bytes:
        """Return no data, or block until cancelled if read blocking is enabled."""
        with self._lock:
            should_block = self._block_for_reads
            self._read_received.set()
        if should_block:
            self._wait(cancel)
        return b""

    def flush_file(self, inode_id: int, cancel: threading.Event | None = None) -> None:
        """Succeed, or block until cancelled if flush blocking is enabled."""
        with self._lock:
            should_block = self._block_for_flushes
            self._flush_received.set()
        if should_block:
            self._wait(cancel)