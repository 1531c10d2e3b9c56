"""Unmounting FUSE file systems, with a retrying variant for busy mounts."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
import time

logger = logging.getLogger(__name__)

_INITIAL_DELAY = 0.01
_BACKOFF_FACTOR = 1.3


class UnmountError(OSError):
    """Raised when a file system could not be unmounted."""

    def __init__(self, message: str, directory: str | None = None, output: str = ""):
        super().__init__(message)
        self.directory = directory
        self.output = output

    def __str__(self) -> str:
        return self.args[0]


def _command(directory: str) -> list[str]:
    if sys.platform.startswith("linux"):
        return ["fusermount", "-u", directory]
    return ["umount", directory]


def unmount(directory) -> None:
    """Unmount the file system whose mount point is the supplied directory."""
    directory = os.fspath(directory)
    linux = sys.platform.startswith("linux")
    command = _command(directory)

    try:
        result = subprocess.run(
            command,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as exc:
        raise UnmountError(f"{command[0]}: {exc}", directory) from exc

    if result.returncode == 0:
        return

    output = (result.stdout or b"").decode(errors="replace").rstrip("\n")
    reason = f"exit status {result.returncode}"
    if output:
        reason = f"{reason}: {output}"
    if not linux:
        reason = f"unmount {directory}: {reason}"
    raise UnmountError(reason, directory, output)


def unmount_retrying(directory) -> None:
    """Unmount, retrying with growing delays while the mount is busy."""
    delay = _INITIAL_DELAY
    while True:
        try:
            unmount(directory)
            return
        except UnmountError as exc:
            if "resource busy" in str(exc):
                logger.warning("Resource busy error while unmounting; trying again")
                time.sleep(delay)
                delay *= _BACKOFF_FACTOR
                continue
            raise UnmountError(f"Unmount: {exc}", exc.directory, exc.output) from exc