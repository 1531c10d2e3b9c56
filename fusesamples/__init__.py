"""In-memory sample file systems and FUSE unmount helpers."""

__version__ = "0.1.0"
__all__ = ["unmount", "fstypes", "inode", "memfs", "hellofs", "forgetfs", "interruptfs", "statfs"]