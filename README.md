# fusesamples

A small collection of sample file systems that keep their whole state in
memory. They answer file system operations as plain Python method calls:
look up, get and set attributes, create, read, write, rename, extended
attributes, statfs and others. Errors come back as `FuseError` exceptions
(`fusesamples.fstypes`) that carry an errno value. The package also has
helpers that unmount a FUSE mount point.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The file systems

| Class | Module | What it does |
|---|---|---|
| `MemFS` | `fusesamples.memfs` | An in-memory file system with directories, files, symlinks, hard links, rename, truncate, fallocate and extended attributes. |
| `HelloFS` | `fusesamples.hellofs` | A fixed read-only tree: `hello` and `dir/world`, each holding `Hello, world!`. Times come from the clock object you pass in (anything with a `now()` method). |
| `ForgetFS` | `fusesamples.forgetfs` | Counts lookups for each inode and raises `RuntimeError` when a count goes negative or a forgotten inode is used again. `check()` verifies that no counts remain. |
| `InterruptFS` | `fusesamples.interruptfs` | One file, `foo`. Reads and flushes can be set to block until their `threading.Event` is set, and then raise `InterruptedError_`. |
| `StatFS` | `fusesamples.statfs` | Gives back the statfs and stat responses you set, and remembers the size of the last write. |

Shared value types live in `fusesamples.fstypes`: `InodeAttributes`,
`ChildInodeEntry`, `Dirent`, `DirentType` and `StatFSResponse`. The inode
used by `MemFS` is `fusesamples.inode.Inode`.

## Example

```python
import errno

from fusesamples.fstypes import FuseError
from fusesamples.memfs import MemFS

ROOT = 1

fs = MemFS(uid=1000, gid=1000)

entry = fs.create_file(ROOT, "foo", 0o600)
fs.write_file(entry.child, 0, b"taco")
assert fs.read_file(entry.child, 0, 1024) == b"taco"

try:
    fs.create_file(ROOT, "foo", 0o600)
except FuseError as exc:
    assert exc.errno == errno.EEXIST
```

## Unmounting

`fusesamples.unmount.unmount(directory)` unmounts a mount point. On Linux it
runs `fusermount -u`; on other systems it runs `umount`. Failures raise
`UnmountError`, whose message includes the command's output.
`unmount_retrying(directory)` does the same, but tries again after a short,
growing delay while the error says "resource busy".

## What this package does not do

The file systems here are objects you call directly. The package has no
kernel connection and no mount or serve loop: it cannot mount any of these
file systems on a directory by itself, and it has no command-line tool.