import errno
import stat
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from fusesamples.fstypes import ROOT_INODE_ID, FuseError
from fusesamples.interruptfs import FOO_ID, InterruptedError_, InterruptFS


@pytest.fixture
def fs():
    return InterruptFS()


def test_stat_foo(fs):
    entry = fs.look_up_inode(ROOT_INODE_ID, "foo")
    assert entry.child == FOO_ID
    assert stat.S_IMODE(entry.attributes.mode) == 0o777
    assert not entry.attributes.is_dir()
    assert entry.attributes.size == 1234


def test_root_attributes(fs):
    attrs = fs.get_inode_attributes(ROOT_INODE_ID)
    assert attrs.is_dir()
    assert stat.S_IMODE(attrs.mode) == 0o777
    assert attrs.nlink == 1


def test_lookup_unknown_name(fs):
    with pytest.raises(FuseError) as info:
        fs.look_up_inode(ROOT_INODE_ID, "bar")
    assert info.value.errno == errno.ENOENT


def test_lookup_unexpected_parent(fs):
    with pytest.raises(FuseError) as info:
        fs.look_up_inode(FOO_ID, "foo")
    assert "Unexpected parent" in str(info.value)


def test_unknown_inode_attributes(fs):
    with pytest.raises(FuseError) as info:
        fs.get_inode_attributes(99)
    assert "Unexpected inode ID" in str(info.value)


def test_non_blocking_read_signals_first_read(fs):
    assert fs.wait_for_first_read(0) is False
    assert fs.read_file(FOO_ID, 0, 10) == b""
    assert fs.wait_for_first_read(0) is True


def test_non_blocking_flush_signals_first_flush(fs):
    assert fs.wait_for_first_flush(0) is False
    fs.flush_file(FOO_ID)
    assert fs.wait_for_first_flush(0) is True


def test_interrupted_during_read(fs):
    fs.enable_read_blocking()
    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(fs.read_file, FOO_ID, 0, 10, cancel)
        assert fs.wait_for_first_read(5) is True
        time.sleep(0.01)
        assert not future.done()
        cancel.set()
        with pytest.raises(InterruptedError_) as info:
            future.result(timeout=5)
    assert info.value.errno == errno.EINTR
    assert "interrupt" in str(info.value)


def test_interrupted_during_flush(fs):
    fs.enable_flush_blocking()
    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(fs.flush_file, FOO_ID, cancel)
        assert fs.wait_for_first_flush(5) is True
        time.sleep(0.01)
        assert not future.done()
        cancel.set()
        with pytest.raises(InterruptedError_):
            future.result(timeout=5)


def test_blocking_read_without_cancel_event(fs):
    fs.enable_read_blocking()
    with pytest.raises(ValueError):
        fs.read_file(FOO_ID, 0, 10)