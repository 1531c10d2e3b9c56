import errno
import stat

import pytest

from fusesamples.fstypes import ROOT_INODE_ID, FuseError, InodeAttributes, StatFSResponse
from fusesamples.statfs import CHILD_INODE_ID, StatFS


@pytest.fixture
def fs():
    return StatFS()


def test_zero_values_by_default(fs):
    response = fs.stat_fs()
    assert response == StatFSResponse()
    assert response.block_size == 0
    assert response.blocks == 0
    assert response.inodes_free == 0


def test_non_zero_values(fs):
    canned = StatFSResponse(
        block_size=1 << 15,
        io_size=1 << 16,
        blocks=(1 << 51) + 3,
        blocks_free=(1 << 43) + 5,
        blocks_available=(1 << 41) + 7,
        inodes=(1 << 59) + 11,
        inodes_free=(1 << 58) + 13,
    )
    fs.set_stat_fs_response(canned)
    response = fs.stat_fs()
    assert response.block_size == 1 << 15
    assert response.io_size == 1 << 16
    assert response.blocks == (1 << 51) + 3
    assert response.blocks_free == (1 << 43) + 5
    assert response.blocks_available == (1 << 41) + 7
    assert response.inodes == (1 << 59) + 11
    assert response.inodes_free == (1 << 58) + 13


SIZES = [0, 1, 3, 17, (1 << 20) - 1, 1 << 20, (1 << 20) + 1,
         2**31 - 1, 2**31, 2**32 - 1]


@pytest.mark.parametrize("size", SIZES)
def test_block_sizes(fs, size):
    fs.set_stat_fs_response(StatFSResponse(block_size=size, blocks=10))
    assert fs.stat_fs().block_size == size


@pytest.mark.parametrize("size", SIZES)
def test_io_sizes(fs, size):
    fs.set_stat_fs_response(StatFSResponse(io_size=size, blocks=10))
    assert fs.stat_fs().io_size == size


def test_most_recent_write_size(fs):
    assert fs.most_recent_write_size() == -1
    fs.write_file(CHILD_INODE_ID, 0, b"x" * (1 << 17))
    assert fs.most_recent_write_size() == 1 << 17
    fs.write_file(CHILD_INODE_ID, 1 << 17, b"abc")
    assert fs.most_recent_write_size() == 3


def test_stat_blocks_size(fs):
    size = 1 << 22
    fs.set_stat_response(InodeAttributes(size=size))
    assert fs.get_inode_attributes(CHILD_INODE_ID).size == size
    assert fs.look_up_inode(ROOT_INODE_ID, "foo").attributes.size == size


def test_default_file_attributes(fs):
    entry = fs.look_up_inode(ROOT_INODE_ID, "anything")
    assert entry.child == CHILD_INODE_ID
    assert stat.S_IMODE(entry.attributes.mode) == 0o666
    assert entry.attributes.is_file()


def test_root_attributes(fs):
    attrs = fs.get_inode_attributes(ROOT_INODE_ID)
    assert attrs.is_dir()
    assert stat.S_IMODE(attrs.mode) == 0o777


def test_lookup_outside_root(fs):
    with pytest.raises(FuseError) as info:
        fs.look_up_inode(CHILD_INODE_ID, "foo")
    assert info.value.errno == errno.ENOENT


def test_unknown_inode(fs):
    with pytest.raises(FuseError) as info:
        fs.get_inode_attributes(42)
    assert info.value.errno == errno.ENOENT


def test_set_inode_attributes_ignored(fs):
    fs.set_stat_response(InodeAttributes(size=7))
    fs.set_inode_attributes(CHILD_INODE_ID, size=0)
    assert fs.get_inode_attributes(CHILD_INODE_ID).size == 7