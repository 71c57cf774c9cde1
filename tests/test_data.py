import pytest

from minivfs.bitmap import allocate_first_free
from minivfs.data import MAX_FILE_SIZE, read_data, write_data
from minivfs.device import create_block_device, read_superblock, write_superblock
from minivfs.inode import create_empty_file, read_inode, write_inode
from minivfs.layout import (
    BITS_PER_BLOCK,
    BLOCK_SIZE,
    INODE_MODE_DIR,
    INODES_PER_BLOCK,
    NUM_DIRECT_PTRS,
    ROOTDIR_INODE,
    Inode,
    Superblock,
    VfsError,
)

TOTAL_BLOCKS = 100
TOTAL_INODES = 32


def _make_image(path, total_blocks=TOTAL_BLOCKS, total_inodes=TOTAL_INODES):
    create_block_device(path, total_blocks, BLOCK_SIZE)
    inode_blocks = total_inodes // INODES_PER_BLOCK
    bitmap_blocks = -(-total_blocks // BITS_PER_BLOCK)
    inode_start = 1
    bitmap_start = inode_start + inode_blocks
    data_start = bitmap_start + bitmap_blocks
    sb = Superblock(
        total_blocks=total_blocks,
        inode_blocks=inode_blocks,
        bitmap_blocks=bitmap_blocks,
        free_blocks=total_blocks,
        inode_count=total_inodes,
        free_inodes=total_inodes,
        bitmap_zeroes=[BITS_PER_BLOCK] * bitmap_blocks,
        inode_start=inode_start,
        bitmap_start=bitmap_start,
        data_start=data_start,
    )
    write_superblock(path, sb)
    for _ in range(data_start):
        allocate_first_free(path)
    root = Inode(mode=INODE_MODE_DIR | 0o755, blocks=1, size=BLOCK_SIZE)
    root.direct[0] = allocate_first_free(path)
    write_inode(path, ROOTDIR_INODE, root)
    sb = read_superblock(path)
    sb.free_inodes -= 1
    write_superblock(path, sb)
    return path


@pytest.fixture
def image(tmp_path):
    return _make_image(tmp_path / "disk.img")


@pytest.fixture
def file_inode(image):
    return create_empty_file(image, 0o644)


def test_small_round_trip(image, file_inode):
    payload = b"hola mundo"
    assert write_data(image, file_inode, payload) == len(payload)
    assert read_data(image, file_inode, len(payload)) == payload
    inode = read_inode(image, file_inode)
    assert inode.size == len(payload)
    assert inode.blocks == 1


def test_large_round_trip_uses_indirect(image, file_inode):
    payload = bytes(i % 251 for i in range((NUM_DIRECT_PTRS + 3) * BLOCK_SIZE - 17))
    assert write_data(image, file_inode, payload) == len(payload)
    assert read_data(image, file_inode, len(payload)) == payload
    inode = read_inode(image, file_inode)
    assert inode.blocks == NUM_DIRECT_PTRS + 3
    assert inode.indirect != 0


def test_overwrite_middle(image, file_inode):
    write_data(image, file_inode, b"hello world")
    write_data(image, file_inode, b"W", 6)
    assert read_data(image, file_inode, 100) == b"hello World"
    assert read_inode(image, file_inode).size == len(b"hello world")


def test_write_across_block_boundary(image, file_inode):
    payload = b"x" * (BLOCK_SIZE + 10)
    write_data(image, file_inode, payload)
    write_data(image, file_inode, b"abcdef", BLOCK_SIZE - 3)
    data = read_data(image, file_inode, len(payload))
    assert data[BLOCK_SIZE - 3:BLOCK_SIZE + 3] == b"abcdef"
    assert data[: BLOCK_SIZE - 3] == payload[: BLOCK_SIZE - 3]


def test_sparse_write_leaves_zeros(image, file_inode):
    offset = 2 * BLOCK_SIZE + 5
    write_data(image, file_inode, b"ab", offset)
    inode = read_inode(image, file_inode)
    assert inode.size == offset + 2
    assert inode.blocks == 3
    assert read_data(image, file_inode, inode.size) == bytes(offset) + b"ab"


def test_read_with_offset_and_clamp(image, file_inode):
    write_data(image, file_inode, b"0123456789")
    assert read_data(image, file_inode, 100, 4) == b"456789"
    assert read_data(image, file_inode, 3, 2) == b"234"


def test_read_past_end_raises(image, file_inode):
    write_data(image, file_inode, b"abc")
    with pytest.raises(VfsError):
        read_data(image, file_inode, 1, 3)


def test_read_empty_file_raises(image, file_inode):
    with pytest.raises(VfsError):
        read_data(image, file_inode, 10)


def test_write_beyond_max_size_raises(image, file_inode):
    with pytest.raises(VfsError):
        write_data(image, file_inode, b"x", MAX_FILE_SIZE)
    assert read_inode(image, file_inode).size == 0


def test_write_without_free_blocks_raises(image, file_inode):
    free = read_superblock(image).free_blocks
    with pytest.raises(VfsError):
        write_data(image, file_inode, bytes((free + 1) * BLOCK_SIZE))
    assert read_superblock(image).free_blocks == free


def test_write_consumes_free_blocks(image, file_inode):
    free = read_superblock(image).free_blocks
    write_data(image, file_inode, bytes(3 * BLOCK_SIZE))
    assert read_superblock(image).free_blocks == free - 3


def test_write_invalid_inode_raises(image):
    with pytest.raises(VfsError):
        write_data(image, TOTAL_INODES, b"abc")