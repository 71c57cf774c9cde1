"""Creating a fresh filesystem inside an image file."""

from __future__ import annotations

import os
import time

from .bitmap import allocate_first_free
from .device import create_block_device, read_superblock, write_block, write_superblock
from .inode import write_inode
from .layout import (
    BITS_PER_BLOCK,
    BLOCK_SIZE,
    INODE_MODE_DIR,
    INODE_SIZE,
    INODES_PER_BLOCK,
    MAX_INODE_BLOCKS,
    ROOTDIR_INODE,
    VFS_MAX_BLOCKS,
    VFS_MIN_BLOCKS,
    DirEntry,
    Inode,
    Superblock,
    VfsError,
    pack_dir_block,
)


def init_superblock(image_path, total_blocks: int, total_inodes: int) -> None:
    """Write the superblock and mark the metadata blocks used in the bitmap."""
    inode_blocks = total_inodes // INODES_PER_BLOCK
    bitmap_blocks = (total_blocks + BITS_PER_BLOCK - 1) // BITS_PER_BLOCK
    if bitmap_blocks > MAX_INODE_BLOCKS:
        raise VfsError(f"demasiados bloques para el bitmap ({bitmap_blocks})")
    inode_start = 1
    bitmap_start = inode_start + inode_blocks
    data_start = bitmap_start + bitmap_blocks

    zeroes = [0] * MAX_INODE_BLOCKS
    zeroes[0] = BITS_PER_BLOCK - data_start
    for i in range(1, bitmap_blocks):
        zeroes[i] = BITS_PER_BLOCK

    sb = Superblock(
        total_blocks=total_blocks,
        superblock_blocks=1,
        inode_blocks=inode_blocks,
        bitmap_blocks=bitmap_blocks,
        free_blocks=total_blocks,
        inode_size=INODE_SIZE,
        inode_count=total_inodes,
        free_inodes=total_inodes,
        bitmap_zeroes=zeroes,
        inode_start=inode_start,
        bitmap_start=bitmap_start,
        data_start=data_start,
    )
    write_superblock(image_path, sb)

    for expected in range(data_start):
        if allocate_first_free(image_path) != expected:
            raise VfsError("error inesperado asignando bloques libres")


def create_root_dir(image_path) -> None:
    """Create the root directory with its '.' and '..' entries."""
    sb = read_superblock(image_path)
    if sb.free_inodes == 0 or sb.free_blocks == 0:
        raise VfsError("no hay espacio para el directorio raiz")

    block_number = allocate_first_free(image_path)
    entries = [DirEntry(ROOTDIR_INODE, "."), DirEntry(ROOTDIR_INODE, "..")]
    write_block(image_path, block_number, pack_dir_block(entries))

    now = int(time.time()) & 0xFFFFFFFF
    uid = os.getuid() if hasattr(os, "getuid") else 0
    gid = os.getgid() if hasattr(os, "getgid") else 0
    root = Inode(
        mode=INODE_MODE_DIR | 0o755,
        uid=uid & 0xFFFF,
        gid=gid & 0xFFFF,
        blocks=1,
        size=BLOCK_SIZE,
        atime=now,
        mtime=now,
        ctime=now,
    )
    root.direct[0] = block_number
    write_inode(image_path, ROOTDIR_INODE, root)

    sb = read_superblock(image_path)
    sb.free_inodes -= 1
    write_superblock(image_path, sb)


def round_up_inodes(count: int) -> int:
    """Round an inode count up so the inode blocks are completely used."""
    return -(-count // INODES_PER_BLOCK) * INODES_PER_BLOCK


def make_filesystem(image_path, total_blocks: int, inode_count: int) -> Superblock:
    """Create a new image holding an empty filesystem; return its superblock."""
    if total_blocks < VFS_MIN_BLOCKS or total_blocks >= VFS_MAX_BLOCKS:
        raise VfsError(
            f"total_bloques debe ser un entero entre {VFS_MIN_BLOCKS} y {VFS_MAX_BLOCKS}"
        )
    if inode_count < INODES_PER_BLOCK or inode_count >= total_blocks:
        raise VfsError(
            f"cantidad_nodosI debe ser mayor a {INODES_PER_BLOCK} "
            "y no mayor a la cantidad de bloques"
        )
    create_block_device(image_path, total_blocks, BLOCK_SIZE)
    init_superblock(image_path, total_blocks, round_up_inodes(inode_count))
    create_root_dir(image_path)
    return read_superblock(image_path)