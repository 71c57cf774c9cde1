"""Reading and writing file contents through an inode."""

from __future__ import annotations

import time

from .bitmap import allocate_first_free
from .device import read_block, read_superblock, write_block
from .inode import append_block, block_number_at, read_inode, write_inode
from .layout import BLOCK_SIZE, NUM_DIRECT_PTRS, NUM_INDIRECT_PTRS, VfsError

MAX_FILE_SIZE = (NUM_DIRECT_PTRS + NUM_INDIRECT_PTRS) * BLOCK_SIZE


def _now() -> int:
    return int(time.time()) & 0xFFFFFFFF


def _file_block(image_path, inode, index: int) -> int:
    block_number = block_number_at(image_path, inode, index)
    if block_number <= 0:
        raise VfsError(f"error inesperado obteniendo el bloque número {index} del archivo")
    return block_number


def write_data(image_path, inode_number: int, data: bytes, offset: int = 0) -> int:
    """Write ``data`` into a file at ``offset``, allocating blocks as needed.

    Returns the number of bytes written.
    """
    inode = read_inode(image_path, inode_number)
    length = len(data)
    final_size = offset + length
    if final_size > MAX_FILE_SIZE:
        raise VfsError("escritura supera el tamaño máximo permitido del archivo")

    sb = read_superblock(image_path)
    required_blocks = -(-final_size // BLOCK_SIZE)
    if required_blocks > inode.blocks:
        to_allocate = required_blocks - inode.blocks
        if to_allocate > sb.free_blocks:
            raise VfsError(f"no hay bloques libres suficientes ({to_allocate} requeridos)")
        for _ in range(to_allocate):
            append_block(image_path, inode, allocate_first_free(image_path))

    source = memoryview(bytes(data))
    index, block_offset = divmod(offset, BLOCK_SIZE)
    while source:
        block_number = _file_block(image_path, inode, index)
        block = bytearray(read_block(image_path, block_number))
        chunk = source[: BLOCK_SIZE - block_offset]
        block[block_offset:block_offset + len(chunk)] = chunk
        write_block(image_path, block_number, bytes(block))
        source = source[len(chunk):]
        index += 1
        block_offset = 0

    inode.size = max(inode.size, final_size)
    now = _now()
    inode.mtime = now
    inode.atime = now
    write_inode(image_path, inode_number, inode)
    return length


def read_data(image_path, inode_number: int, length: int, offset: int = 0) -> bytes:
    """Read up to ``length`` bytes of a file starting at ``offset``."""
    inode = read_inode(image_path, inode_number)
    if offset >= inode.size:
        raise VfsError("offset fuera del tamaño del archivo")
    length = min(length, inode.size - offset)

    chunks = []
    remaining = length
    index, block_offset = divmod(offset, BLOCK_SIZE)
    while remaining > 0:
        block_number = _file_block(image_path, inode, index)
        block = read_block(image_path, block_number)
        chunk = block[block_offset:block_offset + remaining]
        chunks.append(chunk)
        remaining -= len(chunk)
        index += 1
        block_offset = 0

    inode.atime = _now()
    write_inode(image_path, inode_number, inode)
    return b"".join(chunks)