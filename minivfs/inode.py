"""Inode table access and block lists of individual files."""

from __future__ import annotations

import contextlib
import os
import time

from .bitmap import allocate_first_free, free_block
from .device import read_block, read_superblock, write_block, write_superblock
from .layout import (
    INODE_MODE_FILE,
    INODE_SIZE,
    INODES_PER_BLOCK,
    NUM_DIRECT_PTRS,
    NUM_INDIRECT_PTRS,
    ROOTDIR_INODE,
    Inode,
    VfsError,
    pack_pointer_block,
    unpack_pointer_block,
)


def _now() -> int:
    return int(time.time()) & 0xFFFFFFFF


def _owner() -> tuple[int, int]:
    uid = os.getuid() if hasattr(os, "getuid") else 0
    gid = os.getgid() if hasattr(os, "getgid") else 0
    return uid & 0xFFFF, gid & 0xFFFF


def _inode_location(image_path, inode_number: int) -> tuple[int, int]:
    """Return (block number, byte offset) of an inode, validating its number."""
    sb = read_superblock(image_path)
    if inode_number < ROOTDIR_INODE or inode_number >= sb.inode_count:
        raise VfsError(f"nro nodo-I inválido ({inode_number})")
    block_index, slot = divmod(inode_number, INODES_PER_BLOCK)
    return sb.inode_start + block_index, slot * INODE_SIZE


def read_inode(image_path, inode_number: int) -> Inode:
    """Read inode ``inode_number`` from the inode table."""
    block_number, start = _inode_location(image_path, inode_number)
    data = read_block(image_path, block_number)
    return Inode.unpack(data[start:start + INODE_SIZE])


def write_inode(image_path, inode_number: int, inode: Inode) -> None:
    """Store ``inode`` at position ``inode_number`` of the inode table."""
    block_number, start = _inode_location(image_path, inode_number)
    block = bytearray(read_block(image_path, block_number))
    block[start:start + INODE_SIZE] = inode.pack()
    write_block(image_path, block_number, bytes(block))


def free_inode(image_path, inode_number: int) -> bool:
    """Clear an inode and count it as free.

    Returns False when the inode was already free. The root directory
    inode cannot be freed.
    """
    sb = read_superblock(image_path)
    if inode_number <= ROOTDIR_INODE or inode_number >= sb.inode_count:
        raise VfsError(f"nro nodo-I inválido ({inode_number})")

    if read_inode(image_path, inode_number).is_free:
        return False

    write_inode(image_path, inode_number, Inode())
    sb.free_inodes += 1
    write_superblock(image_path, sb)
    return True


def block_number_at(image_path, inode: Inode, index: int) -> int:
    """Return the block holding the ``index``-th block of a file.

    Direct pointers come first, then the indirect block. Returns 0 when
    ``index`` lies past the end of the file.
    """
    if index >= inode.blocks:
        return 0
    if index < NUM_DIRECT_PTRS:
        return inode.direct[index]

    if inode.indirect == 0:
        raise VfsError(
            f"bloque indirecto es 0, con index {index} y blocks {inode.blocks}"
        )
    indirect_index = index - NUM_DIRECT_PTRS
    if indirect_index >= NUM_INDIRECT_PTRS:
        raise VfsError(
            f"indirect_index {indirect_index} es mayor que {NUM_INDIRECT_PTRS}"
        )
    pointers = unpack_pointer_block(read_block(image_path, inode.indirect))
    return pointers[indirect_index]


def create_empty_file(image_path, perms: int) -> int:
    """Claim the first free inode for a new empty regular file.

    Returns the inode number used.
    """
    sb = read_superblock(image_path)
    if sb.free_inodes == 0:
        raise VfsError("no hay nodos-I libres")

    for inode_number in range(ROOTDIR_INODE + 1, sb.inode_count):
        if not read_inode(image_path, inode_number).is_free:
            continue
        uid, gid = _owner()
        now = _now()
        inode = Inode(
            mode=INODE_MODE_FILE | perms,
            uid=uid,
            gid=gid,
            atime=now,
            mtime=now,
            ctime=now,
        )
        write_inode(image_path, inode_number, inode)
        sb.free_inodes -= 1
        write_superblock(image_path, sb)
        return inode_number

    raise VfsError("no hay nodos-I libres")


def append_block(image_path, inode: Inode, block_number: int) -> None:
    """Add an allocated block to the end of a file's block list.

    Only ``inode`` is updated in memory; the caller writes it back.
    """
    sb = read_superblock(image_path)
    if block_number < sb.data_start or block_number >= sb.total_blocks:
        raise VfsError(f"bloque {block_number} fuera de rango para agregar a archivo")

    for i, pointer in enumerate(inode.direct):
        if pointer == 0:
            inode.direct[i] = block_number
            inode.blocks += 1
            return

    if inode.indirect == 0:
        inode.indirect = allocate_first_free(image_path)
        pointers = [0] * NUM_INDIRECT_PTRS
    else:
        pointers = unpack_pointer_block(read_block(image_path, inode.indirect))

    try:
        slot = pointers.index(0)
    except ValueError:
        raise VfsError("el archivo ha alcanzado el límite de bloques") from None

    pointers[slot] = block_number
    write_block(image_path, inode.indirect, pack_pointer_block(pointers))
    inode.blocks += 1


def truncate_data(image_path, inode: Inode) -> None:
    """Release every data block of a file and reset its size.

    Only ``inode`` is updated in memory; the caller writes it back.
    """
    for i, pointer in enumerate(inode.direct):
        if pointer != 0:
            with contextlib.suppress(VfsError):
                free_block(image_path, pointer)
            inode.direct[i] = 0

    if inode.indirect != 0:
        pointers = unpack_pointer_block(read_block(image_path, inode.indirect))
        for pointer in pointers:
            if pointer != 0:
                with contextlib.suppress(VfsError):
                    free_block(image_path, pointer)
        with contextlib.suppress(VfsError):
            free_block(image_path, inode.indirect)
        inode.indirect = 0

    inode.size = 0
    inode.blocks = 0
    now = _now()
    inode.mtime = now
    inode.atime = now