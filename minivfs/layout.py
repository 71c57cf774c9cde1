"""On-disk layout of a filesystem image: constants and record codecs."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

MAGIC_NUMBER = 0x20250604
BLOCK_SIZE = 1024

VFS_MIN_BLOCKS = 50
VFS_MAX_BLOCKS = 64 * BLOCK_SIZE

MAX_INODE_BLOCKS = 8
MAX_VFS_BLOCKS = MAX_INODE_BLOCKS * BLOCK_SIZE * 8

INODE_MODE_FILE = 0x8000
INODE_MODE_DIR = 0x4000
DEFAULT_PERM = 0o640

FILENAME_MAX_LEN = 28

# Inode 0 is never used: a zero inode number marks a free directory entry.
ROOTDIR_INODE = 1
SB_BLOCK_NUMBER = 0

NUM_DIRECT_PTRS = 7
NUM_INDIRECT_PTRS = BLOCK_SIZE // 4

_SUPERBLOCK = struct.Struct(f"<10I{MAX_INODE_BLOCKS}H3I")
_INODE = struct.Struct(f"<4HI{NUM_DIRECT_PTRS}I4I6s2x")
_DIR_ENTRY = struct.Struct(f"<I{FILENAME_MAX_LEN}s")
_POINTER_BLOCK = struct.Struct(f"<{NUM_INDIRECT_PTRS}I")

INODE_SIZE = _INODE.size
INODES_PER_BLOCK = BLOCK_SIZE // INODE_SIZE
BITS_PER_BLOCK = BLOCK_SIZE * 8
DIR_ENTRY_SIZE = _DIR_ENTRY.size
DIR_ENTRIES_PER_BLOCK = BLOCK_SIZE // DIR_ENTRY_SIZE


class VfsError(Exception):
    """Raised when an operation on a filesystem image fails."""


def _need(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise VfsError(f"datos insuficientes para {what}: {len(data)} < {size} bytes")


@dataclass
class Superblock:
    """Block 0 of the image: global geometry and free-space counters."""

    magic: int = MAGIC_NUMBER
    block_size: int = BLOCK_SIZE
    total_blocks: int = 0
    superblock_blocks: int = 1
    inode_blocks: int = 0
    bitmap_blocks: int = 0
    free_blocks: int = 0
    inode_size: int = INODE_SIZE
    inode_count: int = 0
    free_inodes: int = 0
    bitmap_zeroes: list[int] = field(default_factory=lambda: [0] * MAX_INODE_BLOCKS)
    inode_start: int = 0
    bitmap_start: int = 0
    data_start: int = 0

    def pack(self) -> bytes:
        """Encode the superblock in its on-disk form."""
        if len(self.bitmap_zeroes) > MAX_INODE_BLOCKS:
            raise VfsError("demasiadas entradas en bitmap_zeroes")
        zeroes = list(self.bitmap_zeroes) + [0] * (MAX_INODE_BLOCKS - len(self.bitmap_zeroes))
        try:
            return _SUPERBLOCK.pack(
                self.magic,
                self.block_size,
                self.total_blocks,
                self.superblock_blocks,
                self.inode_blocks,
                self.bitmap_blocks,
                self.free_blocks,
                self.inode_size,
                self.inode_count,
                self.free_inodes,
                *zeroes,
                self.inode_start,
                self.bitmap_start,
                self.data_start,
            )
        except struct.error as exc:
            raise VfsError(f"superbloque no representable: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> Superblock:
        """Decode a superblock from the start of ``data``."""
        _need(data, _SUPERBLOCK.size, "el superbloque")
        values = _SUPERBLOCK.unpack_from(data)
        head, zeroes, tail = values[:10], values[10:10 + MAX_INODE_BLOCKS], values[10 + MAX_INODE_BLOCKS:]
        return cls(*head, list(zeroes), *tail)


@dataclass
class Inode:
    """Metadata of one file or directory."""

    mode: int = 0
    uid: int = 0
    gid: int = 0
    blocks: int = 0
    size: int = 0
    direct: list[int] = field(default_factory=lambda: [0] * NUM_DIRECT_PTRS)
    indirect: int = 0
    atime: int = 0
    mtime: int = 0
    ctime: int = 0
    reserved: bytes = bytes(6)

    @property
    def is_free(self) -> bool:
        return self.mode == 0

    def pack(self) -> bytes:
        """Encode the inode in its 64-byte on-disk form."""
        if len(self.direct) != NUM_DIRECT_PTRS:
            raise VfsError(f"un nodo-I tiene exactamente {NUM_DIRECT_PTRS} punteros directos")
        try:
            return _INODE.pack(
                self.mode,
                self.uid,
                self.gid,
                self.blocks,
                self.size,
                *self.direct,
                self.indirect,
                self.atime,
                self.mtime,
                self.ctime,
                bytes(self.reserved),
            )
        except struct.error as exc:
            raise VfsError(f"nodo-I no representable: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> Inode:
        """Decode an inode from the start of ``data``."""
        _need(data, INODE_SIZE, "un nodo-I")
        values = _INODE.unpack_from(data)
        mode, uid, gid, blocks, size = values[:5]
        direct = list(values[5:5 + NUM_DIRECT_PTRS])
        indirect, atime, mtime, ctime, reserved = values[5 + NUM_DIRECT_PTRS:]
        return cls(mode, uid, gid, blocks, size, direct, indirect, atime, mtime, ctime, reserved)


@dataclass
class DirEntry:
    """A name in a directory block; inode 0 marks a free slot."""

    inode: int = 0
    name: str = ""

    @property
    def is_free(self) -> bool:
        return self.inode == 0

    def pack(self) -> bytes:
        """Encode the entry; the name is cut to the field width."""
        raw = self.name.encode("utf-8", "surrogateescape")[:FILENAME_MAX_LEN]
        try:
            return _DIR_ENTRY.pack(self.inode, raw)
        except struct.error as exc:
            raise VfsError(f"entrada de directorio no representable: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> DirEntry:
        """Decode an entry from the start of ``data``."""
        _need(data, DIR_ENTRY_SIZE, "una entrada de directorio")
        inode, raw = _DIR_ENTRY.unpack_from(data)
        name = raw.split(b"\0", 1)[0].decode("utf-8", "surrogateescape")
        return cls(inode, name)


def pack_dir_block(entries) -> bytes:
    """Encode directory entries into a full block, zero-filling unused slots."""
    entries = list(entries)
    if len(entries) > DIR_ENTRIES_PER_BLOCK:
        raise VfsError(f"un bloque admite a lo sumo {DIR_ENTRIES_PER_BLOCK} entradas")
    return b"".join(entry.pack() for entry in entries).ljust(BLOCK_SIZE, b"\0")


def unpack_dir_block(data: bytes) -> list[DirEntry]:
    """Decode every slot of a directory block, free ones included."""
    _need(data, BLOCK_SIZE, "un bloque de directorio")
    return [
        DirEntry.unpack(data[start:start + DIR_ENTRY_SIZE])
        for start in range(0, DIR_ENTRIES_PER_BLOCK * DIR_ENTRY_SIZE, DIR_ENTRY_SIZE)
    ]


def pack_pointer_block(pointers) -> bytes:
    """Encode block numbers into an indirect block, zero-filling the rest."""
    pointers = list(pointers)
    if len(pointers) > NUM_INDIRECT_PTRS:
        raise VfsError(f"un bloque indirecto admite a lo sumo {NUM_INDIRECT_PTRS} punteros")
    padded = pointers + [0] * (NUM_INDIRECT_PTRS - len(pointers))
    try:
        return _POINTER_BLOCK.pack(*padded)
    except struct.error as exc:
        raise VfsError(f"puntero de bloque no representable: {exc}") from exc


def unpack_pointer_block(data: bytes) -> list[int]:
    """Decode all block numbers held in an indirect block."""
    _need(data, BLOCK_SIZE, "un bloque indirecto")
    return list(_POINTER_BLOCK.unpack_from(data))