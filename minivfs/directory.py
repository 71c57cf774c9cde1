"""Root directory entries and the text shown when listing files."""

from __future__ import annotations

import time
from collections.abc import Iterator

from .device import read_block, write_block
from .inode import block_number_at, read_inode
from .layout import (
    FILENAME_MAX_LEN,
    INODE_MODE_DIR,
    INODE_MODE_FILE,
    ROOTDIR_INODE,
    DirEntry,
    Inode,
    VfsError,
    pack_dir_block,
    unpack_dir_block,
)

try:
    import grp
    import pwd
except ImportError:  # platforms without a user database
    grp = None
    pwd = None

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_RWX = "rwxrwxrwx"
_NAME_EXTRA_CHARS = "._-"


def file_type_char(mode: int) -> str:
    """Return 'd' for a directory, '-' for a regular file, '?' otherwise."""
    if mode & INODE_MODE_DIR == INODE_MODE_DIR:
        return "d"
    if mode & INODE_MODE_FILE == INODE_MODE_FILE:
        return "-"
    return "?"


def permissions_string(mode: int) -> str:
    """Return the nine permission bits as in ``rwxr-xr-x``."""
    return "".join(
        char if mode & (1 << (8 - i)) else "-" for i, char in enumerate(_RWX)
    )


def user_name(uid: int) -> str:
    """Return the user name for ``uid``, or the number itself if unknown."""
    if pwd is not None:
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            pass
    return str(uid)


def group_name(gid: int) -> str:
    """Return the group name for ``gid``, or the number itself if unknown."""
    if grp is not None:
        try:
            return grp.getgrgid(gid).gr_name
        except KeyError:
            pass
    return str(gid)


def format_timestamp(ts: int) -> str:
    """Render a Unix timestamp in local time."""
    return time.strftime(_TIMESTAMP_FORMAT, time.localtime(ts))


def format_inode_line(inode: Inode, inode_number: int, filename: str) -> str:
    """Return one long-listing line describing a file."""
    return (
        f"{inode_number:4d} {file_type_char(inode.mode)}{permissions_string(inode.mode)} "
        f"{user_name(inode.uid):<10} {group_name(inode.gid):<10} "
        f"{inode.blocks:3d} {inode.size:8d} "
        f"{format_timestamp(inode.ctime)} {format_timestamp(inode.mtime)} "
        f"{format_timestamp(inode.atime)} {filename}"
    )


def name_is_valid(name) -> bool:
    """Check a file name: ASCII letters, digits, '.', '_', '-', under 28 chars."""
    if not name or len(name) >= FILENAME_MAX_LEN:
        return False
    return all(
        (c.isascii() and c.isalnum()) or c in _NAME_EXTRA_CHARS for c in name
    )


def _field(name: str) -> bytes:
    return name.encode("utf-8", "surrogateescape")[:FILENAME_MAX_LEN]


def _root_blocks(image_path) -> Iterator[tuple[int, list[DirEntry]]]:
    """Yield (block number, entries) for each data block of the root directory."""
    root = read_inode(image_path, ROOTDIR_INODE)
    for index in range(root.blocks):
        block_number = block_number_at(image_path, root, index)
        if block_number <= 0:
            raise VfsError(
                f"error inesperado al buscar bloque {index} del directorio raiz"
            )
        yield block_number, unpack_dir_block(read_block(image_path, block_number))


def dir_lookup(image_path, filename: str) -> int:
    """Return the inode number named ``filename`` in the root, or 0 if absent."""
    wanted = _field(filename)
    for _, entries in _root_blocks(image_path):
        for entry in entries:
            if not entry.is_free and _field(entry.name) == wanted:
                return entry.inode
    return 0


def add_dir_entry(image_path, filename: str, inode_number: int) -> None:
    """Put ``filename`` -> ``inode_number`` into the first free root slot."""
    if not name_is_valid(filename):
        raise VfsError(f"nombre de archivo no válido: {filename!r}")
    for block_number, entries in _root_blocks(image_path):
        for slot, entry in enumerate(entries):
            if entry.is_free:
                entries[slot] = DirEntry(inode_number, filename)
                write_block(image_path, block_number, pack_dir_block(entries))
                return
    raise VfsError("no hay entradas libres en el directorio")


def remove_dir_entry(image_path, filename: str) -> bool:
    """Clear the root entry named ``filename``; False if it was not there."""
    wanted = _field(filename)
    for block_number, entries in _root_blocks(image_path):
        for slot, entry in enumerate(entries):
            if not entry.is_free and _field(entry.name) == wanted:
                entries[slot] = DirEntry()
                write_block(image_path, block_number, pack_dir_block(entries))
                return True
    return False