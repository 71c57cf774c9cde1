"""Block-level access to an image file and the superblock stored in it."""

from __future__ import annotations

import os

from .layout import BLOCK_SIZE, MAGIC_NUMBER, SB_BLOCK_NUMBER, Superblock, VfsError


def read_block(image_path, block_number: int) -> bytes:
    """Return the contents of one block of the image."""
    try:
        with open(image_path, "rb") as image:
            image.seek(block_number * BLOCK_SIZE)
            data = image.read(BLOCK_SIZE)
    except (OSError, ValueError) as exc:
        raise VfsError(f"no se pudo leer el bloque {block_number}: {exc}") from exc
    if len(data) != BLOCK_SIZE:
        raise VfsError(f"lectura incompleta del bloque {block_number}")
    return data


def write_block(image_path, block_number: int, data: bytes) -> None:
    """Overwrite one block of an existing image with ``data``."""
    if len(data) != BLOCK_SIZE:
        raise VfsError(f"un bloque debe tener {BLOCK_SIZE} bytes, no {len(data)}")
    try:
        with open(image_path, "r+b") as image:
            image.seek(block_number * BLOCK_SIZE)
            image.write(data)
    except (OSError, ValueError) as exc:
        raise VfsError(f"no se pudo escribir el bloque {block_number}: {exc}") from exc


def create_block_device(image_path, total_blocks: int, block_size: int) -> None:
    """Create a new zero-filled image; fails if the file already exists."""
    try:
        fd = os.open(image_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except OSError as exc:
        raise VfsError(f"no se pudo crear {image_path}: {exc.strerror or exc}") from exc
    zero = bytes(block_size)
    try:
        with os.fdopen(fd, "wb") as image:
            for _ in range(total_blocks):
                image.write(zero)
    except OSError as exc:
        raise VfsError(f"no se pudo escribir {image_path}: {exc.strerror or exc}") from exc


def read_superblock(image_path) -> Superblock:
    """Read and validate the superblock of an image."""
    try:
        data = read_block(image_path, SB_BLOCK_NUMBER)
    except VfsError as exc:
        raise VfsError(f"Error al leer el superbloque: {exc}") from exc
    sb = Superblock.unpack(data)
    if sb.magic != MAGIC_NUMBER:
        raise VfsError("la imagen no contiene un filesystem válido")
    return sb


def write_superblock(image_path, sb: Superblock) -> None:
    """Store ``sb`` in block 0 of the image."""
    if sb.magic != MAGIC_NUMBER:
        raise VfsError("la estructura no contiene un MAGIC_NUMBER válido")
    block = sb.pack().ljust(BLOCK_SIZE, b"\0")
    try:
        write_block(image_path, SB_BLOCK_NUMBER, block)
    except VfsError as exc:
        raise VfsError(f"Error al escribir el superbloque: {exc}") from exc


def format_superblock(sb: Superblock) -> str:
    """Describe the superblock as text, one field per line."""
    lines = [
        "Superblock:",
        f"  Magic: 0x{sb.magic:08X}",
        f"  Block size: {sb.block_size} bytes.",
        f"  Total blocks: {sb.total_blocks}",
        f"  Superblock blocks: {sb.superblock_blocks}",
        f"  Inode blocks: {sb.inode_blocks}",
        f"  Bitmap blocks: {sb.bitmap_blocks}",
        f"  Free blocks: {sb.free_blocks}",
        f"  Inode size: {sb.inode_size} bytes.",
        f"  Inode count: {sb.inode_count}",
        f"  Free inodes: {sb.free_inodes}",
        f"  Superblock start block: {SB_BLOCK_NUMBER}",
        f"  Inode start block: {sb.inode_start}",
        f"  Bitmap start block: {sb.bitmap_start}",
        f"  Data start block: {sb.data_start}",
    ]
    return "\n".join(lines)