"""Commands that create an image and describe its layout."""

from __future__ import annotations

import sys

from .bitmap import render_bitmap
from .device import create_block_device, format_superblock, read_block, read_superblock
from .format import create_root_dir, init_superblock, round_up_inodes
from .layout import BLOCK_SIZE, INODES_PER_BLOCK, VFS_MAX_BLOCKS, VFS_MIN_BLOCKS, VfsError


def _atoi(text: str) -> int:
    """Parse a leading integer the lenient way: anything unparsable is 0."""
    text = text.strip()
    sign = -1 if text.startswith("-") else 1
    digits = text.lstrip("+-")
    number = ""
    for char in digits:
        if not char.isdigit():
            break
        number += char
    return sign * int(number) if number else 0


def mkfs_main(argv=None) -> int:
    """Create an image holding an empty filesystem.

    Arguments: image path, total blocks, inode count.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 3:
        print("Uso: vfs-mkfs <nombre_imagen> <total_bloques> <cantidad_nodosI>", file=sys.stderr)
        return 1

    image_path = args[0]
    total_blocks = _atoi(args[1])
    if total_blocks < VFS_MIN_BLOCKS or total_blocks >= VFS_MAX_BLOCKS:
        print(
            f"Error: total_bloques debe ser un entero entre {VFS_MIN_BLOCKS} y {VFS_MAX_BLOCKS}.",
            file=sys.stderr,
        )
        return 1

    inode_count = _atoi(args[2])
    if inode_count < INODES_PER_BLOCK or inode_count >= total_blocks:
        print(
            f"Error: cantidad_nodosI debe ser mayor a {INODES_PER_BLOCK} "
            "y no mayor a la cantidad de bloques.",
            file=sys.stderr,
        )
        return 1

    try:
        create_block_device(image_path, total_blocks, BLOCK_SIZE)
    except VfsError as exc:
        print(f"Error al crear el dispositivo de bloques: {exc}", file=sys.stderr)
        return 1

    print(f"Dispositivo de bloques creado exitosamente: {image_path}")

    try:
        init_superblock(image_path, total_blocks, round_up_inodes(inode_count))
    except VfsError as exc:
        print(f"Error: no se pudo inicializar el superbloque ({exc})", file=sys.stderr)
        return 1

    try:
        create_root_dir(image_path)
    except VfsError as exc:
        print(f"Error: no se pudo crear el directorio raíz ({exc})", file=sys.stderr)
        return 1

    print(f"Dispositivo de bloques inicializado exitosamente: {image_path}", file=sys.stderr)
    return 0


def info_main(argv=None) -> int:
    """Print the superblock and block bitmap of an image."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Uso: vfs-info imagen", file=sys.stderr)
        return 1

    image_path = args[0]
    try:
        sb = read_superblock(image_path)
    except VfsError as exc:
        print(f"Error al leer superblock: {exc}", file=sys.stderr)
        return 1

    print(format_superblock(sb))
    print("\nBlock bitmap:")

    to_print = sb.total_blocks
    for offset in range(sb.bitmap_blocks):
        try:
            data = read_block(image_path, sb.bitmap_start + offset)
        except VfsError:
            print(f"Error al leer bloque de bitmap {offset}", file=sys.stderr)
            return 1
        print(render_bitmap(data, min(to_print, BLOCK_SIZE)), end="")
        to_print = (to_print - BLOCK_SIZE) & 0xFFFFFFFF

    return 0