"""Allocation bitmap for data blocks."""

from __future__ import annotations

from .device import read_block, read_superblock, write_block, write_superblock
from .layout import BITS_PER_BLOCK, BLOCK_SIZE, VfsError

_ROW_WIDTH = 64


def _locate(block_nbr: int) -> tuple[int, int, int]:
    """Return (bitmap block offset, byte index, bit mask) for a block number."""
    offset, bit_in_block = divmod(block_nbr, BITS_PER_BLOCK)
    byte_index, bit_index = divmod(bit_in_block, 8)
    return offset, byte_index, 0x80 >> bit_index


def free_block(image_path, block_nbr: int) -> bool:
    """Mark a data block free and zero its contents.

    Returns False when the block was already free. The first data block
    (the root directory) cannot be freed.
    """
    sb = read_superblock(image_path)
    if block_nbr <= sb.data_start or block_nbr >= sb.total_blocks:
        raise VfsError(f"número de bloque inválido ({block_nbr})")

    offset, byte_index, mask = _locate(block_nbr)
    bitmap_block_num = sb.bitmap_start + offset
    bitmap = bytearray(read_block(image_path, bitmap_block_num))

    if not bitmap[byte_index] & mask:
        return False

    bitmap[byte_index] &= ~mask & 0xFF
    write_block(image_path, bitmap_block_num, bytes(bitmap))
    write_block(image_path, block_nbr, bytes(BLOCK_SIZE))

    sb.bitmap_zeroes[offset] += 1
    sb.free_blocks += 1
    write_superblock(image_path, sb)
    return True


def allocate_first_free(image_path) -> int:
    """Mark the lowest free block as used and return its number."""
    sb = read_superblock(image_path)
    if sb.free_blocks == 0:
        raise VfsError("no hay bloques libres")

    offset = next(
        (i for i, zeroes in enumerate(sb.bitmap_zeroes[: sb.bitmap_blocks]) if zeroes > 0),
        None,
    )
    if offset is None:
        raise VfsError("inconsistencia: bitmap_zeroes no refleja bloques libres")

    bitmap_block_num = sb.bitmap_start + offset
    bitmap = bytearray(read_block(image_path, bitmap_block_num))

    byte_index = next((i for i, byte in enumerate(bitmap) if byte != 0xFF), None)
    if byte_index is None:
        raise VfsError("inconsistencia: bitmap parece lleno pero metadata indica espacio")

    byte = bitmap[byte_index]
    bit_index = next(b for b in range(8) if not byte & (0x80 >> b))
    block_number = offset * BITS_PER_BLOCK + byte_index * 8 + bit_index

    if block_number >= sb.total_blocks:
        raise VfsError("número de bloque fuera de rango")

    bitmap[byte_index] = byte | (0x80 >> bit_index)
    write_block(image_path, bitmap_block_num, bytes(bitmap))

    sb.bitmap_zeroes[offset] -= 1
    sb.free_blocks -= 1
    write_superblock(image_path, sb)
    return block_number


def render_bitmap(data: bytes, size: int) -> str:
    """Draw the first ``size`` bits: '#' for used, '.' for free, 64 per line."""
    marks = "".join(
        "#" if data[i // 8] & (0x80 >> (i % 8)) else "." for i in range(size)
    )
    return "".join(
        marks[start:start + _ROW_WIDTH] + "\n" for start in range(0, len(marks), _ROW_WIDTH)
    )