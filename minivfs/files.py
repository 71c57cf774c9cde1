"""Commands that create, copy, list and truncate files in an image."""

from __future__ import annotations

import os
import sys

from .data import write_data
from .device import read_block, read_superblock
from .directory import add_dir_entry, dir_lookup, format_inode_line, name_is_valid
from .inode import (
    block_number_at,
    create_empty_file,
    free_inode,
    read_inode,
    truncate_data,
    write_inode,
)
from .layout import BLOCK_SIZE, ROOTDIR_INODE, VfsError, unpack_dir_block


def _args(argv):
    return sys.argv[1:] if argv is None else list(argv)


def _err(message: str) -> None:
    print(message, file=sys.stderr)


def copy_main(argv=None) -> int:
    """Copy a host file into the image under a new name."""
    args = _args(argv)
    if len(args) != 3:
        _err("Uso: vfs-copy imagen archivo_origen nombre_destino")
        return 1
    image_path, host_file, dest_name = args

    try:
        read_superblock(image_path)
    except VfsError as exc:
        _err(f"Error al leer superblock: {exc}")
        return 1

    if not name_is_valid(dest_name):
        _err(f"Nombre inválido: {dest_name}")
        return 1

    try:
        existing = dir_lookup(image_path, dest_name)
    except VfsError as exc:
        _err(f"Error al buscar '{dest_name}' en el directorio: {exc}")
        return 1
    if existing != 0:
        _err(f"El nombre '{dest_name}' ya existe en el directorio")
        return 1

    try:
        source = open(host_file, "rb")
    except OSError as exc:
        _err(f"Error ({exc.strerror or exc}) al abrir archivo {host_file}")
        return 1

    with source:
        try:
            perms = os.fstat(source.fileno()).st_mode & 0o777
        except OSError:
            _err(f"Error al obtener tamaño de archivo {host_file}.")
            return 1

        try:
            inode_number = create_empty_file(image_path, perms)
        except VfsError as exc:
            _err(f"Error al crear archivo destino en VFS: {exc}")
            return 1

        try:
            add_dir_entry(image_path, dest_name, inode_number)
        except VfsError as exc:
            _err(f"Error al agregar entrada de directorio para {dest_name}: {exc}")
            return 1

        offset = 0
        while True:
            try:
                chunk = source.read(BLOCK_SIZE)
            except OSError:
                _err(f"Error al leer archivo origen {host_file}")
                return 1
            if not chunk:
                break
            try:
                written = write_data(image_path, inode_number, chunk, offset)
            except VfsError as exc:
                written = -1
                _err(str(exc))
            if written != len(chunk):
                _err(
                    f"Error al escribir datos en VFS, nodo-I nro {inode_number}, "
                    f"nread {len(chunk)}, offset {offset}."
                )
                return 1
            offset += len(chunk)

    return 0


def ls_main(argv=None) -> int:
    """List every entry of the root directory's first block."""
    args = _args(argv)
    if len(args) != 1:
        _err("Uso: vfs-ls <imagen>")
        return 1
    image_path = args[0]

    try:
        read_superblock(image_path)
    except VfsError:
        _err("Error al leer el superbloque.")
        return 1

    try:
        root = read_inode(image_path, ROOTDIR_INODE)
    except VfsError:
        _err("Error al leer el inodo del directorio raíz.")
        return 1

    try:
        block_number = block_number_at(image_path, root, 0)
        entries = unpack_dir_block(read_block(image_path, block_number))
    except VfsError:
        _err("Error al leer el bloque de datos del directorio raíz.")
        return 1

    for entry in entries:
        if entry.is_free:
            continue
        try:
            inode = read_inode(image_path, entry.inode)
        except VfsError:
            _err(f"No se pudo leer el inodo {entry.inode}")
            continue
        print(format_inode_line(inode, entry.inode, entry.name))

    return 0


def lsort_main(argv=None) -> int:
    """List the root directory's files sorted by name, without '.' and '..'."""
    args = _args(argv)
    if len(args) != 1:
        _err("Uso: vfs-lsort <imagen>")
        return 1
    image_path = args[0]

    try:
        root = read_inode(image_path, ROOTDIR_INODE)
    except VfsError:
        _err("Error al leer el inodo raiz")
        return 1

    try:
        entries = unpack_dir_block(read_block(image_path, root.direct[0]))
    except VfsError:
        _err("Error al leer el bloque de datos del directorio")
        return 1

    valid = [
        entry
        for entry in entries
        if not entry.is_free and entry.name not in (".", "..")
    ]
    valid.sort(key=lambda entry: entry.name.encode("utf-8", "surrogateescape"))

    for entry in valid:
        try:
            inode = read_inode(image_path, entry.inode)
        except VfsError:
            continue
        print(format_inode_line(inode, entry.inode, entry.name))

    return 0


def touch_main(argv=None) -> int:
    """Create empty files with the given names in the root directory."""
    args = _args(argv)
    if len(args) < 2:
        _err("Uso: vfs-touch imagen archivo1 [archivo2 ...]")
        return 1
    image_path, *filenames = args

    for filename in filenames:
        if not name_is_valid(filename):
            _err(f"Error: el nombre '{filename}' no es válido.")
            continue

        try:
            found = dir_lookup(image_path, filename)
        except VfsError:
            _err(f"Error: no se pudo verificar la existencia de '{filename}'.")
            continue
        if found > 0:
            _err(f"Error: el archivo '{filename}' ya existe en el directorio.")
            continue

        try:
            inode_number = create_empty_file(image_path, 0o644)
        except VfsError:
            _err(f"Error: no se pudo crear el archivo '{filename}' (no hay inodos libres).")
            continue

        try:
            add_dir_entry(image_path, filename, inode_number)
        except VfsError:
            _err(f"Error: no se pudo agregar '{filename}' al directorio.")
            try:
                free_inode(image_path, inode_number)
            except VfsError:
                pass
            continue

        print(f"Archivo '{filename}' creado con éxito (inodo {inode_number}).")

    return 0


def trunc_main(argv=None) -> int:
    """Release the data of the named files, leaving them empty."""
    args = _args(argv)
    if len(args) < 2:
        _err("Uso: vfs-trunc <imagen> <archivo1> [archivo2...]")
        return 1
    image_path, *filenames = args

    for filename in filenames:
        try:
            inode_number = dir_lookup(image_path, filename)
        except VfsError:
            _err(f"Archivo '{filename}' no encontrado.")
            continue

        try:
            inode = read_inode(image_path, inode_number)
        except VfsError:
            _err(f"Error al leer el inodo de '{filename}'.")
            continue

        try:
            truncate_data(image_path, inode)
        except VfsError:
            _err(f"Error al truncar los datos de '{filename}'.")
            continue

        inode.size = 0
        try:
            write_inode(image_path, inode_number, inode)
        except VfsError:
            _err(f"Error al escribir el inodo truncado de '{filename}'.")
            continue

        print(f"Archivo '{filename}' truncado con éxito.")

    return 0