import os

import pytest

from minivfs.admin import mkfs_main
from minivfs.data import read_data
from minivfs.device import read_superblock
from minivfs.directory import dir_lookup
from minivfs.files import copy_main, ls_main, lsort_main, touch_main, trunc_main
from minivfs.inode import read_inode
from minivfs.layout import INODE_MODE_FILE, NUM_DIRECT_PTRS


@pytest.fixture
def image(tmp_path, capsys):
    path = tmp_path / "disk.img"
    assert mkfs_main([str(path), "200", "32"]) == 0
    capsys.readouterr()
    return path


@pytest.fixture
def host_file(tmp_path):
    path = tmp_path / "source.bin"
    path.write_bytes(bytes(range(256)) * 40)
    os.chmod(path, 0o600)
    return path


def _names(output):
    return [line.split()[-1] for line in output.splitlines()]


def test_touch_creates_empty_files(image, capsys):
    assert touch_main([str(image), "uno.txt", "dos.txt"]) == 0
    out = capsys.readouterr().out
    assert "Archivo 'uno.txt' creado con éxito" in out
    for name in ("uno.txt", "dos.txt"):
        number = dir_lookup(image, name)
        assert number > 1
        inode = read_inode(image, number)
        assert inode.size == 0
        assert inode.mode == INODE_MODE_FILE | 0o644


def test_touch_rejects_invalid_and_duplicate(image, capsys):
    touch_main([str(image), "a.txt"])
    capsys.readouterr()
    assert touch_main([str(image), "bad name", "a.txt"]) == 0
    err = capsys.readouterr().err
    assert "'bad name' no es válido" in err
    assert "'a.txt' ya existe" in err
    assert dir_lookup(image, "bad name") == 0


def test_touch_usage(image, capsys):
    assert touch_main([str(image)]) == 1
    assert "Uso" in capsys.readouterr().err


def test_copy_round_trip(image, host_file):
    payload = host_file.read_bytes()
    assert copy_main([str(image), str(host_file), "copia.bin"]) == 0
    number = dir_lookup(image, "copia.bin")
    inode = read_inode(image, number)
    assert inode.size == len(payload)
    assert inode.blocks > NUM_DIRECT_PTRS
    assert inode.mode & 0o777 == 0o600
    assert read_data(image, number, len(payload), 0) == payload


def test_copy_empty_file(image, tmp_path):
    empty = tmp_path / "empty"
    empty.write_bytes(b"")
    assert copy_main([str(image), str(empty), "vacio"]) == 0
    assert read_inode(image, dir_lookup(image, "vacio")).size == 0


def test_copy_refuses_existing_name(image, host_file, capsys):
    touch_main([str(image), "taken"])
    capsys.readouterr()
    assert copy_main([str(image), str(host_file), "taken"]) == 1
    assert "ya existe" in capsys.readouterr().err


def test_copy_refuses_invalid_name(image, host_file):
    before = read_superblock(image).free_inodes
    assert copy_main([str(image), str(host_file), "no/slash"]) == 1
    assert read_superblock(image).free_inodes == before


def test_copy_missing_host_file(image, tmp_path, capsys):
    assert copy_main([str(image), str(tmp_path / "missing"), "x"]) == 1
    assert "al abrir archivo" in capsys.readouterr().err
    assert dir_lookup(image, "x") == 0


def test_copy_usage(capsys):
    assert copy_main(["only-one"]) == 1
    assert "Uso" in capsys.readouterr().err


def test_ls_lists_all_entries(image, capsys):
    touch_main([str(image), "b.txt", "a.txt"])
    capsys.readouterr()
    assert ls_main([str(image)]) == 0
    names = _names(capsys.readouterr().out)
    assert names == [".", "..", "b.txt", "a.txt"]


def test_ls_rejects_non_image(tmp_path, capsys):
    bogus = tmp_path / "bogus"
    bogus.write_bytes(bytes(4096))
    assert ls_main([str(bogus)]) == 1
    assert "superbloque" in capsys.readouterr().err


def test_lsort_sorts_and_hides_dot_entries(image, capsys):
    touch_main([str(image), "zeta", "alfa", "Beta"])
    capsys.readouterr()
    assert lsort_main([str(image)]) == 0
    names = _names(capsys.readouterr().out)
    assert names == sorted(["zeta", "alfa", "Beta"])
    assert "." not in names


def test_lsort_usage(capsys):
    assert lsort_main([]) == 1
    assert "Uso" in capsys.readouterr().err


def test_trunc_releases_blocks(image, host_file, capsys):
    free_before = read_superblock(image).free_blocks
    copy_main([str(image), str(host_file), "big"])
    assert read_superblock(image).free_blocks < free_before
    capsys.readouterr()
    assert trunc_main([str(image), "big"]) == 0
    assert "Archivo 'big' truncado con éxito." in capsys.readouterr().out
    inode = read_inode(image, dir_lookup(image, "big"))
    assert inode.size == 0
    assert inode.blocks == 0
    assert inode.indirect == 0
    assert read_superblock(image).free_blocks == free_before


def test_trunc_unknown_file(image, capsys):
    assert trunc_main([str(image), "ghost"]) == 0
    assert "Error al leer el inodo de 'ghost'" in capsys.readouterr().err


def test_trunc_usage(image, capsys):
    assert trunc_main([str(image)]) == 1
    assert "Uso" in capsys.readouterr().err