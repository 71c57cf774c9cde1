# minivfs

minivfs is a small file system that lives inside one ordinary file on
your disk. That file is called an *image*. An image holds a superblock,
an inode table, a block bitmap and a single root directory. The package
includes a few command-line tools. They create an image, show what is
inside it, and add files to it.

Use it to learn how a block-based file system is laid out and to try
things out on one. It cannot mount anything.

The tools print their messages and errors in Spanish.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Layout of an image

Every block is 1024 bytes.

| Blocks             | Contents                                                   |
|--------------------|------------------------------------------------------------|
| 0                  | superblock (magic number `0x20250604`, counters, offsets)  |
| 1 .. N             | inode table, 16 inodes of 64 bytes per block               |
| N+1 .. B           | bitmap of used and free blocks, one bit per block          |
| B+1 ..             | data blocks; the first one holds the root directory        |

Inode 0 is never used. Inode 1 is the root directory, which starts with
the entries `.` and `..`. Every other file sits directly in the root
directory. There are no subdirectories.

Each inode holds seven direct block pointers and one indirect block
with room for 256 more pointers. A file can therefore grow to
(7 + 256) × 1024 bytes.

A file name may contain letters, digits, `.`, `_` and `-`. It may be at
most 27 characters long.

## Commands

**Create an image.** You give the image name, the number of blocks and
the number of inodes. The image file must not exist yet. The block
count must be at least 50 and below 65536. The inode count must be at
least 16 and below the block count. It is rounded up so that the inode
blocks are filled completely.

```
vfs-mkfs disk.img 1000 64
```

**Show the superblock and the block bitmap.** In the bitmap, `#` marks
a used block and `.` marks a free one.

```
vfs-info disk.img
```

**Copy a file into the image.** The file is copied from your computer
into the image under a new name. Its permission bits are kept.

```
vfs-copy disk.img notes.txt notes.txt
```

**Create empty files.** You can give one name or several.

```
vfs-touch disk.img a.txt b.txt
```

**Truncate files.** Each named file is cut down to zero length, and its
blocks go back to the free pool.

```
vfs-trunc disk.img notes.txt
```

**List the root directory.** `vfs-ls` lists it in directory order.
`vfs-lsort` sorts it by name and leaves out `.` and `..`.

```
vfs-ls disk.img
vfs-lsort disk.img
```

Each line of a listing shows these fields, in this order:

- inode number
- type and permissions
- owner
- group
- number of blocks
- size in bytes
- creation time
- modification time
- access time
- name

```
   1 drwxr-xr-x alice      staff        1     1024 2025-06-04 10:00:00 2025-06-04 10:00:00 2025-06-04 10:00:00 .
```

## Using it from Python

The same operations are available as functions. When an operation
fails, it raises `minivfs.layout.VfsError`.

```python
from minivfs.format import make_filesystem
from minivfs.inode import create_empty_file
from minivfs.directory import add_dir_entry, dir_lookup
from minivfs.data import write_data, read_data

make_filesystem("disk.img", 200, 32)

inode_number = create_empty_file("disk.img", 0o644)
add_dir_entry("disk.img", "hello.txt", inode_number)
write_data("disk.img", inode_number, b"hello, world\n", 0)

assert dir_lookup("disk.img", "hello.txt") == inode_number
print(read_data("disk.img", inode_number, 100, 0))
```

The lower-level parts live in these modules:

| Module              | What it covers                                                   |
|---------------------|------------------------------------------------------------------|
| `minivfs.layout`    | on-disk records `Superblock`, `Inode`, `DirEntry` and constants   |
| `minivfs.device`    | reading and writing blocks and the superblock                     |
| `minivfs.bitmap`    | allocating and freeing blocks                                     |
| `minivfs.inode`     | reading, writing, growing and truncating inodes                   |
| `minivfs.directory` | directory entries and listing lines                               |

## What it does not do

- There is no command that prints a file's contents back out of an
  image. From Python, use `minivfs.data.read_data`.
- There is no command that deletes a file. From Python you can do it in
  three steps:
  1. Remove the name with `minivfs.directory.remove_dir_entry`.
  2. Release the blocks with `minivfs.inode.truncate_data`.
  3. Free the inode with `minivfs.inode.free_inode`.
- The root directory never grows beyond its first block. It therefore
  holds at most 32 entries, including `.` and `..`.