[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minivfs"
version = "0.1.0"
description = "A small block-based file system kept inside a single image file, with tools to format, inspect and fill it"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "inode", "bitmap", "disk image", "block device", "education"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vfs-mkfs = "minivfs.admin:mkfs_main"
vfs-info = "minivfs.admin:info_main"
vfs-copy = "minivfs.files:copy_main"
vfs-ls = "minivfs.files:ls_main"
vfs-lsort = "minivfs.files:lsort_main"
vfs-touch = "minivfs.files:touch_main"
vfs-trunc = "minivfs.files:trunc_main"

[tool.hatch.build.targets.wheel]
packages = ["minivfs"]

[tool.hatch.build.targets.sdist]
include = ["minivfs", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
