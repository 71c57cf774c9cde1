"""A small block-based file system stored in a single image file, with command-line tools."""

__version__ = "0.1.0"