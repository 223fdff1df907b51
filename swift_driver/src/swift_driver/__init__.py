"""Swift storage driver: byte-addressable files on OpenStack Swift large objects."""

__version__ = "0.1.0"
