"""ZenGin archive codec package."""

from zenarchive.archive.api import ReadArchive, WriteArchive
from zenarchive.archive.types import (
    EntryType,
    TYPE_SIZES,
    ArchiveFormat,
    ArchiveHeader,
    ArchiveObject,
    HashTableEntry,
    Vec2,
    Vec3,
    Color,
    AxisAlignedBoundingBox,
    Mat3x3,
)
from zenarchive.archive.binary import ReadArchiveBinary, WriteArchiveBinary
from zenarchive.archive.binsafe import ReadArchiveBinsafe, WriteArchiveBinsafe, HashTable
from zenarchive.archive.ascii import ReadArchiveAscii, WriteArchiveAscii
from zenarchive.archive.service import open_archive, create_archive

__all__ = [
    "ReadArchive",
    "WriteArchive",
    "EntryType",
    "TYPE_SIZES",
    "ArchiveFormat",
    "ArchiveHeader",
    "ArchiveObject",
    "HashTableEntry",
    "Vec2",
    "Vec3",
    "Color",
    "AxisAlignedBoundingBox",
    "Mat3x3",
    "ReadArchiveBinary",
    "WriteArchiveBinary",
    "ReadArchiveBinsafe",
    "WriteArchiveBinsafe",
    "HashTable",
    "ReadArchiveAscii",
    "WriteArchiveAscii",
    "open_archive",
    "create_archive",
]
