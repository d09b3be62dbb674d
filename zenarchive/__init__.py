"""ZenGin archive reader and writer."""

from zenarchive.archive import (
    ReadArchive,
    WriteArchive,
    EntryType,
    ArchiveFormat,
    ArchiveHeader,
    ArchiveObject,
    Vec2,
    Vec3,
    Color,
    AxisAlignedBoundingBox,
    Mat3x3,
    open_archive,
    create_archive,
)
from zenarchive.config import ArchiveConfig, HashCheckPolicy
from zenarchive.exceptions import (
    ArchiveException,
    IllegalStateException,
    ConfigurationException,
    MalformedHeaderError,
    TypeMismatchError,
    SizeMismatchError,
    HashIndexOutOfRangeError,
    HashMismatchError,
    HashTableOverflowError,
    UnbalancedObjectError,
    UnexpectedEndOfDataError,
    TextDecodeError,
    NumberFormatError,
    UnknownEntryTypeError,
    ObjectExpectedError,
    ObjectDepthExceededError,
)
from zenarchive.logging import configure_logging, get_logger, set_level, silenced

__all__ = [
    # Archives
    "ReadArchive",
    "WriteArchive",
    "open_archive",
    "create_archive",
    # Data model
    "EntryType",
    "ArchiveFormat",
    "ArchiveHeader",
    "ArchiveObject",
    "Vec2",
    "Vec3",
    "Color",
    "AxisAlignedBoundingBox",
    "Mat3x3",
    # Configuration
    "ArchiveConfig",
    "HashCheckPolicy",
    # Exceptions
    "ArchiveException",
    "IllegalStateException",
    "ConfigurationException",
    "MalformedHeaderError",
    "TypeMismatchError",
    "SizeMismatchError",
    "HashIndexOutOfRangeError",
    "HashMismatchError",
    "HashTableOverflowError",
    "UnbalancedObjectError",
    "UnexpectedEndOfDataError",
    "TextDecodeError",
    "NumberFormatError",
    "UnknownEntryTypeError",
    "ObjectExpectedError",
    "ObjectDepthExceededError",
    # Logging
    "configure_logging",
    "get_logger",
    "set_level",
    "silenced",
]

__version__ = "0.1.0"
