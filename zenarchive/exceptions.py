"""ZenGin archive exceptions.

This module defines the exception hierarchy for the zenarchive codec.
All exceptions inherit from :class:`ArchiveException`.

Example:
    Handling archive exceptions::

        from zenarchive.exceptions import (
            ArchiveException,
            MalformedHeaderError,
            TypeMismatchError,
        )

        try:
            archive = open_archive("world.zen")
            value = archive.read_int()
        except MalformedHeaderError:
            print("Not a ZenGin archive")
        except TypeMismatchError as e:
            print(f"Expected {e.expected}, found {e.actual} at {e.position}")
        except ArchiveException as e:
            print(f"Archive error: {e}")
"""

from typing import Any, Optional


def _describe(tag: Any) -> str:
    name = getattr(tag, "name", None)
    if name is not None:
        return name
    if isinstance(tag, int):
        return f"0x{tag:02X}"
    return repr(tag)


def _at(position: Optional[int]) -> str:
    return f" at offset {position}" if position is not None else ""


class ArchiveException(Exception):
    """Base class for all zenarchive exceptions.

    Args:
        message: The error message describing the exception.
        cause: The underlying exception that caused this error, if any.

    Attributes:
        cause: The underlying cause of this exception, if any.
    """

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class IllegalStateException(ArchiveException):
    """Raised when an operation is invoked on an archive in the wrong state.

    Example:
        - Writing to an archive after it was closed
    """
    pass


class ConfigurationException(ArchiveException):
    """Raised when an :class:`~zenarchive.config.ArchiveConfig` is invalid.

    Example:
        - Unknown text encoding
        - Non-positive maximum object depth
        - Unsupported BinSafe revision
    """
    pass


class MalformedHeaderError(ArchiveException):
    """Raised when the archive header cannot be parsed.

    Example:
        - The ``ZenGin Archive`` magic line is missing
        - Unknown format token (not ``ASCII``, ``BINARY`` or ``BIN_SAFE``)
        - A required field such as ``ver`` or ``saveGame`` is absent
        - The declared version is not supported
    """
    pass


class TypeMismatchError(ArchiveException):
    """Raised when a typed read finds an entry of a different type.

    Args:
        expected: The entry type implied by the read call.
        actual: The entry type found on the wire. This is an
            :class:`~zenarchive.archive.types.EntryType` where the tag is
            known, otherwise the raw tag value or text.
        position: Stream offset just past the offending type tag.
    """

    def __init__(self, expected: Any, actual: Any, position: Optional[int] = None):
        super().__init__(
            f"type mismatch: expected {_describe(expected)}, "
            f"got {_describe(actual)}{_at(position)}"
        )
        self.expected = expected
        self.actual = actual
        self.position = position


class SizeMismatchError(ArchiveException):
    """Raised when a raw entry's declared length differs from the requested one."""

    def __init__(self, expected: int, actual: int, position: Optional[int] = None):
        super().__init__(
            f"size mismatch: requested {expected} bytes, "
            f"entry holds {actual}{_at(position)}"
        )
        self.expected = expected
        self.actual = actual
        self.position = position


class HashIndexOutOfRangeError(ArchiveException):
    """Raised when a BinSafe key back-reference points past the hash table."""

    def __init__(self, index: int, table_size: int, position: Optional[int] = None):
        super().__init__(
            f"hash table index {index} out of range "
            f"(table holds {table_size} keys){_at(position)}"
        )
        self.index = index
        self.table_size = table_size
        self.position = position


class HashMismatchError(ArchiveException):
    """Raised under the STRICT policy when a redundant key hash disagrees."""
    pass


class HashTableOverflowError(ArchiveException):
    """Raised when a BinSafe writer runs out of 16-bit key references."""
    pass


class UnbalancedObjectError(ArchiveException):
    """Raised when object begin and end markers do not pair up.

    Attributes:
        depth: The boundary stack depth at the time of the check.
    """

    def __init__(self, message: str, depth: int = 0):
        super().__init__(message)
        self.depth = depth


class UnexpectedEndOfDataError(ArchiveException):
    """Raised when the stream ends in the middle of an entry."""

    def __init__(self, requested: int, available: int, position: Optional[int] = None):
        super().__init__(
            f"unexpected end of data: needed {requested} bytes, "
            f"{available} available{_at(position)}"
        )
        self.requested = requested
        self.available = available
        self.position = position


class TextDecodeError(ArchiveException):
    """Raised when stored text is not valid in the configured encoding."""

    def __init__(self, encoding: str, position: Optional[int] = None, cause: Exception = None):
        super().__init__(f"text is not valid {encoding}{_at(position)}", cause)
        self.encoding = encoding
        self.position = position


class NumberFormatError(ArchiveException):
    """Raised when ASCII numeric text cannot be converted."""

    def __init__(self, text: str, position: Optional[int] = None, cause: Exception = None):
        super().__init__(f"invalid numeric value {text!r}{_at(position)}", cause)
        self.text = text
        self.position = position


class UnknownEntryTypeError(ArchiveException):
    """Raised when an entry carries a tag missing from the entry type table."""

    def __init__(self, tag: int, position: Optional[int] = None):
        super().__init__(f"unknown entry type 0x{tag:02X}{_at(position)}")
        self.tag = tag
        self.position = position


class ObjectExpectedError(ArchiveException):
    """Raised when ``skip_object`` finds no object to skip."""
    pass


class ObjectDepthExceededError(ArchiveException):
    """Raised when nesting goes past the configured maximum object depth."""

    def __init__(self, max_depth: int):
        super().__init__(f"object nesting exceeds the maximum depth of {max_depth}")
        self.max_depth = max_depth
