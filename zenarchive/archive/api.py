"""Archive reader and writer interfaces.

This module defines the contract shared by the three archive backends
(BINARY, BIN_SAFE and ASCII). Higher-level object loaders only ever talk
to these classes; the wire layout is private to each backend.

Reading follows the schema of the object being decoded::

    obj = archive.read_object_begin()
    if obj is not None and obj.class_name == "oCItem":
        name = archive.read_string()
        amount = archive.read_int()
        if not archive.read_object_end():
            archive.skip_object(skip_current=True)

Writing mirrors reading one call for one call::

    archive.write_object_begin("%", "oCItem", 0)
    archive.write_string("itemInstance", "ITFO_APPLE")
    archive.write_int("amount", 5)
    archive.write_object_end()
    archive.close()
"""

import struct
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from zenarchive.archive.boundary import ObjectBoundaryStack
from zenarchive.archive.cursor import ByteCursor
from zenarchive.archive.types import (
    REFERENCE_CLASS_NAME,
    UNNAMED_OBJECT,
    ArchiveHeader,
    ArchiveObject,
    AxisAlignedBoundingBox,
    Color,
    Mat3x3,
    Vec2,
    Vec3,
)
from zenarchive.config import ArchiveConfig
from zenarchive.exceptions import (
    ArchiveException,
    IllegalStateException,
    ObjectDepthExceededError,
    ObjectExpectedError,
    SizeMismatchError,
    UnbalancedObjectError,
    UnexpectedEndOfDataError,
)
from zenarchive.logging import ArchiveLoggerFactory, get_logger


_logger = get_logger("archive")


def to_float32(value: float) -> float:
    """Round ``value`` to the nearest single precision float."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


def check_range(what: str, value: int, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ValueError(f"{what} value {value} outside [{low}, {high}]")
    return value


class ReadArchive(ABC):
    """Reader for ZenGin archives.

    Subclasses set up their own state and then call ``super().__init__``,
    which reads the format-specific header tail.

    Args:
        header: The already parsed common header.
        cursor: Cursor positioned just past the common header.
        config: Codec configuration; defaults to :class:`ArchiveConfig`.
        owns_stream: Close the underlying stream in :meth:`close`.
    """

    def __init__(
        self,
        header: ArchiveHeader,
        cursor: ByteCursor,
        config: ArchiveConfig = None,
        owns_stream: bool = False,
    ):
        self._header = header
        self._cursor = cursor
        self._config = config or ArchiveConfig()
        self._cursor.encoding = self._config.encoding
        self._boundaries = ObjectBoundaryStack(self._config.max_object_depth)
        self._owns_stream = owns_stream
        self._object_count = 0
        self._log = ArchiveLoggerFactory.for_archive("archive", header.format.name, cursor.tell)
        self.read_header()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        if self._owns_stream:
            self._cursor.stream.close()

    @property
    def header(self) -> ArchiveHeader:
        """The header of the archive."""
        return self._header

    @property
    def is_save_game(self) -> bool:
        """Whether this archive holds a save-game."""
        return self._header.save

    @property
    def config(self) -> ArchiveConfig:
        return self._config

    @property
    def object_count(self) -> int:
        """Number of objects the header declares."""
        return self._object_count

    @property
    def depth(self) -> int:
        """Number of objects currently open."""
        return self._boundaries.depth

    @property
    def position(self) -> int:
        """Current offset into the underlying stream."""
        return self._cursor.tell()

    @property
    def cursor(self) -> ByteCursor:
        return self._cursor

    @abstractmethod
    def read_header(self) -> None:
        """Read the header tail of the specific archive format."""
        pass

    def _mark(self):
        return self._cursor.tell()

    def _rollback(self, mark) -> None:
        self._cursor.seek(mark)

    @abstractmethod
    def _read_begin_marker(self) -> Optional[ArchiveObject]:
        """Parse an object begin marker, or return None if none is next."""
        pass

    @abstractmethod
    def _read_end_marker(self) -> bool:
        """Consume an object end marker, or return False if none is next."""
        pass

    def _try_begin(self) -> Tuple[Optional[ArchiveObject], Optional[UnexpectedEndOfDataError]]:
        """Try to open an object, restoring the cursor unless one was opened.

        Returns:
            The opened object or None, and the end-of-data error if the
            stream ended before a marker could be recognised.
        """
        mark = self._mark()
        try:
            obj = self._read_begin_marker()
        except UnexpectedEndOfDataError as e:
            self._rollback(mark)
            return None, e
        except ArchiveException:
            self._rollback(mark)
            raise

        if obj is None:
            self._rollback(mark)
            return None, None

        try:
            self._boundaries.push(obj)
        except ObjectDepthExceededError:
            self._rollback(mark)
            raise

        if not obj.is_reference and self._object_count and obj.index >= self._object_count:
            self._log.warning(
                "object %s:%s has index %d but the header declares %d objects",
                obj.object_name, obj.class_name, obj.index, self._object_count,
            )
        return obj, None

    def _try_end(self) -> Tuple[bool, Optional[UnexpectedEndOfDataError]]:
        mark = self._mark()
        try:
            matched = self._read_end_marker()
        except UnexpectedEndOfDataError as e:
            self._rollback(mark)
            return False, e
        except ArchiveException:
            self._rollback(mark)
            raise

        if not matched:
            self._rollback(mark)
            return False, None

        self._boundaries.pop()
        return True, None

    def read_object_begin(self) -> Optional[ArchiveObject]:
        """Try to read the beginning of a nested object.

        If no object begins at the current position, or the stream ends
        inside the marker, the cursor is restored to where it was before
        the call and ``None`` is returned. The reader can then be used as
        normal.

        Returns:
            The object header, or None.

        Raises:
            ObjectDepthExceededError: If opening the object would exceed
                the configured maximum depth.
            ArchiveException: If a marker is present but its fields are
                invalid, e.g. an interned name that is not in the hash
                table. The cursor is restored before raising.
        """
        if self._cursor.eof():
            return None
        obj, _ = self._try_begin()
        return obj

    def read_object_end(self) -> bool:
        """Try to read the end of the innermost open object.

        If no end marker follows, or no object is open, the cursor is
        restored and ``False`` is returned. An end marker at depth 0 is
        therefore never consumed: ``key=int:42`` followed by ``[]`` only
        reads back as an object end inside an enclosing object.
        """
        if not self._boundaries or self._cursor.eof():
            return False
        matched, _ = self._try_end()
        return matched

    @abstractmethod
    def read_string(self) -> str:
        """Read a string entry.

        Raises:
            TypeMismatchError: If the next entry is not a string.
        """
        pass

    @abstractmethod
    def read_int(self) -> int:
        """Read a signed 32-bit integer entry."""
        pass

    @abstractmethod
    def read_float(self) -> float:
        """Read a single precision float entry."""
        pass

    @abstractmethod
    def read_byte(self) -> int:
        """Read an unsigned byte entry."""
        pass

    @abstractmethod
    def read_word(self) -> int:
        """Read an unsigned 16-bit entry."""
        pass

    @abstractmethod
    def read_enum(self) -> int:
        """Read an unsigned 32-bit enum entry."""
        pass

    @abstractmethod
    def read_bool(self) -> bool:
        """Read a bool entry."""
        pass

    @abstractmethod
    def read_color(self) -> Color:
        """Read an RGBA color entry."""
        pass

    @abstractmethod
    def read_vec3(self) -> Vec3:
        """Read a three component float vector."""
        pass

    @abstractmethod
    def read_raw(self, size: int) -> bytes:
        """Read a raw entry of exactly ``size`` bytes.

        Raises:
            TypeMismatchError: If the next entry is not raw.
            SizeMismatchError: If the entry holds a different number of bytes.
        """
        pass

    @abstractmethod
    def read_raw_float(self) -> List[float]:
        """Read a raw float entry and return all of its values."""
        pass

    def _read_floats(self, count: int) -> List[float]:
        position = self._cursor.tell()
        values = self.read_raw_float()
        if len(values) < count:
            raise SizeMismatchError(count * 4, len(values) * 4, position)
        return values[:count]

    def read_vec2(self) -> Vec2:
        """Read a two component float vector stored as raw floats."""
        return Vec2(*self._read_floats(2))

    def read_bbox(self) -> AxisAlignedBoundingBox:
        """Read a bounding box consisting of two consecutive vec3's."""
        values = self._read_floats(6)
        return AxisAlignedBoundingBox(Vec3(*values[:3]), Vec3(*values[3:]))

    def read_mat3x3(self) -> Mat3x3:
        """Read a 3-by-3 matrix stored as 36 raw bytes."""
        return Mat3x3(struct.unpack("<9f", self.read_raw(36)))

    @abstractmethod
    def skip_entry(self) -> None:
        """Consume the next entry without interpreting it."""
        pass

    def skip_object(self, skip_current: bool = False) -> None:
        """Skip an object and all of its children.

        Args:
            skip_current: If ``False`` skip the next object in the archive,
                otherwise skip the rest of the object currently being read.

        Raises:
            ObjectExpectedError: If there is no object to skip.
            UnexpectedEndOfDataError: If the archive ends inside the object.
        """
        if skip_current:
            if not self._boundaries:
                raise ObjectExpectedError("no object is currently open")
        else:
            obj, truncated = None, None
            if not self._cursor.eof():
                obj, truncated = self._try_begin()
            if truncated is not None:
                raise truncated
            if obj is None:
                raise ObjectExpectedError(
                    f"expected an object begin at offset {self._cursor.tell()}"
                )

        target = self._boundaries.depth - 1
        while self._boundaries.depth > target:
            obj, truncated = self._try_begin()
            if obj is not None:
                continue
            if truncated is None:
                closed, truncated = self._try_end()
                if closed:
                    continue
            if truncated is not None:
                raise truncated
            self.skip_entry()

    def verify_balanced(self) -> None:
        """Check that every object read so far has been closed.

        Raises:
            UnbalancedObjectError: If objects are still open.
        """
        if self._boundaries.depth != 0:
            raise UnbalancedObjectError(
                f"{self._boundaries.depth} object(s) still open", self._boundaries.depth
            )


class WriteArchive(ABC):
    """Writer for ZenGin archives.

    Subclasses set up their own state and then call ``super().__init__``,
    which writes the archive header.
    """

    def __init__(
        self,
        header: ArchiveHeader,
        cursor: ByteCursor,
        config: ArchiveConfig = None,
        owns_stream: bool = False,
    ):
        self._header = header
        self._cursor = cursor
        self._config = config or ArchiveConfig()
        self._cursor.encoding = self._config.encoding
        self._boundaries = ObjectBoundaryStack(self._config.max_object_depth)
        self._owns_stream = owns_stream
        self._next_index = 0
        self._closed = False
        self.write_header()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        elif self._owns_stream:
            self._cursor.stream.close()

    @property
    def header(self) -> ArchiveHeader:
        return self._header

    @property
    def config(self) -> ArchiveConfig:
        return self._config

    @property
    def depth(self) -> int:
        return self._boundaries.depth

    @property
    def object_count(self) -> int:
        """Number of objects written so far."""
        return self._next_index

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def cursor(self) -> ByteCursor:
        return self._cursor

    @abstractmethod
    def write_header(self) -> None:
        """Write the common header and the format-specific tail."""
        pass

    @abstractmethod
    def _write_begin_marker(self, obj: ArchiveObject) -> None:
        """Write the begin marker of ``obj``.

        Must raise before writing anything if the marker cannot be stored.
        """
        pass

    @abstractmethod
    def _write_end_marker(self) -> None:
        pass

    @abstractmethod
    def _finalize(self) -> None:
        """Back-patch header fields once everything has been written."""
        pass

    def _ensure_open(self) -> None:
        if self._closed:
            raise IllegalStateException("archive is already closed")

    def write_object_begin(self, object_name: str, class_name: str, version: int) -> int:
        """Open a new object.

        Args:
            object_name: Name of the slot the object is stored in; empty
                names are written as ``%``.
            class_name: Class of the object.
            version: 16-bit schema revision hint.

        Returns:
            The index assigned to the object.
        """
        self._ensure_open()
        check_range("object version", version, 0, 0xFFFF)
        obj = ArchiveObject(object_name or UNNAMED_OBJECT, class_name, version, self._next_index)
        self._boundaries.check_room()
        self._write_begin_marker(obj)
        self._boundaries.push(obj)
        self._next_index += 1
        return obj.index

    def write_ref(self, object_name: str, index: int) -> None:
        """Write a reference to an object written earlier in this archive."""
        self._ensure_open()
        if not 0 <= index < self._next_index:
            raise ValueError(f"no object with index {index} has been written")
        obj = ArchiveObject(object_name or UNNAMED_OBJECT, REFERENCE_CLASS_NAME, 0, index)
        self._boundaries.check_room()
        self._write_begin_marker(obj)
        self._boundaries.push(obj)
        self.write_object_end()

    def write_object_end(self) -> None:
        """Close the innermost open object.

        Raises:
            UnbalancedObjectError: If no object is open.
        """
        self._ensure_open()
        self._boundaries.pop()
        self._write_end_marker()

    @abstractmethod
    def write_string(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def write_int(self, key: str, value: int) -> None:
        pass

    @abstractmethod
    def write_float(self, key: str, value: float) -> None:
        pass

    @abstractmethod
    def write_byte(self, key: str, value: int) -> None:
        pass

    @abstractmethod
    def write_word(self, key: str, value: int) -> None:
        pass

    @abstractmethod
    def write_enum(self, key: str, value: int) -> None:
        pass

    @abstractmethod
    def write_bool(self, key: str, value: bool) -> None:
        pass

    @abstractmethod
    def write_color(self, key: str, value: Color) -> None:
        pass

    @abstractmethod
    def write_vec3(self, key: str, value: Vec3) -> None:
        pass

    @abstractmethod
    def write_raw(self, key: str, value: bytes) -> None:
        pass

    @abstractmethod
    def write_raw_float(self, key: str, values: List[float]) -> None:
        pass

    def write_vec2(self, key: str, value: Vec2) -> None:
        self.write_raw_float(key, list(value))

    def write_bbox(self, key: str, value: AxisAlignedBoundingBox) -> None:
        self.write_raw_float(key, [*value.min, *value.max])

    def write_mat3x3(self, key: str, value: Mat3x3) -> None:
        self.write_raw(key, struct.pack("<9f", *value.values))

    def close(self) -> None:
        """Finalize the archive.

        Raises:
            UnbalancedObjectError: If objects are still open.
        """
        if self._closed:
            return
        if self._boundaries.depth != 0:
            raise UnbalancedObjectError(
                f"{self._boundaries.depth} object(s) were never closed",
                self._boundaries.depth,
            )
        self._finalize()
        self._cursor.flush()
        self._closed = True
        _logger.debug("closed %s archive with %d objects", self._header.format.name, self._next_index)
        if self._owns_stream:
            self._cursor.stream.close()
