"""BINARY archive backend.

Every entry is a one byte type tag followed by its payload. Strings, raw
data and raw float lists carry a u16 length, all other payloads have the
fixed size listed in :data:`~zenarchive.archive.types.TYPE_SIZES`. Entry
keys are not stored.

Objects are framed by string entries: ``"["`` followed by the object name,
class name, u16 version and u32 index opens an object, ``"[]"`` closes it.
"""

import struct
from typing import List, Optional

from zenarchive.archive.api import ReadArchive, WriteArchive, check_range
from zenarchive.archive.header import (
    patch_object_count,
    read_object_count,
    write_header,
    write_object_count,
)
from zenarchive.archive.types import (
    TYPE_SIZES,
    VARIABLE_SIZE_TYPES,
    ArchiveObject,
    Color,
    EntryType,
    Vec3,
    entry_type_of,
)
from zenarchive.exceptions import SizeMismatchError, TypeMismatchError, UnknownEntryTypeError


OBJECT_BEGIN = "["
OBJECT_END = "[]"

MAX_PAYLOAD_SIZE = 0xFFFF


class ReadArchiveBinary(ReadArchive):
    """Reader for BINARY archives."""

    def read_header(self) -> None:
        self._object_count = read_object_count(self._cursor)

    def _read_key(self, expected: Optional[EntryType]) -> None:
        """Consume whatever precedes the type tag of a value entry."""
        pass

    def _expect(self, expected: EntryType) -> int:
        """Check the next entry is of type ``expected`` and return its payload size."""
        self._read_key(expected)
        tag = self._cursor.read_u8()
        if tag != expected:
            raise TypeMismatchError(expected, entry_type_of(tag), self._cursor.tell())
        if expected in VARIABLE_SIZE_TYPES:
            return self._cursor.read_u16()
        return TYPE_SIZES[expected]

    def _read_marker(self, text: str) -> bool:
        if self._cursor.read_u8() != EntryType.STRING:
            return False
        expected = text.encode(self._cursor.encoding)
        if self._cursor.read_u16() != len(expected):
            return False
        return self._cursor.read(len(expected)) == expected

    def _read_marker_name(self) -> str:
        return self._cursor.read_string(self._cursor.read_u16())

    def _read_begin_marker(self) -> Optional[ArchiveObject]:
        if not self._read_marker(OBJECT_BEGIN):
            return None
        object_name = self._read_marker_name()
        class_name = self._read_marker_name()
        version = self._cursor.read_u16()
        index = self._cursor.read_u32()
        return ArchiveObject(object_name, class_name, version, index)

    def _read_end_marker(self) -> bool:
        return self._read_marker(OBJECT_END)

    def read_string(self) -> str:
        return self._cursor.read_string(self._expect(EntryType.STRING))

    def read_int(self) -> int:
        self._expect(EntryType.INTEGER)
        return self._cursor.read_i32()

    def read_float(self) -> float:
        self._expect(EntryType.FLOAT)
        return self._cursor.read_f32()

    def read_byte(self) -> int:
        self._expect(EntryType.BYTE)
        return self._cursor.read_u8()

    def read_word(self) -> int:
        self._expect(EntryType.WORD)
        return self._cursor.read_u16()

    def read_enum(self) -> int:
        self._expect(EntryType.ENUM)
        return self._cursor.read_u32()

    def read_bool(self) -> bool:
        self._expect(EntryType.BOOL)
        return self._cursor.read_u32() != 0

    def read_color(self) -> Color:
        self._expect(EntryType.COLOR)
        b, g, r, a = self._cursor.read(4)
        return Color(r, g, b, a)

    def read_vec3(self) -> Vec3:
        self._expect(EntryType.VEC3)
        return Vec3(*struct.unpack("<3f", self._cursor.read(12)))

    def read_raw(self, size: int) -> bytes:
        length = self._expect(EntryType.RAW)
        if length != size:
            raise SizeMismatchError(size, length, self._cursor.tell())
        return self._cursor.read(length)

    def read_raw_float(self) -> List[float]:
        length = self._expect(EntryType.RAW_FLOAT)
        data = self._cursor.read(length)
        return list(struct.unpack(f"<{length // 4}f", data[: length - length % 4]))

    def skip_entry(self) -> None:
        self._read_key(None)
        position = self._cursor.tell()
        tag = self._cursor.read_u8()
        try:
            entry_type = EntryType(tag)
        except ValueError:
            raise UnknownEntryTypeError(tag, position)

        if entry_type in VARIABLE_SIZE_TYPES:
            self._cursor.skip(self._cursor.read_u16())
        else:
            self._cursor.skip(TYPE_SIZES[entry_type])


class WriteArchiveBinary(WriteArchive):
    """Writer for BINARY archives."""

    def __init__(self, header, cursor, config=None, owns_stream=False):
        self._count_position = 0
        super().__init__(header, cursor, config, owns_stream)

    def write_header(self) -> None:
        write_header(self._cursor, self._header)
        self._count_position = write_object_count(self._cursor)

    def _finalize(self) -> None:
        patch_object_count(self._cursor, self._count_position, self._next_index)

    def _write_key(self, key: str) -> None:
        """Write whatever precedes the type tag of a value entry."""
        pass

    def _check_size(self, data: bytes) -> None:
        if len(data) > MAX_PAYLOAD_SIZE:
            raise ValueError(f"payload of {len(data)} bytes exceeds {MAX_PAYLOAD_SIZE}")

    def _write_sized(self, data: bytes) -> None:
        self._check_size(data)
        self._cursor.write_u16(len(data))
        self._cursor.write(data)

    def _write_entry(self, key: str, entry_type: EntryType, payload: bytes) -> None:
        self._ensure_open()
        if entry_type in VARIABLE_SIZE_TYPES:
            self._check_size(payload)
        self._write_key(key)
        self._cursor.write_u8(entry_type)
        if entry_type in VARIABLE_SIZE_TYPES:
            self._write_sized(payload)
        else:
            self._cursor.write(payload)

    def _write_marker(self, text: str) -> None:
        self._cursor.write_u8(EntryType.STRING)
        self._write_sized(text.encode(self._cursor.encoding))

    def _write_marker_name(self, name: str) -> None:
        self._write_sized(name.encode(self._cursor.encoding))

    def _check_marker(self, obj: ArchiveObject) -> None:
        for name in (obj.object_name, obj.class_name):
            self._check_size(name.encode(self._cursor.encoding))

    def _write_begin_marker(self, obj: ArchiveObject) -> None:
        self._check_marker(obj)
        self._write_marker(OBJECT_BEGIN)
        self._write_marker_name(obj.object_name)
        self._write_marker_name(obj.class_name)
        self._cursor.write_u16(obj.version)
        self._cursor.write_u32(obj.index)

    def _write_end_marker(self) -> None:
        self._write_marker(OBJECT_END)

    def write_string(self, key: str, value: str) -> None:
        self._write_entry(key, EntryType.STRING, value.encode(self._cursor.encoding))

    def write_int(self, key: str, value: int) -> None:
        check_range("int", value, -0x80000000, 0x7FFFFFFF)
        self._write_entry(key, EntryType.INTEGER, struct.pack("<i", value))

    def write_float(self, key: str, value: float) -> None:
        self._write_entry(key, EntryType.FLOAT, struct.pack("<f", value))

    def write_byte(self, key: str, value: int) -> None:
        check_range("byte", value, 0, 0xFF)
        self._write_entry(key, EntryType.BYTE, struct.pack("<B", value))

    def write_word(self, key: str, value: int) -> None:
        check_range("word", value, 0, 0xFFFF)
        self._write_entry(key, EntryType.WORD, struct.pack("<H", value))

    def write_enum(self, key: str, value: int) -> None:
        check_range("enum", value, 0, 0xFFFFFFFF)
        self._write_entry(key, EntryType.ENUM, struct.pack("<I", value))

    def write_bool(self, key: str, value: bool) -> None:
        self._write_entry(key, EntryType.BOOL, struct.pack("<I", 1 if value else 0))

    def write_color(self, key: str, value: Color) -> None:
        for channel in value:
            check_range("color channel", channel, 0, 0xFF)
        self._write_entry(key, EntryType.COLOR, bytes((value.b, value.g, value.r, value.a)))

    def write_vec3(self, key: str, value: Vec3) -> None:
        self._write_entry(key, EntryType.VEC3, struct.pack("<3f", *value))

    def write_raw(self, key: str, value: bytes) -> None:
        self._write_entry(key, EntryType.RAW, bytes(value))

    def write_raw_float(self, key: str, values: List[float]) -> None:
        self._write_entry(key, EntryType.RAW_FLOAT, struct.pack(f"<{len(values)}f", *values))
