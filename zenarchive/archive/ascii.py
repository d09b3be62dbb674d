"""ASCII archive backend.

Entries are text lines of the form ``key=type:value``, indented by one tab
per open object::

    [% oCItem 0 0]
        itemInstance=string:ITFO_APPLE
        amount=int:5
        visual=vec3:1.5 0 -2
    []
"""

import math
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from zenarchive.archive.api import ReadArchive, WriteArchive, check_range, to_float32
from zenarchive.archive.header import (
    patch_object_count,
    read_object_count,
    write_header,
    write_object_count,
)
from zenarchive.archive.types import UNNAMED_OBJECT, ArchiveObject, Color, EntryType, Vec3
from zenarchive.exceptions import (
    NumberFormatError,
    SizeMismatchError,
    TextDecodeError,
    TypeMismatchError,
)


OBJECT_END = "[]"

TYPE_NAMES: Mapping[EntryType, str] = MappingProxyType({
    EntryType.STRING: "string",
    EntryType.INTEGER: "int",
    EntryType.FLOAT: "float",
    EntryType.BYTE: "int",
    EntryType.WORD: "int",
    EntryType.BOOL: "bool",
    EntryType.VEC3: "vec3",
    EntryType.COLOR: "color",
    EntryType.RAW: "raw",
    EntryType.RAW_FLOAT: "rawFloat",
    EntryType.ENUM: "enum",
})

_ENTRY_TYPES: Mapping[str, EntryType] = MappingProxyType({
    "string": EntryType.STRING,
    "int": EntryType.INTEGER,
    "float": EntryType.FLOAT,
    "bool": EntryType.BOOL,
    "vec3": EntryType.VEC3,
    "color": EntryType.COLOR,
    "raw": EntryType.RAW,
    "rawFloat": EntryType.RAW_FLOAT,
    "enum": EntryType.ENUM,
})


def format_float(value: float) -> str:
    """Return the shortest text that reads back as the same float32 value."""
    value = to_float32(value)
    if math.isnan(value) or math.isinf(value):
        return repr(value)
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if to_float32(float(text)) == value:
            return text
    return repr(value)


def split_entry(line: str) -> Optional[Tuple[str, str, str]]:
    """Split an entry line into key, type name and value.

    Returns None if the line is not an entry.
    """
    key, sep, rest = line.partition("=")
    if not sep or not key or key.startswith("["):
        return None
    type_name, sep, value = rest.partition(":")
    if not sep:
        return None
    return key, type_name, value


class ReadArchiveAscii(ReadArchive):
    """Reader for ASCII archives."""

    def read_header(self) -> None:
        self._object_count = read_object_count(self._cursor)

    def _read_marker_line(self) -> Optional[str]:
        try:
            return self._cursor.read_line().strip()
        except TextDecodeError:
            return None

    def _read_begin_marker(self) -> Optional[ArchiveObject]:
        line = self._read_marker_line()
        if line is None or len(line) < 3 or line[0] != "[" or line[-1] != "]":
            return None

        parts = line[1:-1].split()
        if len(parts) != 4:
            return None
        object_name, class_name, version, index = parts
        try:
            version, index = int(version), int(index)
        except ValueError:
            return None
        if not 0 <= version <= 0xFFFF or not 0 <= index <= 0xFFFFFFFF:
            return None
        return ArchiveObject(object_name, class_name, version, index)

    def _read_end_marker(self) -> bool:
        return self._read_marker_line() == OBJECT_END

    def _read_entry(self, expected: EntryType) -> Tuple[str, int]:
        """Read the next entry line and return its value text and offset."""
        position = self._cursor.tell()
        line = self._cursor.read_line()
        entry = split_entry(line)
        if entry is None:
            raise TypeMismatchError(expected, line, position)

        _, type_name, value = entry
        if type_name != TYPE_NAMES[expected]:
            raise TypeMismatchError(expected, _ENTRY_TYPES.get(type_name, type_name), position)
        return value, position

    def _read_number(self, expected: EntryType) -> int:
        value, position = self._read_entry(expected)
        return _parse_int(value, position)

    def _read_numbers(self, expected: EntryType, parse, count: Optional[int]) -> list:
        value, position = self._read_entry(expected)
        parts = value.split()
        if count is not None and len(parts) != count:
            raise NumberFormatError(value, position)
        return [parse(part, position) for part in parts]

    def read_string(self) -> str:
        value, _ = self._read_entry(EntryType.STRING)
        return value

    def read_int(self) -> int:
        return self._read_number(EntryType.INTEGER)

    def read_float(self) -> float:
        value, position = self._read_entry(EntryType.FLOAT)
        return _parse_float(value, position)

    def read_byte(self) -> int:
        return self._read_number(EntryType.BYTE) & 0xFF

    def read_word(self) -> int:
        return self._read_number(EntryType.WORD) & 0xFFFF

    def read_enum(self) -> int:
        return self._read_number(EntryType.ENUM) & 0xFFFFFFFF

    def read_bool(self) -> bool:
        return self._read_number(EntryType.BOOL) != 0

    def read_color(self) -> Color:
        return Color(*self._read_numbers(EntryType.COLOR, _parse_int, 4))

    def read_vec3(self) -> Vec3:
        return Vec3(*self._read_numbers(EntryType.VEC3, _parse_float, 3))

    def read_raw(self, size: int) -> bytes:
        value, position = self._read_entry(EntryType.RAW)
        try:
            data = bytes.fromhex(value)
        except ValueError as e:
            raise NumberFormatError(value, position, e)
        if len(data) != size:
            raise SizeMismatchError(size, len(data), position)
        return data

    def read_raw_float(self) -> List[float]:
        return self._read_numbers(EntryType.RAW_FLOAT, _parse_float, None)

    def skip_entry(self) -> None:
        self._cursor.skip_line()


def _parse_int(text: str, position: int) -> int:
    try:
        return int(text)
    except ValueError as e:
        raise NumberFormatError(text, position, e)


def _parse_float(text: str, position: int) -> float:
    try:
        return to_float32(float(text))
    except (ValueError, OverflowError) as e:
        raise NumberFormatError(text, position, e)


def _check_name(name: str) -> None:
    if not name or any(c.isspace() for c in name) or "]" in name:
        raise ValueError(f"object names must be non-empty without whitespace: {name!r}")


class WriteArchiveAscii(WriteArchive):
    """Writer for ASCII archives."""

    def __init__(self, header, cursor, config=None, owns_stream=False):
        self._count_position = 0
        super().__init__(header, cursor, config, owns_stream)

    def write_header(self) -> None:
        write_header(self._cursor, self._header)
        self._count_position = write_object_count(self._cursor)
        self._cursor.write_line("")

    def _finalize(self) -> None:
        patch_object_count(self._cursor, self._count_position, self._next_index)

    def _write_line(self, depth: int, text: str) -> None:
        self._cursor.write_line("\t" * depth + text)

    def write_object_begin(self, object_name: str, class_name: str, version: int) -> int:
        _check_name(object_name or UNNAMED_OBJECT)
        _check_name(class_name)
        return super().write_object_begin(object_name, class_name, version)

    def write_ref(self, object_name: str, index: int) -> None:
        _check_name(object_name or UNNAMED_OBJECT)
        super().write_ref(object_name, index)

    def _write_begin_marker(self, obj: ArchiveObject) -> None:
        self._write_line(
            self.depth,
            f"[{obj.object_name} {obj.class_name} {obj.version} {obj.index}]",
        )

    def _write_end_marker(self) -> None:
        self._write_line(self.depth, OBJECT_END)

    def _write_entry(self, key: str, entry_type: EntryType, value: str) -> None:
        self._ensure_open()
        if not key or "=" in key or key.startswith("[") or any(c.isspace() for c in key):
            raise ValueError(f"invalid entry key: {key!r}")
        if "\n" in value or "\r" in value:
            raise ValueError(f"value for {key!r} spans more than one line")
        self._write_line(self.depth, f"{key}={TYPE_NAMES[entry_type]}:{value}")

    def write_string(self, key: str, value: str) -> None:
        self._write_entry(key, EntryType.STRING, value)

    def write_int(self, key: str, value: int) -> None:
        check_range("int", value, -0x80000000, 0x7FFFFFFF)
        self._write_entry(key, EntryType.INTEGER, str(value))

    def write_float(self, key: str, value: float) -> None:
        self._write_entry(key, EntryType.FLOAT, format_float(value))

    def write_byte(self, key: str, value: int) -> None:
        check_range("byte", value, 0, 0xFF)
        self._write_entry(key, EntryType.BYTE, str(value))

    def write_word(self, key: str, value: int) -> None:
        check_range("word", value, 0, 0xFFFF)
        self._write_entry(key, EntryType.WORD, str(value))

    def write_enum(self, key: str, value: int) -> None:
        check_range("enum", value, 0, 0xFFFFFFFF)
        self._write_entry(key, EntryType.ENUM, str(value))

    def write_bool(self, key: str, value: bool) -> None:
        self._write_entry(key, EntryType.BOOL, "1" if value else "0")

    def write_color(self, key: str, value: Color) -> None:
        for channel in value:
            check_range("color channel", channel, 0, 0xFF)
        self._write_entry(key, EntryType.COLOR, " ".join(str(c) for c in value))

    def write_vec3(self, key: str, value: Vec3) -> None:
        self._write_entry(key, EntryType.VEC3, " ".join(format_float(v) for v in value))

    def write_raw(self, key: str, value: bytes) -> None:
        self._write_entry(key, EntryType.RAW, bytes(value).hex())

    def write_raw_float(self, key: str, values: List[float]) -> None:
        self._write_entry(key, EntryType.RAW_FLOAT, " ".join(format_float(v) for v in values))
