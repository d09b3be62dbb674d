"""Entry types, the type size table and archive data model."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple


class EntryType(IntEnum):
    """One-byte type tags of archive entries."""

    STRING = 0x01
    INTEGER = 0x02
    FLOAT = 0x03
    BYTE = 0x04
    WORD = 0x05
    BOOL = 0x06
    VEC3 = 0x07
    COLOR = 0x08
    RAW = 0x09
    RAW_FLOAT = 0x10
    ENUM = 0x11
    HASH = 0x12


# Fixed payload size per tag; 0 marks a length-prefixed type.
TYPE_SIZES: Mapping[EntryType, int] = MappingProxyType({
    EntryType.STRING: 0,
    EntryType.INTEGER: 4,
    EntryType.FLOAT: 4,
    EntryType.BYTE: 1,
    EntryType.WORD: 2,
    EntryType.BOOL: 4,
    EntryType.VEC3: 12,
    EntryType.COLOR: 4,
    EntryType.RAW: 0,
    EntryType.RAW_FLOAT: 0,
    EntryType.ENUM: 4,
    EntryType.HASH: 4,
})

VARIABLE_SIZE_TYPES = frozenset({EntryType.STRING, EntryType.RAW, EntryType.RAW_FLOAT})


def entry_type_of(tag: int):
    """Map a raw tag byte to an EntryType, or return the byte unchanged."""
    try:
        return EntryType(tag)
    except ValueError:
        return tag


class ArchiveFormat(Enum):
    """Wire encodings of a ZenGin archive."""

    BINARY = "BINARY"
    BINSAFE = "BIN_SAFE"
    ASCII = "ASCII"

    @property
    def token(self) -> str:
        """The format line written into the archive header."""
        return self.value

    @property
    def archiver(self) -> str:
        """The archiver class name that conventionally writes this format."""
        if self is ArchiveFormat.BINSAFE:
            return "zCArchiverBinSafe"
        return "zCArchiverGeneric"

    @classmethod
    def from_token(cls, token: str) -> "ArchiveFormat":
        for fmt in cls:
            if fmt.value == token:
                return fmt
        raise ValueError(f"unknown archive format: {token!r}")


@dataclass(frozen=True)
class ArchiveHeader:
    """The header of a ZenGin archive."""

    version: int
    archiver: str
    format: ArchiveFormat
    save: bool = False
    user: str = ""
    date: str = ""


REFERENCE_CLASS_NAME = "§"
UNNAMED_OBJECT = "%"


@dataclass
class ArchiveObject:
    """The header of an object stored in an archive.

    ``version`` is a 16-bit schema revision hint. ``index`` is the ordinal of
    the object inside its archive. Reference objects reuse the index of the
    object they point to.
    """

    object_name: str
    class_name: str
    version: int
    index: int

    @property
    def is_reference(self) -> bool:
        return self.class_name == REFERENCE_CLASS_NAME


@dataclass
class HashTableEntry:
    """An interned BinSafe key."""

    key: str
    hash: int


@dataclass(frozen=True)
class Vec2:
    x: float = 0.0
    y: float = 0.0

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y))


@dataclass(frozen=True)
class Vec3:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))


@dataclass(frozen=True)
class Color:
    """An RGBA color with one byte per channel."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 255

    def __iter__(self) -> Iterator[int]:
        return iter((self.r, self.g, self.b, self.a))


@dataclass(frozen=True)
class AxisAlignedBoundingBox:
    min: Vec3 = Vec3()
    max: Vec3 = Vec3()


@dataclass(frozen=True)
class Mat3x3:
    """A 3-by-3 float matrix stored as nine row-major values."""

    values: Tuple[float, ...] = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0)

    def __post_init__(self):
        if len(self.values) != 9:
            raise ValueError(f"Mat3x3 needs 9 values, got {len(self.values)}")
        object.__setattr__(self, "values", tuple(self.values))

    def row(self, i: int) -> Tuple[float, float, float]:
        return self.values[i * 3], self.values[i * 3 + 1], self.values[i * 3 + 2]

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)
