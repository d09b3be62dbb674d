"""BIN_SAFE archive backend.

BinSafe archives use the BINARY payload layout but prefix every value entry
with its key. Keys are interned: the first use of a key stores its text and
hash and appends it to the archive's hash table, later uses only store the
table index::

    0x12 | 0xFFFF | u16 length | key bytes | u32 hash | tag | payload
    0x12 | u16 index | [0x12 | u32 hash] | tag | payload

The bracketed redundant hash is written by revision 2 archives for
back-references only. Object markers are bare string entries whose object
and class names are interned the same way.
"""

import hashlib
from typing import Dict, List, Optional, Tuple

from zenarchive.archive.binary import ReadArchiveBinary, WriteArchiveBinary
from zenarchive.archive.header import write_header
from zenarchive.archive.types import EntryType, HashTableEntry, entry_type_of
from zenarchive.config import SUPPORTED_BINSAFE_VERSIONS, HashCheckPolicy
from zenarchive.exceptions import (
    HashIndexOutOfRangeError,
    HashMismatchError,
    HashTableOverflowError,
    MalformedHeaderError,
    TypeMismatchError,
    UnexpectedEndOfDataError,
)
from zenarchive.logging import ArchiveLoggerFactory, get_logger


NEW_KEY = 0xFFFF
MAX_KEYS = 0xFFFE

_logger = get_logger("binsafe")


def key_hash(key: str, encoding: str = "latin-1") -> int:
    """Compute the 32-bit hash stored next to interned keys."""
    return int(hashlib.md5(key.encode(encoding)).hexdigest()[:8], 16)


class HashTable:
    """Append-only table of interned keys.

    Index ``i`` keeps resolving to the same key for the lifetime of the
    table. The only way to remove entries is :meth:`truncate`, which undoes
    definitions made by a rolled-back marker read.
    """

    def __init__(self):
        self._entries: List[HashTableEntry] = []

    def append(self, entry: HashTableEntry) -> int:
        self._entries.append(entry)
        return len(self._entries) - 1

    def truncate(self, length: int) -> None:
        del self._entries[length:]

    def entries(self) -> Tuple[HashTableEntry, ...]:
        return tuple(self._entries)

    def __getitem__(self, index: int) -> HashTableEntry:
        return self._entries[index]

    def __len__(self) -> int:
        return len(self._entries)


class ReadArchiveBinsafe(ReadArchiveBinary):
    """Reader for BIN_SAFE archives."""

    def __init__(self, header, cursor, config=None, owns_stream=False):
        self._hash_table = HashTable()
        self._bs_version = 0
        self._current_key: Optional[HashTableEntry] = None
        self._warnings: List[str] = []
        self._hash_log = ArchiveLoggerFactory.for_archive("binsafe", "BINSAFE", cursor.tell)
        super().__init__(header, cursor, config, owns_stream)

    @property
    def bs_version(self) -> int:
        """The BinSafe revision from the header."""
        return self._bs_version

    @property
    def hash_table(self) -> HashTable:
        return self._hash_table

    @property
    def warnings(self) -> List[str]:
        """Redundant hash mismatches seen under the WARN policy."""
        return self._warnings

    def read_header(self) -> None:
        try:
            self._bs_version = self._cursor.read_u32()
            self._object_count = self._cursor.read_u32()
        except UnexpectedEndOfDataError as e:
            raise MalformedHeaderError("archive ends inside the BinSafe header", cause=e)

        if self._bs_version not in SUPPORTED_BINSAFE_VERSIONS:
            raise MalformedHeaderError(f"unsupported BinSafe version: {self._bs_version}")
        _logger.debug(
            "BinSafe revision %d, header declares %d objects",
            self._bs_version, self._object_count,
        )

    def _mark(self):
        return self._cursor.tell(), len(self._hash_table)

    def _rollback(self, mark) -> None:
        position, table_size = mark
        self._cursor.seek(position)
        self._hash_table.truncate(table_size)

    def _read_key_ref(self) -> Tuple[HashTableEntry, bool]:
        """Resolve an interned key reference.

        Returns:
            The table entry and whether it was defined just now.
        """
        position = self._cursor.tell()
        index = self._cursor.read_u16()
        if index == NEW_KEY:
            key = self._cursor.read_string(self._cursor.read_u16())
            entry = HashTableEntry(key, self._cursor.read_u32())
            self._hash_table.append(entry)
            return entry, True

        if index >= len(self._hash_table):
            raise HashIndexOutOfRangeError(index, len(self._hash_table), position)
        return self._hash_table[index], False

    def _read_marker_name(self) -> str:
        entry, _ = self._read_key_ref()
        return entry.key

    def _read_key(self, expected: Optional[EntryType]) -> None:
        tag = self._cursor.read_u8()
        if tag != EntryType.HASH:
            raise TypeMismatchError(
                expected if expected is not None else EntryType.HASH,
                entry_type_of(tag),
                self._cursor.tell(),
            )

        self._current_key, defined = self._read_key_ref()
        if not defined and self._bs_version >= 2:
            self.skip_optional_hash()

    def assure_entry(self, expected: EntryType) -> int:
        """Resolve the key of the next entry and check its type tag.

        Returns:
            The payload size of the entry.

        Raises:
            HashIndexOutOfRangeError: If the key refers past the hash table.
            TypeMismatchError: If the entry is not of type ``expected``.
        """
        return self._expect(expected)

    def skip_optional_hash(self) -> None:
        """Consume the redundant hash of a key back-reference, if present."""
        if self._cursor.peek_u8() != EntryType.HASH:
            return

        self._cursor.skip(1)
        position = self._cursor.tell()
        stored = self._cursor.read_u32()
        policy = self._config.hash_check_policy
        entry = self._current_key
        if policy is HashCheckPolicy.IGNORE or entry is None or stored == entry.hash:
            return

        message = (
            f"hash 0x{stored:08X} for key {entry.key!r} at offset {position} "
            f"does not match the table (0x{entry.hash:08X})"
        )
        if policy is HashCheckPolicy.STRICT:
            raise HashMismatchError(message)
        self._hash_log.warning(message)
        self._warnings.append(message)


class WriteArchiveBinsafe(WriteArchiveBinary):
    """Writer for BIN_SAFE archives."""

    def __init__(self, header, cursor, config=None, owns_stream=False):
        self._key_indices: Dict[str, int] = {}
        super().__init__(header, cursor, config, owns_stream)

    @property
    def key_count(self) -> int:
        """Number of distinct keys interned so far."""
        return len(self._key_indices)

    def write_header(self) -> None:
        write_header(self._cursor, self._header)
        self._cursor.write_u32(self._config.binsafe_version)
        self._count_position = self._cursor.tell()
        self._cursor.write_u32(0)

    def _finalize(self) -> None:
        end = self._cursor.tell()
        self._cursor.seek(self._count_position)
        self._cursor.write_u32(self._next_index)
        self._cursor.seek(end)

    def _check_keys(self, *keys: str) -> None:
        """Raise before anything is written if ``keys`` cannot be interned."""
        new_keys = {key for key in keys if key not in self._key_indices}
        for key in new_keys:
            self._check_size(key.encode(self._cursor.encoding))
        if len(self._key_indices) + len(new_keys) > MAX_KEYS:
            raise HashTableOverflowError(f"more than {MAX_KEYS} distinct keys")

    def _write_key_ref(self, key: str) -> bool:
        """Write an interned key reference and return whether it is a back-reference."""
        index = self._key_indices.get(key)
        if index is not None:
            self._cursor.write_u16(index)
            return True

        self._cursor.write_u16(NEW_KEY)
        self._write_sized(key.encode(self._cursor.encoding))
        self._cursor.write_u32(key_hash(key, self._cursor.encoding))
        self._key_indices[key] = len(self._key_indices)
        return False

    def _check_marker(self, obj) -> None:
        self._check_keys(obj.object_name, obj.class_name)

    def _write_marker_name(self, name: str) -> None:
        self._write_key_ref(name)

    def _write_key(self, key: str) -> None:
        self._check_keys(key)
        self._cursor.write_u8(EntryType.HASH)
        if self._write_key_ref(key) and self._config.binsafe_version >= 2:
            self._cursor.write_u8(EntryType.HASH)
            self._cursor.write_u32(key_hash(key, self._cursor.encoding))
