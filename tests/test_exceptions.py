"""Unit tests for zenarchive.exceptions module."""

import pytest

from zenarchive.archive.types import EntryType
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


class TestArchiveException:
    """Tests for ArchiveException base class."""

    def test_create_with_message(self):
        ex = ArchiveException("test message")
        assert str(ex) == "test message"
        assert ex.cause is None

    def test_create_with_message_and_cause(self):
        cause = ValueError("original error")
        ex = ArchiveException("wrapper message", cause=cause)
        assert str(ex) == "wrapper message"
        assert ex.cause is cause

    def test_create_empty(self):
        ex = ArchiveException()
        assert str(ex) == ""
        assert ex.cause is None

    def test_inheritance(self):
        assert isinstance(ArchiveException("test"), Exception)


class TestHierarchy:
    """Every codec error is an ArchiveException."""

    @pytest.mark.parametrize(
        "ex",
        [
            IllegalStateException("closed"),
            ConfigurationException("bad"),
            MalformedHeaderError("magic missing"),
            TypeMismatchError(EntryType.INTEGER, EntryType.STRING, 12),
            SizeMismatchError(36, 12, 40),
            HashIndexOutOfRangeError(5, 2, 100),
            HashMismatchError("mismatch"),
            HashTableOverflowError("full"),
            UnbalancedObjectError("open", 1),
            UnexpectedEndOfDataError(4, 1, 20),
            TextDecodeError("cp1250", 9),
            NumberFormatError("abc", 3),
            UnknownEntryTypeError(0x42, 7),
            ObjectExpectedError("nothing"),
            ObjectDepthExceededError(10),
        ],
    )
    def test_is_archive_exception(self, ex):
        assert isinstance(ex, ArchiveException)


class TestTypeMismatchError:
    """Tests for TypeMismatchError."""

    def test_fields(self):
        ex = TypeMismatchError(EntryType.STRING, EntryType.BOOL, 42)
        assert ex.expected is EntryType.STRING
        assert ex.actual is EntryType.BOOL
        assert ex.position == 42

    def test_message_names_types(self):
        ex = TypeMismatchError(EntryType.INTEGER, EntryType.STRING, 17)
        assert "expected INTEGER" in str(ex)
        assert "got STRING" in str(ex)
        assert "offset 17" in str(ex)

    def test_unknown_tag_in_message(self):
        ex = TypeMismatchError(EntryType.INTEGER, 0x7F)
        assert "0x7F" in str(ex)
        assert ex.position is None
        assert "offset" not in str(ex)

    def test_text_actual(self):
        ex = TypeMismatchError(EntryType.INTEGER, "[% zCVob 0 0]", 3)
        assert "'[% zCVob 0 0]'" in str(ex)


class TestSizeMismatchError:
    def test_fields(self):
        ex = SizeMismatchError(36, 12, 5)
        assert (ex.expected, ex.actual, ex.position) == (36, 12, 5)
        assert "requested 36 bytes" in str(ex)


class TestHashIndexOutOfRangeError:
    def test_fields(self):
        ex = HashIndexOutOfRangeError(9, 3, 64)
        assert ex.index == 9
        assert ex.table_size == 3
        assert ex.position == 64
        assert "index 9" in str(ex)


class TestUnbalancedObjectError:
    def test_depth(self):
        ex = UnbalancedObjectError("2 object(s) were never closed", 2)
        assert ex.depth == 2
        assert str(ex) == "2 object(s) were never closed"

    def test_default_depth(self):
        assert UnbalancedObjectError("x").depth == 0


class TestUnexpectedEndOfDataError:
    def test_fields(self):
        ex = UnexpectedEndOfDataError(4, 2, 10)
        assert (ex.requested, ex.available, ex.position) == (4, 2, 10)
        assert "needed 4 bytes" in str(ex)


class TestTextDecodeError:
    def test_fields(self):
        cause = UnicodeDecodeError("cp1250", b"\x81", 0, 1, "undefined")
        ex = TextDecodeError("cp1250", 13, cause)
        assert ex.encoding == "cp1250"
        assert ex.position == 13
        assert ex.cause is cause
        assert "cp1250" in str(ex)
        assert "offset 13" in str(ex)


class TestNumberFormatError:
    def test_fields(self):
        cause = ValueError("bad")
        ex = NumberFormatError("4x2", 12, cause)
        assert ex.text == "4x2"
        assert ex.position == 12
        assert ex.cause is cause
        assert "'4x2'" in str(ex)


class TestUnknownEntryTypeError:
    def test_fields(self):
        ex = UnknownEntryTypeError(0x0A, 8)
        assert ex.tag == 0x0A
        assert ex.position == 8
        assert "0x0A" in str(ex)


class TestObjectDepthExceededError:
    def test_fields(self):
        ex = ObjectDepthExceededError(100)
        assert ex.max_depth == 100
        assert "100" in str(ex)
