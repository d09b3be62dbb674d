"""Tests for the reader/writer contract shared by all wire formats."""

import io
import logging

import pytest

from zenarchive.archive.api import to_float32
from zenarchive.archive.service import create_archive
from zenarchive.archive.types import (
    ArchiveFormat,
    AxisAlignedBoundingBox,
    Color,
    EntryType,
    Mat3x3,
    Vec2,
    Vec3,
)
from zenarchive.config import ArchiveConfig
from zenarchive.exceptions import (
    IllegalStateException,
    ObjectDepthExceededError,
    TypeMismatchError,
    UnbalancedObjectError,
)


class TestRoundTrip:
    """Every typed write reads back as the same value."""

    def test_sample(self, sample_archive, reopen, sample_reader):
        archive = reopen(sample_archive)
        sample_reader(archive)
        archive.verify_balanced()
        assert archive.read_object_begin() is None

    @pytest.mark.parametrize(
        "write,read,value",
        [
            ("write_string", "read_string", "Größe § 100%"),
            ("write_string", "read_string", ""),
            ("write_int", "read_int", -0x80000000),
            ("write_int", "read_int", 0x7FFFFFFF),
            ("write_float", "read_float", to_float32(3.14159)),
            ("write_float", "read_float", -0.0),
            ("write_byte", "read_byte", 0),
            ("write_byte", "read_byte", 255),
            ("write_word", "read_word", 0xFFFF),
            ("write_enum", "read_enum", 0xFFFFFFFF),
            ("write_bool", "read_bool", False),
            ("write_bool", "read_bool", True),
            ("write_color", "read_color", Color(255, 0, 128, 7)),
            ("write_vec3", "read_vec3", Vec3(to_float32(0.1), -1e10, to_float32(1e-5))),
            ("write_vec2", "read_vec2", Vec2(to_float32(1 / 3), 2.0)),
            ("write_bbox", "read_bbox", AxisAlignedBoundingBox(Vec3(-1.5, 0.0, 2.0), Vec3(8.0, 9.5, 10.25))),
            ("write_mat3x3", "read_mat3x3", Mat3x3(tuple(to_float32(i * 0.7) for i in range(9)))),
        ],
    )
    def test_value(self, archive_format, build_archive, reopen, write, read, value):
        data = build_archive(archive_format, lambda a: getattr(a, write)("key", value))
        assert getattr(reopen(data), read)() == value

    def test_raw(self, archive_format, build_archive, reopen):
        blob = bytes(range(256))
        data = build_archive(archive_format, lambda a: a.write_raw("blob", blob))
        assert reopen(data).read_raw(256) == blob

    def test_raw_float(self, archive_format, build_archive, reopen):
        values = [to_float32(v) for v in (0.1, 0.2, -7.75)]
        data = build_archive(archive_format, lambda a: a.write_raw_float("f", values))
        assert reopen(data).read_raw_float() == values

    def test_header(self, archive_format, build_archive, reopen):
        archive = reopen(build_archive(archive_format, lambda a: None, save=True))
        assert archive.header.format is archive_format
        assert archive.header.archiver == archive_format.archiver
        assert archive.header.user == "tester"
        assert archive.header.date == "10.5.2003 18:42:18"
        assert archive.is_save_game is True
        assert archive.object_count == 0

    def test_object_count_is_patched(self, sample_archive, reopen):
        assert reopen(sample_archive).object_count == 4


class TestRollback:
    """Failed marker reads leave the cursor where it was."""

    def test_begin_on_entry(self, archive_format, build_archive, reopen):
        archive = reopen(build_archive(archive_format, lambda a: a.write_string("s", "x")))
        start = archive.position
        assert archive.read_object_begin() is None
        assert archive.position == start
        assert archive.read_string() == "x"

    def test_end_on_entry(self, sample_archive, reopen):
        archive = reopen(sample_archive)
        archive.read_object_begin()
        start = archive.position
        assert archive.read_object_end() is False
        assert archive.position == start
        assert archive.read_string() == "Khorinis"

    def test_begin_on_end_marker(self, archive_format, build_archive, reopen):
        def write(a):
            a.write_object_begin("%", "zCVob", 0)
            a.write_object_end()

        archive = reopen(build_archive(archive_format, write))
        archive.read_object_begin()
        start = archive.position
        assert archive.read_object_begin() is None
        assert archive.position == start
        assert archive.read_object_end() is True

    def test_end_on_begin_marker(self, sample_archive, reopen):
        archive = reopen(sample_archive)
        archive.read_object_begin()
        archive.read_string()
        start = archive.position
        assert archive.read_object_end() is False
        assert archive.position == start
        assert archive.read_object_begin().class_name == "zCVob"

    def test_markers_at_end_of_data(self, archive_format, build_archive, reopen):
        archive = reopen(build_archive(archive_format, lambda a: None))
        start = archive.position
        assert archive.read_object_begin() is None
        assert archive.read_object_end() is False
        assert archive.position == start

    def test_end_without_open_object(self, archive_format, build_archive, reopen):
        def write(a):
            a.write_object_begin("%", "zCVob", 0)
            a.write_object_end()

        archive = reopen(build_archive(archive_format, write))
        archive.skip_object()
        assert archive.read_object_end() is False
        assert archive.depth == 0

    def test_truncated_marker(self, archive_format, build_archive, reopen):
        def write(a):
            a.write_object_begin("Truncated", "zCVob", 0)
            a.write_object_end()

        data = build_archive(archive_format, write)
        archive = reopen(data[:-12])
        start = archive.position
        assert archive.read_object_begin() is None
        assert archive.position == start


class TestTypeMismatch:
    def test_int_on_string(self, archive_format, build_archive, reopen):
        archive = reopen(build_archive(archive_format, lambda a: a.write_string("s", "x")))
        with pytest.raises(TypeMismatchError) as exc_info:
            archive.read_int()
        assert exc_info.value.expected is EntryType.INTEGER
        assert exc_info.value.actual is EntryType.STRING
        assert exc_info.value.position is not None

    def test_string_on_bool(self, archive_format, build_archive, reopen):
        archive = reopen(build_archive(archive_format, lambda a: a.write_bool("b", True)))
        with pytest.raises(TypeMismatchError) as exc_info:
            archive.read_string()
        assert exc_info.value.expected is EntryType.STRING
        assert exc_info.value.actual is EntryType.BOOL


class TestBalance:
    def test_balanced_close(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        archive.write_object_begin("%", "zCVob", 0)
        archive.write_object_end()
        archive.close()
        assert archive.depth == 0
        assert archive.closed

    def test_unclosed_object(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        archive.write_object_begin("%", "zCVob", 0)
        archive.write_object_begin("%", "zCVob", 0)
        archive.write_object_end()
        with pytest.raises(UnbalancedObjectError) as exc_info:
            archive.close()
        assert exc_info.value.depth == 1
        assert not archive.closed

    def test_end_without_begin(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        with pytest.raises(UnbalancedObjectError):
            archive.write_object_end()

    def test_reader_verify_balanced(self, sample_archive, reopen):
        archive = reopen(sample_archive)
        archive.read_object_begin()
        with pytest.raises(UnbalancedObjectError) as exc_info:
            archive.verify_balanced()
        assert exc_info.value.depth == 1

    def test_write_after_close(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        archive.close()
        with pytest.raises(IllegalStateException):
            archive.write_int("i", 1)
        with pytest.raises(IllegalStateException):
            archive.write_object_begin("%", "zCVob", 0)

    def test_close_twice(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        archive.close()
        archive.close()

    def test_exit_does_not_mask_error(self, archive_format, config):
        with pytest.raises(RuntimeError):
            with create_archive(io.BytesIO(), archive_format, config) as archive:
                archive.write_object_begin("%", "zCVob", 0)
                raise RuntimeError("boom")


class TestObjects:
    def test_indices_count_up(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        assert archive.write_object_begin("%", "a", 0) == 0
        assert archive.write_object_begin("%", "b", 0) == 1
        archive.write_object_end()
        archive.write_object_end()
        assert archive.write_object_begin("%", "c", 0) == 2
        archive.write_object_end()
        assert archive.object_count == 3

    def test_reference(self, archive_format, build_archive, reopen):
        def write(a):
            a.write_object_begin("%", "zCMaterial", 0)
            a.write_object_end()
            a.write_ref("material", 0)

        archive = reopen(build_archive(archive_format, write))
        assert archive.object_count == 1
        assert not archive.read_object_begin().is_reference
        assert archive.read_object_end()
        ref = archive.read_object_begin()
        assert ref.is_reference
        assert (ref.object_name, ref.index) == ("material", 0)
        assert archive.read_object_end()

    def test_reference_to_unknown_index(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        with pytest.raises(ValueError):
            archive.write_ref("material", 0)

    def test_version_out_of_range(self, archive_format, config):
        archive = create_archive(io.BytesIO(), archive_format, config)
        with pytest.raises(ValueError):
            archive.write_object_begin("%", "zCVob", 0x10000)

    def test_index_past_object_count_warns(self, caplog, reopen):
        data = (
            b"ZenGin Archive\nver 1\nzCArchiverGeneric\nASCII\nsaveGame 0\nEND\n"
            b"objects 1\nEND\n\n[% zCVob 0 5]\n[]\n"
        )
        archive = reopen(data)
        with caplog.at_level(logging.WARNING, logger="zenarchive"):
            obj = archive.read_object_begin()
        assert obj.index == 5
        assert any("has index 5" in r.getMessage() for r in caplog.records)

    def test_depth_limit_writes_nothing(self, archive_format, build_archive, reopen):
        def write(a):
            a.write_object_begin("%", "zCWorld", 0)
            end = a.cursor.tell()
            with pytest.raises(ObjectDepthExceededError):
                a.write_object_begin("%", "zCVob", 0)
            assert a.depth == 1
            assert a.cursor.tell() == end
            a.write_int("i", 1)
            a.write_object_end()

        config = ArchiveConfig(user="tester", date="10.5.2003 18:42:18", max_object_depth=1)
        buffer = io.BytesIO()
        with create_archive(buffer, archive_format, config) as archive:
            write(archive)

        archive = reopen(buffer.getvalue())
        assert archive.read_object_begin().class_name == "zCWorld"
        assert archive.read_int() == 1
        assert archive.read_object_end()
        assert archive.object_count == 1

    def test_begin_marker_at_parent_indentation(self, build_archive):
        def write(a):
            a.write_object_begin("%", "zCWorld", 0)
            a.write_object_begin("%", "zCVob", 0)
            a.write_object_end()
            a.write_object_end()

        text = build_archive(ArchiveFormat.ASCII, write).decode("latin-1")
        assert "\n[% zCWorld 0 0]\n\t[% zCVob 0 1]\n\t[]\n[]\n" in text
