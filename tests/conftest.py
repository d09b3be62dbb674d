"""Shared pytest fixtures for zenarchive tests."""

import io
import logging

import pytest

from zenarchive.archive.service import create_archive, open_archive
from zenarchive.archive.types import (
    ArchiveFormat,
    ArchiveHeader,
    AxisAlignedBoundingBox,
    Color,
    Mat3x3,
    Vec2,
    Vec3,
)
from zenarchive.config import ArchiveConfig
from zenarchive.logging import ArchiveLoggerFactory


SAMPLE_OBJECT_COUNT = 4


def write_sample(archive):
    """Write a small world: a nested object tree using every entry type."""
    archive.write_object_begin("%", "oCWorld", 64513)
    archive.write_string("name", "Khorinis")
    archive.write_object_begin("VobTree", "zCVob", 52224)
    archive.write_int("count", -7)
    archive.write_float("scale", 1.5)
    archive.write_object_begin("child0", "oCItem", 0)
    archive.write_byte("flags", 200)
    archive.write_word("amount", 65535)
    archive.write_enum("kind", 3)
    archive.write_bool("visible", True)
    archive.write_color("tint", Color(10, 20, 30, 40))
    archive.write_object_end()
    archive.write_vec3("position", Vec3(1.0, -2.5, 3.25))
    archive.write_object_end()
    archive.write_vec2("uv", Vec2(0.25, 0.75))
    archive.write_bbox("bounds", AxisAlignedBoundingBox(Vec3(-1.0, -2.0, -3.0), Vec3(4.0, 5.0, 6.0)))
    archive.write_mat3x3("rotation", Mat3x3((1.0, 0.0, 0.0, 0.0, 0.5, 0.0, 0.0, 0.0, 2.0)))
    archive.write_raw("blob", b"\x00\x01\xfe\xff")
    archive.write_string("after", "tail")
    archive.write_object_end()
    archive.write_object_begin("%", "zCWayNet", 1)
    archive.write_int("waypoints", 2)
    archive.write_object_end()


def read_sample(archive):
    """Read back everything written by :func:`write_sample`."""
    world = archive.read_object_begin()
    assert (world.object_name, world.class_name, world.version, world.index) == (
        "%", "oCWorld", 64513, 0,
    )
    assert archive.read_string() == "Khorinis"

    vob = archive.read_object_begin()
    assert (vob.object_name, vob.class_name, vob.version, vob.index) == ("VobTree", "zCVob", 52224, 1)
    assert archive.read_int() == -7
    assert archive.read_float() == 1.5

    item = archive.read_object_begin()
    assert (item.object_name, item.class_name, item.index) == ("child0", "oCItem", 2)
    assert archive.read_byte() == 200
    assert archive.read_word() == 65535
    assert archive.read_enum() == 3
    assert archive.read_bool() is True
    assert archive.read_color() == Color(10, 20, 30, 40)
    assert archive.read_object_end() is True

    assert archive.read_vec3() == Vec3(1.0, -2.5, 3.25)
    assert archive.read_object_end() is True

    assert archive.read_vec2() == Vec2(0.25, 0.75)
    assert archive.read_bbox() == AxisAlignedBoundingBox(Vec3(-1.0, -2.0, -3.0), Vec3(4.0, 5.0, 6.0))
    assert archive.read_mat3x3() == Mat3x3((1.0, 0.0, 0.0, 0.0, 0.5, 0.0, 0.0, 0.0, 2.0))
    assert archive.read_raw(4) == b"\x00\x01\xfe\xff"
    assert archive.read_string() == "tail"
    assert archive.read_object_end() is True

    waynet = archive.read_object_begin()
    assert (waynet.class_name, waynet.version, waynet.index) == ("zCWayNet", 1, 3)
    assert archive.read_int() == 2
    assert archive.read_object_end() is True


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logger changes made by a test."""
    yield
    for logger in ArchiveLoggerFactory.loggers():
        logger.disabled = False
        logger.setLevel(logging.NOTSET)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)


@pytest.fixture
def config():
    """Create an ArchiveConfig with a fixed header date."""
    return ArchiveConfig(user="tester", date="10.5.2003 18:42:18")


@pytest.fixture(
    params=[ArchiveFormat.BINARY, ArchiveFormat.BINSAFE, ArchiveFormat.ASCII],
    ids=["binary", "binsafe", "ascii"],
)
def archive_format(request):
    """Run a test once per wire format."""
    return request.param


@pytest.fixture
def build_archive(config):
    """Return a function writing an archive through a callback into bytes."""

    def build(archive_format, write, save=False):
        buffer = io.BytesIO()
        with create_archive(buffer, archive_format, config, save=save) as archive:
            write(archive)
        return buffer.getvalue()

    return build


@pytest.fixture
def reopen(config):
    """Return a function opening archive bytes with the test config."""

    def reopen_(data):
        return open_archive(data, config)

    return reopen_


@pytest.fixture
def sample_archive(build_archive, archive_format):
    """The sample world encoded in each wire format."""
    return build_archive(archive_format, write_sample)


def make_header(archive_format):
    return ArchiveHeader(
        version=1,
        archiver=archive_format.archiver,
        format=archive_format,
    )


@pytest.fixture
def sample_writer():
    return write_sample


@pytest.fixture
def sample_reader():
    return read_sample


@pytest.fixture
def header_for():
    """Return a function building a minimal header for a wire format."""
    return make_header
