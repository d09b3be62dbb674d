"""Archive header codec.

Every archive starts with the same text prologue regardless of the wire
encoding that follows it::

    ZenGin Archive
    ver 1
    zCArchiverGeneric
    ASCII
    saveGame 0
    date 10.5.2003 18:42:18
    user roeske
    END

The format line selects the backend. The ``date`` and ``user`` lines are
optional. Each backend then reads its own header tail.
"""

from zenarchive.archive.cursor import ByteCursor
from zenarchive.archive.types import ArchiveFormat, ArchiveHeader
from zenarchive.exceptions import MalformedHeaderError, TextDecodeError, UnexpectedEndOfDataError
from zenarchive.logging import get_logger


MAGIC = "ZenGin Archive"
SUPPORTED_ARCHIVE_VERSIONS = (1,)

_logger = get_logger("header")


def _parse_count(value: str, field: str) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise MalformedHeaderError(f"{field} field is not an integer: {value!r}", cause=e)
    if number < 0:
        raise MalformedHeaderError(f"{field} field is negative: {number}")
    return number


def _field(line: str, name: str) -> str:
    prefix = name + " "
    if not line.startswith(prefix):
        raise MalformedHeaderError(f"{name} field missing")
    return line[len(prefix):].strip()


def read_header(cursor: ByteCursor) -> ArchiveHeader:
    """Parse the common archive prologue.

    Raises:
        MalformedHeaderError: If the prologue is not a ZenGin archive header,
            a required field is missing or the version is not supported.
    """
    try:
        return _read_header(cursor)
    except UnexpectedEndOfDataError as e:
        raise MalformedHeaderError("archive ends inside the header", cause=e)
    except TextDecodeError as e:
        raise MalformedHeaderError(f"header is not {e.encoding} text", cause=e)


def _read_header(cursor: ByteCursor) -> ArchiveHeader:
    if cursor.read_line().strip() != MAGIC:
        raise MalformedHeaderError("magic missing")

    version = _parse_count(_field(cursor.read_line().strip(), "ver"), "ver")
    if version not in SUPPORTED_ARCHIVE_VERSIONS:
        raise MalformedHeaderError(f"unsupported archive version: {version}")

    archiver = cursor.read_line().strip()
    if not archiver:
        raise MalformedHeaderError("archiver field missing")

    token = cursor.read_line().strip()
    try:
        archive_format = ArchiveFormat.from_token(token)
    except ValueError as e:
        raise MalformedHeaderError(f"archive format not supported: {token!r}", cause=e)

    save = _parse_count(_field(cursor.read_line().strip(), "saveGame"), "saveGame") != 0

    date = ""
    user = ""
    line = cursor.read_line().strip()
    if line.startswith("date "):
        date = line[len("date "):].strip()
        line = cursor.read_line().strip()
    if line.startswith("user "):
        user = line[len("user "):].strip()
        line = cursor.read_line().strip()
    if line != "END":
        raise MalformedHeaderError("first END missing")

    header = ArchiveHeader(
        version=version,
        archiver=archiver,
        format=archive_format,
        save=save,
        user=user,
        date=date,
    )
    _logger.debug("read %s header (archiver=%s, save=%s)", archive_format.name, archiver, save)
    return header


def write_header(cursor: ByteCursor, header: ArchiveHeader) -> None:
    """Write the common prologue for ``header``."""
    cursor.write_line(MAGIC)
    cursor.write_line(f"ver {header.version}")
    cursor.write_line(header.archiver)
    cursor.write_line(header.format.token)
    cursor.write_line(f"saveGame {1 if header.save else 0}")
    if header.date:
        cursor.write_line(f"date {header.date}")
    if header.user:
        cursor.write_line(f"user {header.user}")
    cursor.write_line("END")


# Wide enough for any u32 object count.
OBJECT_COUNT_WIDTH = 10


def read_object_count(cursor: ByteCursor) -> int:
    """Read the ``objects N`` / ``END`` tail of ASCII and BINARY archives."""
    try:
        count = _parse_count(_field(cursor.read_line().strip(), "objects"), "objects")
        if cursor.read_line().strip() != "END":
            raise MalformedHeaderError("second END missing")
    except UnexpectedEndOfDataError as e:
        raise MalformedHeaderError("archive ends inside the header", cause=e)
    except TextDecodeError as e:
        raise MalformedHeaderError(f"header is not {e.encoding} text", cause=e)
    _logger.debug("header declares %d objects", count)
    return count


def write_object_count(cursor: ByteCursor) -> int:
    """Reserve the ``objects N`` line and return the offset of its number."""
    cursor.write_string("objects ")
    position = cursor.tell()
    cursor.write_line(" " * OBJECT_COUNT_WIDTH)
    cursor.write_line("END")
    return position


def patch_object_count(cursor: ByteCursor, position: int, count: int) -> None:
    """Overwrite the field reserved by :func:`write_object_count`."""
    end = cursor.tell()
    cursor.seek(position)
    cursor.write_string(f"{count:<{OBJECT_COUNT_WIDTH}}")
    cursor.seek(end)
