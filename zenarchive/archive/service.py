"""Opening and creating archives.

Example:
    Reading an archive from disk::

        from zenarchive import open_archive

        with open_archive("world.zen") as archive:
            obj = archive.read_object_begin()

    Writing an archive into memory::

        import io
        from zenarchive import ArchiveFormat, create_archive

        buffer = io.BytesIO()
        with create_archive(buffer, ArchiveFormat.BINSAFE) as archive:
            archive.write_object_begin("%", "zCWorld", 0)
            archive.write_object_end()
"""

import io
import os
from datetime import datetime
from types import MappingProxyType
from typing import BinaryIO, Mapping, Tuple, Type, Union

from zenarchive.archive.api import ReadArchive, WriteArchive
from zenarchive.archive.ascii import ReadArchiveAscii, WriteArchiveAscii
from zenarchive.archive.binary import ReadArchiveBinary, WriteArchiveBinary
from zenarchive.archive.binsafe import ReadArchiveBinsafe, WriteArchiveBinsafe
from zenarchive.archive.cursor import ByteCursor
from zenarchive.archive.header import read_header
from zenarchive.archive.types import ArchiveFormat, ArchiveHeader
from zenarchive.config import ArchiveConfig
from zenarchive.logging import get_logger


DATE_FORMAT = "%d.%m.%Y %H:%M:%S"

_READERS: Mapping[ArchiveFormat, Type[ReadArchive]] = MappingProxyType({
    ArchiveFormat.BINARY: ReadArchiveBinary,
    ArchiveFormat.BINSAFE: ReadArchiveBinsafe,
    ArchiveFormat.ASCII: ReadArchiveAscii,
})

_WRITERS: Mapping[ArchiveFormat, Type[WriteArchive]] = MappingProxyType({
    ArchiveFormat.BINARY: WriteArchiveBinary,
    ArchiveFormat.BINSAFE: WriteArchiveBinsafe,
    ArchiveFormat.ASCII: WriteArchiveAscii,
})

_logger = get_logger("service")

Source = Union[bytes, bytearray, memoryview, str, os.PathLike, BinaryIO]


def _open_stream(target, mode: str) -> Tuple[BinaryIO, bool]:
    if isinstance(target, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(target)), True
    if isinstance(target, (str, os.PathLike)):
        return open(target, mode), True
    return target, False


def open_archive(source: Source, config: ArchiveConfig = None) -> ReadArchive:
    """Open an archive for reading.

    The header is parsed to select the backend for the rest of the session.

    Args:
        source: Raw archive bytes, a file path or a seekable binary stream.
            Streams are read from their current position and left open.
        config: Codec configuration.

    Returns:
        The reader positioned at the first object.

    Raises:
        MalformedHeaderError: If the source is not a supported archive.
    """
    config = config or ArchiveConfig()
    stream, owns_stream = _open_stream(source, "rb")
    try:
        cursor = ByteCursor(stream, config.encoding)
        header = read_header(cursor)
        archive = _READERS[header.format](header, cursor, config, owns_stream)
    except Exception:
        if owns_stream:
            stream.close()
        raise

    _logger.debug("opened %s archive (%d objects)", header.format.name, archive.object_count)
    return archive


def create_archive(
    dest: Union[str, os.PathLike, BinaryIO],
    archive_format: ArchiveFormat,
    config: ArchiveConfig = None,
    save: bool = False,
) -> WriteArchive:
    """Create an archive for writing and write its header.

    Args:
        dest: A file path or a seekable binary stream. Streams are written
            from their current position and left open on close.
        archive_format: Wire encoding of the new archive.
        config: Codec configuration; supplies the header version, user and date.
        save: Mark the archive as a save-game.

    Returns:
        The writer.
    """
    config = config or ArchiveConfig()
    header = ArchiveHeader(
        version=config.archive_version,
        archiver=archive_format.archiver,
        format=archive_format,
        save=save,
        user=config.user,
        date=config.date if config.date is not None else datetime.now().strftime(DATE_FORMAT),
    )

    stream, owns_stream = _open_stream(dest, "wb")
    try:
        archive = _WRITERS[archive_format](header, ByteCursor(stream, config.encoding), config, owns_stream)
    except Exception:
        if owns_stream:
            stream.close()
        raise

    _logger.debug("created %s archive", archive_format.name)
    return archive
