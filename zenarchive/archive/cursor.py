"""Seekable byte cursor over memory or files."""

import io
import os
import struct
from typing import BinaryIO, Optional, Tuple

from zenarchive.exceptions import TextDecodeError, UnexpectedEndOfDataError


WHITESPACE = b" \t\r\n"


class ByteCursor:
    """Little-endian reader/writer over a seekable binary stream.

    The archive backends are its only users. They save and restore
    :meth:`tell` to implement peek-with-rollback, so nobody else may seek
    the stream while an archive is open.
    """

    def __init__(self, stream: BinaryIO, encoding: str = "latin-1"):
        self._stream = stream
        self._encoding = encoding

    @classmethod
    def from_bytes(cls, data: bytes, encoding: str = "latin-1") -> "ByteCursor":
        return cls(io.BytesIO(data), encoding)

    @classmethod
    def for_writing(cls, encoding: str = "latin-1") -> "ByteCursor":
        return cls(io.BytesIO(), encoding)

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def encoding(self) -> str:
        return self._encoding

    @encoding.setter
    def encoding(self, value: str) -> None:
        self._encoding = value

    def tell(self) -> int:
        return self._stream.tell()

    def seek(self, pos: int) -> None:
        self._stream.seek(pos, os.SEEK_SET)

    def size(self) -> int:
        pos = self._stream.tell()
        end = self._stream.seek(0, os.SEEK_END)
        self._stream.seek(pos, os.SEEK_SET)
        return end

    def remaining(self) -> int:
        return max(0, self.size() - self.tell())

    def eof(self) -> bool:
        return self.remaining() == 0

    def getvalue(self) -> bytes:
        """Return every byte of the underlying stream."""
        if isinstance(self._stream, io.BytesIO):
            return self._stream.getvalue()
        pos = self._stream.tell()
        self._stream.seek(0, os.SEEK_SET)
        data = self._stream.read()
        self._stream.seek(pos, os.SEEK_SET)
        return data

    def read(self, n: int) -> bytes:
        pos = self._stream.tell()
        data = self._stream.read(n)
        if len(data) < n:
            self._stream.seek(pos, os.SEEK_SET)
            raise UnexpectedEndOfDataError(n, len(data), pos)
        return data

    def skip(self, n: int) -> None:
        self.read(n)

    def peek_u8(self) -> Optional[int]:
        """Return the next byte without consuming it, or None at the end."""
        pos = self._stream.tell()
        data = self._stream.read(1)
        self._stream.seek(pos, os.SEEK_SET)
        return data[0] if data else None

    def read_u8(self) -> int:
        return self.read(1)[0]

    def read_u16(self) -> int:
        return struct.unpack("<H", self.read(2))[0]

    def read_u32(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def read_i32(self) -> int:
        return struct.unpack("<i", self.read(4))[0]

    def read_f32(self) -> float:
        return struct.unpack("<f", self.read(4))[0]

    def _decode(self, data: bytes, position: int) -> str:
        try:
            return data.decode(self._encoding)
        except UnicodeDecodeError as e:
            raise TextDecodeError(self._encoding, position + e.start, e)

    def read_string(self, length: int) -> str:
        position = self._stream.tell()
        return self._decode(self.read(length), position)

    def _read_raw_line(self, skip_whitespace: bool) -> Tuple[bytes, int]:
        start = self._stream.tell()
        line = self._stream.readline()
        if skip_whitespace:
            stripped = line.lstrip(WHITESPACE)
            while line and not stripped:
                start = self._stream.tell()
                line = self._stream.readline()
                stripped = line.lstrip(WHITESPACE)
            start += len(line) - len(stripped)
            line = stripped
        if not line:
            raise UnexpectedEndOfDataError(1, 0, self._stream.tell())

        if line.endswith(b"\n"):
            line = line[:-1]
        if line.endswith(b"\r"):
            line = line[:-1]
        return line, start

    def read_line(self, skip_whitespace: bool = True) -> str:
        """Read one text line without its terminator.

        With ``skip_whitespace`` leading whitespace, including blank lines,
        is consumed first. A final line without a newline is accepted.

        Raises:
            UnexpectedEndOfDataError: If no (non-blank) line is left.
            TextDecodeError: If the line is not valid in the encoding.
        """
        line, start = self._read_raw_line(skip_whitespace)
        return self._decode(line, start)

    def skip_line(self) -> None:
        """Consume the next non-blank line without decoding it."""
        self._read_raw_line(True)

    def write(self, data: bytes) -> None:
        self._stream.write(data)

    def write_u8(self, value: int) -> None:
        self._stream.write(struct.pack("<B", value))

    def write_u16(self, value: int) -> None:
        self._stream.write(struct.pack("<H", value))

    def write_u32(self, value: int) -> None:
        self._stream.write(struct.pack("<I", value))

    def write_i32(self, value: int) -> None:
        self._stream.write(struct.pack("<i", value))

    def write_f32(self, value: float) -> None:
        self._stream.write(struct.pack("<f", value))

    def write_string(self, value: str) -> None:
        self._stream.write(value.encode(self._encoding))

    def write_line(self, line: str) -> None:
        self._stream.write(line.encode(self._encoding) + b"\n")

    def flush(self) -> None:
        self._stream.flush()
