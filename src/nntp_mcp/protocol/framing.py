"""Line framing and dot-block encoding for the NNTP text stream.

Wire layout::

    <3-digit code> <message>CRLF        status line
    payload line 1CRLF                  multiline block (optional)
    ..payload starting with a dotCRLF   dot-stuffed payload line
    .CRLF                               block terminator

- Every line ends in CRLF; readers also accept a bare LF.
- A payload line that begins with ``.`` is sent with one extra leading dot.
- A line holding only ``.`` ends the block and is not part of the payload.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Iterable, Iterator

from .errors import ProtocolError

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
DOT = "."
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


def decode_line(raw: bytes) -> str:
    """Decode one wire line, dropping its CRLF or LF terminator."""
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode(ENCODING, ENCODING_ERRORS)


def encode_line(line: str) -> bytes:
    """Encode one line for the wire, appending CRLF.

    Raises:
        ValueError: If the line already contains a CR or LF.
    """
    if "\r" in line or "\n" in line:
        raise ValueError(f"Line must not contain CR or LF: {line!r}")
    return line.encode(ENCODING, ENCODING_ERRORS) + CRLF


def stuff_line(line: str) -> str:
    """Escape a payload line for the wire by doubling a leading dot."""
    if line.startswith(DOT):
        return DOT + line
    return line


def unstuff_line(line: str) -> str:
    """Undo :func:`stuff_line` on a payload line read from the wire."""
    if line.startswith(DOT):
        return line[1:]
    return line


def split_lines(source) -> Iterator[str]:
    """Yield the lines of ``source`` with their terminators removed.

    ``source`` may be a ``str``, a text or binary file object, or any
    iterable of lines. A final line without a terminator is still yielded;
    an empty trailing segment after the last newline is not.
    """
    if isinstance(source, (str, bytes)):
        source = io.StringIO(source) if isinstance(source, str) else io.BytesIO(source)
    for line in source:
        if isinstance(line, bytes):
            yield decode_line(line)
        else:
            yield line.rstrip("\n").rstrip("\r")


class LineStream:
    """A line-oriented view over a duplex byte stream.

    Only one command may be outstanding at a time: a response (status line
    plus any multiline block) must be read completely before the next
    command is written, or the stream desynchronises for good. The stream
    does no locking of its own.

    Usage::

        stream = LineStream(sock.makefile("rb"), sock.makefile("wb"))
        stream.write_line("CAPABILITIES")
        status = stream.read_line()
        lines = stream.read_dot_lines()
    """

    def __init__(self, reader: BinaryIO, writer: BinaryIO) -> None:
        # The compression adapter needs peek() to avoid reading past a block.
        if not hasattr(reader, "peek"):
            reader = io.BufferedReader(reader)
        self._reader = reader
        self._writer = writer
        self._closed = False

    @property
    def reader(self) -> BinaryIO:
        """The buffered binary reader beneath the line framing."""
        return self._reader

    @property
    def closed(self) -> bool:
        return self._closed

    def read_line(self) -> str:
        """Read a single line.

        Raises:
            ProtocolError: If the stream ends before a line is available.
        """
        raw = self._reader.readline()
        if not raw:
            raise ProtocolError("unexpected end of stream")
        return decode_line(raw)

    def write_line(self, line: str) -> None:
        """Write a single line terminated by CRLF and flush it."""
        self._writer.write(encode_line(line))
        self._writer.flush()

    def iter_dot_lines(self) -> Iterator[str]:
        """Yield the payload lines of a multiline block.

        The terminating dot line is consumed but not yielded. The generator
        must be exhausted before the next command is written.

        Raises:
            ProtocolError: If the stream ends before the terminator.
        """
        while True:
            raw = self._reader.readline()
            if not raw:
                raise ProtocolError("unexpected end of stream inside multiline block")
            line = decode_line(raw)
            if line == DOT:
                return
            yield unstuff_line(line)

    def read_dot_lines(self) -> list[str]:
        """Read a whole multiline block into a list."""
        lines = list(self.iter_dot_lines())
        for line in lines:
            logger.debug("server: %s", line)
        return lines

    def write_dot_lines(self, lines: Iterable[str]) -> int:
        """Write ``lines`` as a multiline block, terminator included.

        Returns:
            The number of payload lines written.
        """
        count = 0
        for line in lines:
            self._writer.write(encode_line(stuff_line(line)))
            count += 1
        self._writer.write(encode_line(DOT))
        self._writer.flush()
        return count

    def close(self) -> None:
        """Close both halves of the stream."""
        if self._closed:
            return
        self._closed = True
        for half in (self._writer, self._reader):
            try:
                half.close()
            except OSError as e:
                logger.warning("Error closing stream: %s", e)
