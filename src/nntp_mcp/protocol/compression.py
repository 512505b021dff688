"""Decompression of multiline blocks after ``XFEATURE COMPRESS GZIP``.

Once compression is negotiated the server deflates the overview block it
sends after a ``224`` status. The compressed stream carries the whole dot
block, terminator included. Only the bytes belonging to that stream are
taken from the connection, so the next status line is read uncompressed.
"""

from __future__ import annotations

import contextlib
import logging
import zlib
from typing import BinaryIO, Generator, Iterator

from .errors import ProtocolError
from .framing import DOT, decode_line, unstuff_line

logger = logging.getLogger(__name__)

# Accept both zlib and gzip framing.
WBITS = zlib.MAX_WBITS | 32
CHUNK_SIZE = 8192


def _feed(reader: BinaryIO, inflate) -> bytes:
    """Decompress the next buffered chunk, consuming only what was used."""
    chunk = reader.peek(CHUNK_SIZE)[:CHUNK_SIZE]
    if not chunk:
        raise ProtocolError("unexpected end of stream inside compressed block")
    try:
        data = inflate.decompress(chunk)
    except zlib.error as e:
        raise ProtocolError(f"decompression failed: {e}") from e
    reader.read(len(chunk) - len(inflate.unused_data))
    return data


def _iter_lines(reader: BinaryIO, inflate) -> Iterator[str]:
    pending = b""
    while True:
        while b"\n" in pending:
            raw, pending = pending.split(b"\n", 1)
            line = decode_line(raw)
            if line == DOT:
                if pending.strip():
                    logger.warning("Discarding %d bytes after compressed block terminator", len(pending))
                # Consume the rest of the stream (checksum trailer).
                while not inflate.eof:
                    _feed(reader, inflate)
                return
            yield unstuff_line(line)

        if inflate.eof:
            raise ProtocolError("compressed block ended before the terminating dot line")
        pending += _feed(reader, inflate)


@contextlib.contextmanager
def compressed_block(reader: BinaryIO) -> Generator[Iterator[str], None, None]:
    """Scope a decompressor to one multiline block.

    Yields an iterator over the decompressed, dot-unstuffed payload lines.
    The decompressor is discarded when the ``with`` block exits, on success
    and on error alike.

    Usage::

        with compressed_block(stream.reader) as lines:
            raw = list(lines)
        records = parse_overview(raw)
    """
    inflate = zlib.decompressobj(WBITS)
    lines = _iter_lines(reader, inflate)
    try:
        yield lines
    finally:
        lines.close()
