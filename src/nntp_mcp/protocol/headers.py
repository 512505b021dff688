"""RFC 822 style header parsing for articles.

A header block is a run of ``Key: value`` lines ending at the first blank
line. A line starting with a space or tab continues the previous value.
Header names may repeat; every value is kept, in order.
"""

from __future__ import annotations

from typing import Iterable, Iterator

from .errors import ProtocolError

_WHITESPACE = " \t"


def canonical_key(key: str) -> str:
    """Return the canonical form of a header name.

    Each hyphen-separated token is capitalised, so ``message-ID`` becomes
    ``Message-Id``.
    """
    return "-".join(part.capitalize() for part in key.split("-"))


class Headers:
    """Multi-valued header mapping that keeps duplicates in arrival order.

    Indexing and :meth:`get` return the first value for a key; use
    :meth:`get_all` to see every value. Keys are canonicalised on both
    insert and lookup.
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._values: dict[str, list[str]] = {}
        for key, value in items:
            self.add(key, value)

    def add(self, key: str, value: str) -> None:
        """Append ``value`` to the values stored for ``key``."""
        self._values.setdefault(canonical_key(key), []).append(value)

    def get_all(self, key: str) -> list[str]:
        """Return every value for ``key`` (an empty list if absent)."""
        return list(self._values.get(canonical_key(key), []))

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the first value for ``key``, or ``default``."""
        values = self._values.get(canonical_key(key))
        if not values:
            return default
        return values[0]

    def __getitem__(self, key: str) -> str:
        values = self._values.get(canonical_key(key))
        if not values:
            raise KeyError(key)
        return values[0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and canonical_key(key) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._values == other._values
        return NotImplemented

    def keys(self) -> list[str]:
        return list(self._values)

    def items(self) -> list[tuple[str, list[str]]]:
        return [(key, list(values)) for key, values in self._values.items()]

    def lines(self) -> list[str]:
        """Render the headers as ``Key: value`` lines, one per value."""
        return [f"{key}: {value}" for key, values in self._values.items() for value in values]

    def to_dict(self) -> dict[str, list[str]]:
        return {key: list(values) for key, values in self._values.items()}

    def __repr__(self) -> str:
        return f"Headers({self.to_dict()!r})"


def _split_header(line: str) -> tuple[str, str]:
    """Split a ``Key: value`` line, raising on malformed input."""
    key, sep, value = line.partition(":")
    if not sep or not key or " " in key:
        raise ProtocolError(f"malformed header line: {line}")
    return key, value.lstrip(_WHITESPACE)


def parse_headers(lines: Iterable[str]) -> Headers:
    """Parse a header block from an iterator of lines.

    Lines are consumed up to and including the first blank line, so any
    body that follows stays in ``lines`` for the caller. Exhausting the
    iterator also ends the block.

    Raises:
        ProtocolError: On a malformed header line or a continuation line
            with no header before it.
    """
    headers = Headers()
    key: str | None = None
    value = ""

    for line in lines:
        line = line.rstrip(" \t\r\n")
        if not line:
            break
        if line[0] in _WHITESPACE:
            if key is None:
                raise ProtocolError(f"malformed header line: {line}")
            value += " " + line.lstrip(_WHITESPACE)
            continue
        if key is not None:
            headers.add(key, value)
        key, value = _split_header(line)

    if key is not None:
        headers.add(key, value)
    return headers
