"""Response parsing: turn status lines and block lines into typed records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from ..models.article import ArticlePointer
from ..models.group import Group
from ..models.overview import MessageOverview
from .errors import ProtocolError

# DATE response: YYYYMMDDhhmmss, always UTC.
SERVER_DATE_FORMAT = "%Y%m%d%H%M%S"

# Overview Date field: RFC 822 date with a numeric zone, weekday optional.
OVERVIEW_DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S %z",
    "%d %b %Y %H:%M:%S %z",
)

OVERVIEW_MIN_FIELDS = 8


def _int_field(value: str, name: str, line: str) -> int:
    # ASCII digits only; int() would also take "+5", "1_0" and other scripts.
    if not (value.isascii() and value.isdigit()):
        raise ProtocolError(f"bad {name} {value!r} in line: {line}")
    return int(value)


def parse_status_line(line: str) -> tuple[int, str]:
    """Split a status line into its 3-digit code and message.

    Raises:
        ProtocolError: If the line does not start with a 3-digit code.
    """
    code, _, message = line.partition(" ")
    if len(code) != 3 or not code.isdigit():
        raise ProtocolError(f"malformed status line: {line}")
    return int(code), message


def parse_group(line: str) -> Group:
    """Parse the ``count low high name`` text of a 211 response."""
    fields = line.strip().split(None, 3)
    if len(fields) < 4:
        raise ProtocolError(f"short group info line: {line}")
    count = _int_field(fields[0], "count", line)
    low = _int_field(fields[1], "low article number", line)
    high = _int_field(fields[2], "high article number", line)
    return Group(name=fields[3], high=high, low=low, count=count)


def _parse_name_high_low(line: str) -> Group:
    fields = line.strip().split(None, 3)
    if len(fields) < 4:
        raise ProtocolError(f"short group info line: {line}")
    high = _int_field(fields[1], "high article number", line)
    low = _int_field(fields[2], "low article number", line)
    return Group(name=fields[0], high=high, low=low, status=fields[3])


def parse_new_groups(lines: Iterable[str]) -> list[Group]:
    """Parse a NEWGROUPS block of ``name high low status`` lines.

    The count is not part of this format and is left at 0.
    """
    return [_parse_name_high_low(line) for line in lines]


def parse_list_active(lines: Iterable[str]) -> list[Group]:
    """Parse a LIST ACTIVE block, which shares the NEWGROUPS layout."""
    return [_parse_name_high_low(line) for line in lines]


def parse_article_pointer(line: str) -> ArticlePointer:
    """Parse the ``number message-id [comment]`` text of a 223 response."""
    fields = line.split(" ", 2)
    if len(fields) < 2:
        raise ProtocolError(f"bad article pointer response: {line}")
    number = _int_field(fields[0], "article number", line)
    return ArticlePointer(number=number, message_id=fields[1])


def parse_server_date(text: str) -> datetime:
    """Parse the ``YYYYMMDDhhmmss`` text of a 111 response as UTC."""
    try:
        parsed = datetime.strptime(text.strip(), SERVER_DATE_FORMAT)
    except ValueError:
        raise ProtocolError(f"invalid time: {text}") from None
    return parsed.replace(tzinfo=timezone.utc)


def parse_overview_date(text: str) -> datetime | None:
    """Parse an overview Date field, returning None if it does not match."""
    text = text.strip()
    for fmt in OVERVIEW_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_references(text: str) -> list[str]:
    """Split a References field into message-ids."""
    return [ref for ref in text.split(" ") if ref]


def parse_overview_line(line: str) -> MessageOverview:
    """Parse one tab-separated overview line.

    Fields: number, subject, from, date, message-id, references, bytes,
    lines, then any extra fields the server appends.
    """
    # Trailing fields may be empty, so keep the tabs.
    fields = line.strip("\r\n ").split("\t")
    if len(fields) < OVERVIEW_MIN_FIELDS:
        raise ProtocolError(
            f"short header listing line ({len(fields)} fields, "
            f"need {OVERVIEW_MIN_FIELDS}): {line}"
        )
    return MessageOverview(
        message_number=_int_field(fields[0], "message number", line),
        subject=fields[1],
        from_=fields[2],
        date=parse_overview_date(fields[3]),
        message_id=fields[4],
        references=parse_references(fields[5]),
        bytes=_int_field(fields[6], "byte count", line),
        lines=_int_field(fields[7], "line count", line),
        extra=fields[8:],
    )


def parse_overview(lines: Iterable[str]) -> list[MessageOverview]:
    """Parse an overview block.

    A blank line ends the data; records before it are returned.
    """
    result: list[MessageOverview] = []
    for line in lines:
        if not line:
            break
        result.append(parse_overview_line(line))
    return result


def unique_sorted(lines: Iterable[str]) -> list[str]:
    """Sort ``lines`` and drop duplicates (NEWNEWS may repeat ids)."""
    return sorted(set(lines))
