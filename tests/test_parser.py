"""Tests for response parsing into typed records."""

from datetime import datetime, timedelta, timezone

import pytest

from nntp_mcp.models import ArticlePointer, Group
from nntp_mcp.protocol.errors import ProtocolError
from nntp_mcp.protocol.parser import (
    parse_article_pointer,
    parse_group,
    parse_list_active,
    parse_new_groups,
    parse_overview,
    parse_overview_date,
    parse_overview_line,
    parse_references,
    parse_server_date,
    parse_status_line,
    unique_sorted,
)

PLUS_0030 = timezone(timedelta(minutes=30))

OVERVIEW_10 = (
    "10\tSubject10\tAuthor <author@server>\tSat, 18 Oct 2003 18:00:00 +0030"
    "\t<d@e.f>\t\t1000\t9"
)
OVERVIEW_11 = (
    "11\tSubject11\t\t18 Oct 2003 19:00:00 +0030\t<e@f.g>\t<d@e.f> <a@b.c>"
    "\t2000\t18\tExtra stuff"
)


def test_parse_status_line():
    assert parse_status_line("211 1000 500 1000 misc.test") == (211, "1000 500 1000 misc.test")
    assert parse_status_line("205") == (205, "")


@pytest.mark.parametrize("line", ["", "OK", "20 short", "2000 long", "abc message"])
def test_parse_status_line_malformed(line):
    with pytest.raises(ProtocolError):
        parse_status_line(line)


def test_parse_group():
    group = parse_group("1000 500 1000 gmane.comp.lang.go.general")
    assert group == Group(name="gmane.comp.lang.go.general", high=1000, low=500, count=1000)


def test_parse_group_accepts_low_above_high():
    """Servers send inverted ranges for empty groups; this is not an error."""
    group = parse_group("0 11 10 misc.empty")
    assert group.low == 11
    assert group.high == 10
    assert group.count == 0


def test_parse_group_short_line():
    with pytest.raises(ProtocolError, match="short group info line"):
        parse_group("1000 500 1000")


@pytest.mark.parametrize(
    "line, field",
    [
        ("x 500 1000 misc.test", "count"),
        ("1000 x 1000 misc.test", "low article number"),
        ("1000 500 x misc.test", "high article number"),
        ("1_000 500 1000 misc.test", "count"),
        ("1000 +500 1000 misc.test", "low article number"),
        ("1000 500 \u0661\u0660 misc.test", "high article number"),
    ],
)
def test_parse_group_bad_number_names_field(line, field):
    with pytest.raises(ProtocolError) as exc_info:
        parse_group(line)
    assert field in str(exc_info.value)
    assert line in str(exc_info.value)


def test_parse_new_groups():
    """NEWGROUPS lines are name, high, low, status; count stays 0."""
    groups = parse_new_groups([
        "alt.rfc-writers.recovery 4 1 y",
        "tx.natives.recovery 89 56 m",
    ])
    assert groups == [
        Group(name="alt.rfc-writers.recovery", high=4, low=1, status="y"),
        Group(name="tx.natives.recovery", high=89, low=56, status="m"),
    ]


def test_parse_new_groups_empty():
    assert parse_new_groups([]) == []


def test_parse_new_groups_short_line():
    with pytest.raises(ProtocolError):
        parse_new_groups(["alt.short 4 1"])


def test_parse_list_active_leading_zeros():
    groups = parse_list_active(["foo 7 3 y", "bar 000008 02 m"])
    assert groups[1] == Group(name="bar", high=8, low=2, status="m")


def test_parse_article_pointer():
    assert parse_article_pointer("1 <a@b.c> status") == ArticlePointer(1, "<a@b.c>")
    assert parse_article_pointer("0 <a@b.c>") == ArticlePointer(0, "<a@b.c>")


def test_parse_article_pointer_malformed():
    with pytest.raises(ProtocolError):
        parse_article_pointer("1")
    with pytest.raises(ProtocolError):
        parse_article_pointer("one <a@b.c>")
    with pytest.raises(ProtocolError, match="article number"):
        parse_article_pointer("+1 <a@b.c>")


def test_parse_server_date():
    assert parse_server_date("20100329034158") == datetime(2010, 3, 29, 3, 41, 58, tzinfo=timezone.utc)


def test_parse_server_date_invalid():
    with pytest.raises(ProtocolError, match="invalid time"):
        parse_server_date("Mon, 29 Mar 2010")


def test_parse_overview_date_formats():
    assert parse_overview_date("Sat, 18 Oct 2003 18:00:00 +0030") == datetime(2003, 10, 18, 18, 0, tzinfo=PLUS_0030)
    assert parse_overview_date("18 Oct 2003 19:00:00 -0500") == datetime(
        2003, 10, 18, 19, 0, tzinfo=timezone(timedelta(hours=-5))
    )


def test_parse_overview_date_failure_is_none():
    """The overview date parser degrades instead of raising."""
    assert parse_overview_date("") is None
    assert parse_overview_date("yesterday") is None
    assert parse_overview_date("20100329034158") is None


def test_date_parsers_are_independent():
    """Each parser only accepts its own format."""
    with pytest.raises(ProtocolError):
        parse_server_date("Sat, 18 Oct 2003 18:00:00 +0030")
    assert parse_overview_date("20100329034158") is None


def test_parse_overview_line():
    record = parse_overview_line(OVERVIEW_11)
    assert record.message_number == 11
    assert record.subject == "Subject11"
    assert record.from_ == ""
    assert record.date == datetime(2003, 10, 18, 19, 0, tzinfo=PLUS_0030)
    assert record.message_id == "<e@f.g>"
    assert record.references == ["<d@e.f>", "<a@b.c>"]
    assert record.bytes == 2000
    assert record.lines == 18
    assert record.extra == ["Extra stuff"]


def test_parse_overview_empty_references_is_empty_list():
    record = parse_overview_line(OVERVIEW_10)
    assert record.references == []
    assert record.extra == []


def test_parse_references():
    assert parse_references("") == []
    assert parse_references("<a@b.c>") == ["<a@b.c>"]
    assert parse_references("<a@b.c> <d@e.f>") == ["<a@b.c>", "<d@e.f>"]


def test_parse_overview_bad_date_keeps_record():
    line = "12\tSubject\tFrom\tnot a date\t<x@y.z>\t\t10\t1"
    record = parse_overview_line(line)
    assert record.date is None
    assert record.message_number == 12


def test_parse_overview_keeps_empty_trailing_fields():
    line = "13\tSubject\tFrom\t\t<x@y.z>\t\t10\t1\t"
    record = parse_overview_line(line)
    assert record.extra == [""]


def test_parse_overview_short_line():
    with pytest.raises(ProtocolError, match="7 fields"):
        parse_overview_line("10\tSubject\tFrom\tDate\t<id>\t\t1000")


@pytest.mark.parametrize(
    "line, field",
    [
        ("x\tS\tF\t\t<id>\t\t1000\t9", "message number"),
        ("10\tS\tF\t\t<id>\t\tmany\t9", "byte count"),
        ("10\tS\tF\t\t<id>\t\t1000\tnine", "line count"),
        ("1_0\tS\tF\t\t<id>\t\t1000\t9", "message number"),
        ("10\tS\tF\t\t<id>\t\t1_000\t9", "byte count"),
        ("10\tS\tF\t\t<id>\t\t1000\t+9", "line count"),
    ],
)
def test_parse_overview_bad_numbers(line, field):
    with pytest.raises(ProtocolError, match=field):
        parse_overview_line(line)


def test_parse_overview_stops_at_blank_line():
    """Records before a blank separator are returned without error."""
    records = parse_overview([OVERVIEW_10, "", "garbage that would not parse"])
    assert [r.message_number for r in records] == [10]


def test_parse_overview_block():
    records = parse_overview([OVERVIEW_10, OVERVIEW_11])
    assert [r.message_number for r in records] == [10, 11]
    assert records[0].from_ == "Author <author@server>"


def test_overview_to_dict():
    data = parse_overview_line(OVERVIEW_10).to_dict()
    assert data["from"] == "Author <author@server>"
    assert data["date"] == "2003-10-18T18:00:00+00:30"
    assert data["references"] == []


def test_unique_sorted():
    assert unique_sorted(["<b@x>", "<a@x>", "<b@x>"]) == ["<a@x>", "<b@x>"]
