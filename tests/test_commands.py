"""Tests for status-code matching and command builders."""

from datetime import datetime, timedelta, timezone

import pytest

from nntp_mcp.protocol.commands import (
    StatusCode,
    build_authinfo_pass,
    build_authinfo_user,
    build_group,
    build_list,
    build_newgroups,
    build_newnews,
    build_over,
    code_matches,
    format_since,
    mask_secret,
    maybe_id,
)


def test_status_code_values():
    """Key status codes match RFC 3977."""
    assert StatusCode.CAPABILITY_LIST == 101
    assert StatusCode.SERVER_DATE == 111
    assert StatusCode.GROUP_SELECTED == 211
    assert StatusCode.LIST_FOLLOWS == 215
    assert StatusCode.ARTICLE_FOLLOWS == 220
    assert StatusCode.OVERVIEW_FOLLOWS == 224
    assert StatusCode.NEW_GROUPS_FOLLOW == 231
    assert StatusCode.ARTICLE_POSTED == 240
    assert StatusCode.FEATURE_ENABLED == 290


@pytest.mark.parametrize(
    "code, expect, ok",
    [
        (211, 211, True),
        (212, 211, False),
        (240, 2, True),
        (340, 2, False),
        (340, 3, True),
        (201, 20, True),
        (211, 20, False),
        (500, None, True),
        (205, 0, True),
    ],
)
def test_code_matches(code, expect, ok):
    assert code_matches(code, expect) is ok


def test_maybe_id():
    assert maybe_id("HEAD") == "HEAD"
    assert maybe_id("HEAD", "") == "HEAD"
    assert maybe_id("HEAD", 1000) == "HEAD 1000"
    assert maybe_id("ARTICLE", "<a@b.c>") == "ARTICLE <a@b.c>"


def test_maybe_id_rejects_whitespace():
    with pytest.raises(ValueError):
        maybe_id("HEAD", "1 2")


def test_build_list_variants():
    assert build_list() == "LIST"
    assert build_list("ACTIVE") == "LIST ACTIVE"
    assert build_list("ACTIVE", "comp.lang.*") == "LIST ACTIVE comp.lang.*"


def test_build_list_pattern_requires_keyword():
    with pytest.raises(ValueError):
        build_list(None, "comp.*")


def test_build_group():
    assert build_group("misc.test") == "GROUP misc.test"
    with pytest.raises(ValueError):
        build_group("")


def test_format_since_naive_is_utc():
    assert format_since(datetime(2010, 3, 1)) == "20100301 000000 GMT"


def test_format_since_converts_to_utc():
    since = datetime(2010, 3, 1, 2, 30, tzinfo=timezone(timedelta(hours=2)))
    assert format_since(since) == "20100301 003000 GMT"


def test_build_newnews_and_newgroups():
    since = datetime(2010, 3, 1, tzinfo=timezone.utc)
    assert build_newnews("misc.test", since) == "NEWNEWS misc.test 20100301 000000 GMT"
    assert build_newgroups(since) == "NEWGROUPS 20100301 000000 GMT"


def test_build_over():
    assert build_over(10, 11) == "XOVER 10-11"
    with pytest.raises(ValueError):
        build_over(-1, 5)


def test_authinfo_builders():
    assert build_authinfo_user("alice") == "AUTHINFO USER alice"
    assert build_authinfo_pass("s3cret word") == "AUTHINFO PASS s3cret word"
    with pytest.raises(ValueError):
        build_authinfo_pass("")


def test_mask_secret():
    assert mask_secret("AUTHINFO PASS hunter2") == "AUTHINFO PASS ****"
    assert mask_secret("AUTHINFO USER alice") == "AUTHINFO USER alice"
