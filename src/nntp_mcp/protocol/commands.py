"""Status codes and command-line builders.

Each builder returns the exact command line sent to the server (without
CRLF) and validates its arguments before any I/O happens.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import IntEnum

# Format of the date/time pair in NEWNEWS and NEWGROUPS.
SINCE_FORMAT = "%Y%m%d %H%M%S"


class StatusCode(IntEnum):
    """Response status codes used by the client."""

    HELP_TEXT = 100
    CAPABILITY_LIST = 101
    SERVER_DATE = 111
    POSTING_ALLOWED = 200
    POSTING_PROHIBITED = 201
    CLOSING = 205
    GROUP_SELECTED = 211
    LIST_FOLLOWS = 215
    ARTICLE_FOLLOWS = 220
    HEAD_FOLLOWS = 221
    BODY_FOLLOWS = 222
    ARTICLE_SELECTED = 223
    OVERVIEW_FOLLOWS = 224
    NEW_ARTICLES_FOLLOW = 230
    NEW_GROUPS_FOLLOW = 231
    ARTICLE_POSTED = 240
    AUTH_ACCEPTED = 281
    FEATURE_ENABLED = 290
    SEND_ARTICLE = 340
    PASSWORD_REQUIRED = 381


# Prefix expectations accepted by ``code_matches``.
EXPECT_INTERMEDIATE = 3
EXPECT_READY = 20


def code_matches(code: int, expect: int | None) -> bool:
    """Check a received status code against an expectation.

    Args:
        code: The 3-digit status code received.
        expect: ``None`` or ``0`` accepts any code; a 1-digit value matches
            the hundreds class (``2`` accepts 200-299); a 2-digit value
            matches the first two digits (``20`` accepts 200-209); a
            3-digit value must match exactly.
    """
    if not expect:
        return True
    if expect < 10:
        return code // 100 == expect
    if expect < 100:
        return code // 10 == expect
    return code == expect


def _check_token(name: str, value: str) -> str:
    if not value or any(c.isspace() for c in value):
        raise ValueError(f"{name} must be a single non-empty token, got {value!r}")
    return value


def maybe_id(verb: str, article_id: str | int = "") -> str:
    """Build ``VERB`` or ``VERB <id>``.

    An empty id addresses the currently selected article.
    """
    article_id = str(article_id)
    if not article_id:
        return verb
    return f"{verb} {_check_token('Article id', article_id)}"


def build_list(keyword: str | None = None, pattern: str | None = None) -> str:
    """Build a LIST command.

    Args:
        keyword: Optional list keyword (``ACTIVE``, ``NEWSGROUPS``, ...).
        pattern: Optional wildmat; only valid together with a keyword.
    """
    if pattern and not keyword:
        raise ValueError("LIST pattern requires a keyword")
    parts = ["LIST"]
    if keyword:
        parts.append(_check_token("List keyword", keyword))
        if pattern:
            parts.append(_check_token("List pattern", pattern))
    return " ".join(parts)


def build_group(name: str) -> str:
    """Build a GROUP command."""
    return f"GROUP {_check_token('Group name', name)}"


def format_since(since: datetime) -> str:
    """Format a timestamp as ``YYYYMMDD HHMMSS GMT``.

    Naive datetimes are taken to be UTC already.
    """
    if since.tzinfo is not None:
        since = since.astimezone(timezone.utc)
    return f"{since.strftime(SINCE_FORMAT)} GMT"


def build_newnews(wildmat: str, since: datetime) -> str:
    """Build a NEWNEWS command for groups matching ``wildmat``."""
    return f"NEWNEWS {_check_token('Group wildmat', wildmat)} {format_since(since)}"


def build_newgroups(since: datetime) -> str:
    """Build a NEWGROUPS command."""
    return f"NEWGROUPS {format_since(since)}"


def build_over(begin: int, end: int) -> str:
    """Build an XOVER command for the inclusive range ``begin``-``end``."""
    if begin < 0 or end < 0:
        raise ValueError(f"Article numbers must be non-negative, got {begin}-{end}")
    return f"XOVER {begin}-{end}"


def build_authinfo_user(username: str) -> str:
    return f"AUTHINFO USER {_check_token('Username', username)}"


def build_authinfo_pass(password: str) -> str:
    if not password or "\r" in password or "\n" in password:
        raise ValueError("Password must be non-empty and on one line")
    return f"AUTHINFO PASS {password}"


def mask_secret(line: str) -> str:
    """Hide the argument of AUTHINFO PASS for logging."""
    if line.upper().startswith("AUTHINFO PASS "):
        return "AUTHINFO PASS ****"
    return line
