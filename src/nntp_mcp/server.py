"""MCP server entry point for reading and posting Usenet articles.

Exposes an NNTP session as tools, resources, and prompts via the Model
Context Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from mcp.server.fastmcp import FastMCP

from .protocol.errors import NNTPError
from .session import Session
from .transport.tcp_connection import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "nntp",
    instructions="Read and post Usenet (NNTP) articles. Call connect before any other tool.",
)

# Global session state
_session: Session | None = None
_capabilities: list[str] = []

MAX_OVERVIEW_RANGE = 1000


def _get_session() -> Session:
    """Get the active session, raising if not connected."""
    if _session is None or _session.closed:
        raise RuntimeError(
            "Not connected to a news server. Use the 'connect' tool first."
        )
    return _session


def _server_error(e: NNTPError) -> dict[str, Any]:
    return {"error": e.message, "code": e.code}


def _parse_since(since: str) -> datetime:
    """Parse an ISO 8601 timestamp, taking naive values as UTC."""
    parsed = datetime.fromisoformat(since)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str,
    port: int | None = None,
    use_tls: bool = False,
    username: str | None = None,
    password: str | None = None,
    mode_reader: bool = True,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Any]:
    """Connect to a news server.

    Args:
        host: Server hostname.
        port: Server port (defaults to 119, or 563 with TLS).
        use_tls: Use an encrypted connection.
        username: Optional AUTHINFO username.
        password: Optional AUTHINFO password.
        mode_reader: Send MODE READER after connecting.
        timeout: Socket timeout in seconds.
    """
    global _session
    if _session is not None and not _session.closed:
        return {
            "connected": True,
            "message": "Already connected",
            "banner": _session.banner,
        }

    try:
        _session = Session.connect(
            host,
            port,
            use_tls=use_tls,
            timeout=timeout,
            username=username,
            password=password,
            mode_reader=mode_reader,
        )
    except NNTPError as e:
        return _server_error(e)

    _capabilities.clear()
    return {
        "connected": True,
        "banner": _session.banner,
        "posting_allowed": _session.posting_allowed,
    }


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Send QUIT and close the connection to the news server."""
    global _session
    if _session is None:
        return {"disconnected": True}
    try:
        _session.quit()
    except NNTPError as e:
        logger.warning("QUIT failed: %s", e)
    _session = None
    _capabilities.clear()
    return {"disconnected": True}


@mcp.tool()
def get_capabilities() -> dict[str, Any]:
    """List the capabilities the server advertises."""
    session = _get_session()
    try:
        lines = session.capabilities()
    except NNTPError as e:
        return _server_error(e)
    _capabilities[:] = lines
    return {"capabilities": lines}


@mcp.tool()
def get_server_date() -> dict[str, Any]:
    """Read the server's clock (UTC)."""
    session = _get_session()
    try:
        date = session.date()
    except NNTPError as e:
        return _server_error(e)
    return {"date": date.isoformat()}


@mcp.tool()
def enable_compression() -> dict[str, Any]:
    """Ask the server to compress overview responses (XFEATURE COMPRESS GZIP)."""
    session = _get_session()
    try:
        session.set_compression()
    except NNTPError as e:
        return _server_error(e)
    return {"compression": True}


# ─── GROUP TOOLS ──────────────────────────────────────────────────────

@mcp.tool()
def list_groups(pattern: str | None = None) -> dict[str, Any]:
    """List active newsgroups.

    Args:
        pattern: Optional wildmat filter, e.g. 'comp.lang.*'.
    """
    session = _get_session()
    try:
        groups = session.list_active(pattern)
    except NNTPError as e:
        return _server_error(e)
    return {"groups": [g.to_dict() for g in groups], "count": len(groups)}


@mcp.tool()
def select_group(name: str) -> dict[str, Any]:
    """Select a newsgroup and return its article range.

    Args:
        name: Group name, e.g. 'comp.lang.python'.
    """
    session = _get_session()
    try:
        group = session.group(name)
    except NNTPError as e:
        return _server_error(e)
    return group.to_dict()


@mcp.tool()
def new_groups(since: str) -> dict[str, Any]:
    """List groups created since a point in time.

    Args:
        since: ISO 8601 timestamp; naive values are taken as UTC.
    """
    try:
        when = _parse_since(since)
    except ValueError:
        return {"error": f"Invalid timestamp: {since!r}"}

    session = _get_session()
    try:
        groups = session.new_groups(when)
    except NNTPError as e:
        return _server_error(e)
    return {"groups": [g.to_dict() for g in groups], "count": len(groups)}


@mcp.tool()
def new_news(group: str, since: str) -> dict[str, Any]:
    """List message-ids of articles posted since a point in time.

    Args:
        group: Group name or wildmat.
        since: ISO 8601 timestamp; naive values are taken as UTC.
    """
    try:
        when = _parse_since(since)
    except ValueError:
        return {"error": f"Invalid timestamp: {since!r}"}

    session = _get_session()
    try:
        ids = session.new_news(group, when)
    except NNTPError as e:
        return _server_error(e)
    return {"message_ids": ids, "count": len(ids)}


# ─── ARTICLE TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def stat_article(article_id: str = "") -> dict[str, Any]:
    """Select an article without fetching it.

    Args:
        article_id: Message-id, article number, or empty for the current one.
    """
    session = _get_session()
    try:
        pointer = session.stat(article_id)
    except NNTPError as e:
        return _server_error(e)
    return pointer.to_dict()


@mcp.tool()
def next_article() -> dict[str, Any]:
    """Move to the next article in the selected group."""
    session = _get_session()
    try:
        pointer = session.next()
    except NNTPError as e:
        return _server_error(e)
    return pointer.to_dict()


@mcp.tool()
def last_article() -> dict[str, Any]:
    """Move to the previous article in the selected group."""
    session = _get_session()
    try:
        pointer = session.last()
    except NNTPError as e:
        return _server_error(e)
    return pointer.to_dict()


@mcp.tool()
def get_article(article_id: str = "") -> dict[str, Any]:
    """Fetch a full article (headers and body).

    Args:
        article_id: Message-id, article number, or empty for the current one.
    """
    session = _get_session()
    try:
        article = session.article(article_id)
    except NNTPError as e:
        return _server_error(e)
    return article.to_dict()


@mcp.tool()
def get_head(article_id: str = "") -> dict[str, Any]:
    """Fetch only the headers of an article.

    Args:
        article_id: Message-id, article number, or empty for the current one.
    """
    session = _get_session()
    try:
        article = session.head(article_id)
    except NNTPError as e:
        return _server_error(e)
    return {"headers": article.headers.to_dict()}


@mcp.tool()
def get_body(article_id: str = "") -> dict[str, Any]:
    """Fetch only the body of an article.

    Args:
        article_id: Message-id, article number, or empty for the current one.
    """
    session = _get_session()
    try:
        lines = session.body(article_id)
    except NNTPError as e:
        return _server_error(e)
    return {"body": "\n".join(lines), "lines": len(lines)}


@mcp.tool()
def get_overview(start: int, end: int) -> dict[str, Any]:
    """Fetch overview records (subject, author, date, ...) for a range of articles.

    Args:
        start: First article number.
        end: Last article number (inclusive).
    """
    if start < 0 or end < 0:
        return {"error": "Article numbers must be non-negative"}
    if end - start + 1 > MAX_OVERVIEW_RANGE:
        return {"error": f"Range too large; at most {MAX_OVERVIEW_RANGE} articles per call"}

    session = _get_session()
    try:
        records = session.overview(start, end)
    except NNTPError as e:
        return _server_error(e)
    return {"overview": [r.to_dict() for r in records], "count": len(records)}


@mcp.tool()
def post_article(text: str) -> dict[str, Any]:
    """Post an article.

    Args:
        text: Full article text: headers (at least From, Newsgroups and
              Subject), a blank line, then the body.
    """
    if not text.strip():
        return {"error": "Article text is empty"}

    session = _get_session()
    if not session.posting_allowed:
        return {"error": "Posting is not allowed on this server"}
    try:
        message = session.raw_post(text)
    except NNTPError as e:
        return _server_error(e)
    return {"posted": True, "message": message}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("nntp://session/status")
def resource_session_status() -> str:
    """Connection state, server banner and negotiated features."""
    if _session is None or _session.closed:
        return json.dumps({"connected": False})

    return json.dumps({
        "connected": True,
        "banner": _session.banner,
        "posting_allowed": _session.posting_allowed,
        "compression": _session.compression_enabled,
    })


@mcp.resource("nntp://session/capabilities")
def resource_capabilities() -> str:
    """Capabilities last reported by the server (cached)."""
    return json.dumps({"capabilities": list(_capabilities)})


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def summarize_group(group: str, count: int = 50) -> str:
    """Guide the AI to summarize recent discussion in a newsgroup.

    Args:
        group: Newsgroup name.
        count: How many recent articles to look at.
    """
    return f"""Summarize recent discussion in {group}.
Steps:
- Use select_group to find the article range of {group}
- Use get_overview on the last {count} article numbers
- Group the overview records into threads using their references
- Fetch a few representative articles with get_body

Report the main topics, active threads and notable posters."""


@mcp.prompt()
def find_thread(message_id: str) -> str:
    """Reconstruct the thread around a single article.

    Args:
        message_id: Message-id of an article in the thread, e.g. '<abc@example.com>'.
    """
    return f"""Reconstruct the discussion thread containing {message_id}.
Steps:
- Use get_head on {message_id} and read its References header
- Fetch each referenced article with get_article, oldest first
- Use get_overview around the article's number to find replies that
  reference {message_id}

Present the thread in order with author, date and a one-line gist per post."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
