"""NNTP session: command dispatch and one method per protocol command.

The session is stateful on the server side (selected group, current
article) but keeps no copy of that state; callers track the selected
group through the :class:`~nntp_mcp.models.Group` that :meth:`Session.group`
returns.

A session is not thread-safe. NNTP allows one command in flight at a time,
and callers sharing a session across threads must serialise access
themselves. Every method reads its whole response before returning, so no
result stays tied to the stream once the call is done.
"""

from __future__ import annotations

import logging
import ssl
from datetime import datetime
from typing import Iterable

from .models.article import Article, ArticlePointer
from .models.group import Group
from .models.overview import MessageOverview
from .protocol.commands import (
    EXPECT_INTERMEDIATE,
    EXPECT_READY,
    StatusCode,
    build_authinfo_pass,
    build_authinfo_user,
    build_group,
    build_list,
    build_newgroups,
    build_newnews,
    build_over,
    code_matches,
    mask_secret,
    maybe_id,
)
from .protocol.compression import compressed_block
from .protocol.errors import NNTPError
from .protocol.framing import LineStream, split_lines
from .protocol.headers import parse_headers
from .protocol.parser import (
    parse_article_pointer,
    parse_group,
    parse_list_active,
    parse_new_groups,
    parse_overview,
    parse_server_date,
    parse_status_line,
    unique_sorted,
)
from .transport.tcp_connection import DEFAULT_TIMEOUT, TCPConnection

logger = logging.getLogger(__name__)


class Session:
    """A client session with one NNTP server.

    Usage::

        with Session.connect("news.example.com", use_tls=True) as session:
            group = session.group("comp.lang.python")
            for overview in session.overview(group.high - 10, group.high):
                print(overview.subject)
    """

    def __init__(
        self,
        stream: LineStream,
        banner: str = "",
        posting_allowed: bool = True,
        connection: TCPConnection | None = None,
    ) -> None:
        self._stream = stream
        self._banner = banner
        self._posting_allowed = posting_allowed
        self._connection = connection
        self._compress = False
        self._closed = False

    # ─── CONSTRUCTION ─────────────────────────────────────────────────

    @classmethod
    def from_stream(cls, stream: LineStream, connection: TCPConnection | None = None) -> Session:
        """Read the server greeting from ``stream`` and start a session.

        Raises:
            NNTPError: If the greeting is not 200 or 201.
        """
        code, message = parse_status_line(stream.read_line())
        logger.info("server greeting: %d %s", code, message)
        if code not in (StatusCode.POSTING_ALLOWED, StatusCode.POSTING_PROHIBITED):
            raise NNTPError(code, message)
        return cls(
            stream,
            banner=message,
            posting_allowed=code == StatusCode.POSTING_ALLOWED,
            connection=connection,
        )

    @classmethod
    def connect(
        cls,
        host: str,
        port: int | None = None,
        use_tls: bool = False,
        timeout: float | None = DEFAULT_TIMEOUT,
        username: str | None = None,
        password: str | None = None,
        mode_reader: bool = False,
        ssl_context: ssl.SSLContext | None = None,
    ) -> Session:
        """Dial a server, read its greeting, and optionally log in.

        Args:
            host: Server hostname.
            port: Server port (119, or 563 with TLS, when omitted).
            use_tls: Wrap the socket in TLS.
            timeout: Socket timeout in seconds, or None to block.
            username: Log in with AUTHINFO when given.
            password: Password sent if the server asks for one.
            mode_reader: Send MODE READER after the greeting.
            ssl_context: Custom TLS context.
        """
        connection = TCPConnection(host, port, use_tls=use_tls, timeout=timeout, ssl_context=ssl_context)
        stream = connection.open()
        try:
            session = cls.from_stream(stream, connection=connection)
            if mode_reader:
                session.mode_reader()
            if username:
                session.authenticate(username, password)
        except Exception:
            connection.close()
            raise
        return session

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.quit()
        else:
            self.close()

    # ─── STATE ────────────────────────────────────────────────────────

    @property
    def banner(self) -> str:
        """Greeting message sent by the server at connect time."""
        return self._banner

    @property
    def posting_allowed(self) -> bool:
        return self._posting_allowed

    @property
    def compression_enabled(self) -> bool:
        return self._compress

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Close the underlying stream without sending QUIT."""
        if self._closed:
            return
        self._closed = True
        if self._connection is not None:
            self._connection.close()
        else:
            self._stream.close()

    def _check_open(self) -> None:
        if self._closed:
            raise ConnectionError("Session is closed")

    # ─── DISPATCH ─────────────────────────────────────────────────────

    def _read_status(self, expect: int | None) -> tuple[int, str]:
        code, message = parse_status_line(self._stream.read_line())
        logger.info("server code: %d, msg: %s", code, message)
        if not code_matches(code, expect):
            raise NNTPError(code, message)
        return code, message

    def command(self, line: str, expect: int | None) -> tuple[int, str]:
        """Send one command line and read its status line.

        Args:
            line: The command, without line terminator.
            expect: Status expectation: an exact 3-digit code, a 1- or
                2-digit prefix, or None to accept any code.

        Returns:
            The status code and message.

        Raises:
            NNTPError: If the status does not satisfy ``expect``.
            ProtocolError: If the status line is malformed.
        """
        self._check_open()
        logger.info("client: %s", mask_secret(line))
        self._stream.write_line(line)
        return self._read_status(expect)

    def multiline_command(self, line: str, expect: int | None) -> tuple[int, str, list[str]]:
        """Send a command whose successful response carries a multiline block."""
        code, message = self.command(line, expect)
        return code, message, self._stream.read_dot_lines()

    # ─── SESSION COMMANDS ─────────────────────────────────────────────

    def capabilities(self) -> list[str]:
        """Return the server's capability lines (not all servers support this)."""
        _, _, lines = self.multiline_command("CAPABILITIES", StatusCode.CAPABILITY_LIST)
        return lines

    def help(self) -> list[str]:
        """Return the server's help text."""
        _, _, lines = self.multiline_command("HELP", StatusCode.HELP_TEXT)
        return lines

    def date(self) -> datetime:
        """Return the server's current time (UTC).

        Typically passed on to :meth:`new_groups` or :meth:`new_news`.
        """
        _, message = self.command("DATE", StatusCode.SERVER_DATE)
        return parse_server_date(message)

    def mode_reader(self) -> bool:
        """Switch a mode-switching server to reader mode.

        Returns:
            Whether posting is allowed after the switch.
        """
        code, _ = self.command("MODE READER", EXPECT_READY)
        self._posting_allowed = code == StatusCode.POSTING_ALLOWED
        return self._posting_allowed

    def authenticate(self, username: str, password: str | None = None) -> None:
        """Log in with AUTHINFO USER/PASS.

        The password is only sent if the server asks for one (3xx reply).

        Raises:
            NNTPError: If the server rejects the credentials, or asks for a
                password when none was given.
        """
        pass_line = build_authinfo_pass(password) if password else None
        code, message = self.command(build_authinfo_user(username), None)
        if code // 100 == 2:
            return
        if code // 100 != 3 or pass_line is None:
            raise NNTPError(code, message)
        self.command(pass_line, StatusCode.AUTH_ACCEPTED)

    def set_compression(self) -> None:
        """Enable compressed overview responses for the rest of the session."""
        self.command("XFEATURE COMPRESS GZIP", StatusCode.FEATURE_ENABLED)
        self._compress = True

    def quit(self) -> None:
        """Send QUIT and close the connection, whatever the reply."""
        if self._closed:
            return
        try:
            self.command("QUIT", None)
        finally:
            self.close()

    # ─── GROUPS ───────────────────────────────────────────────────────

    def list(self, keyword: str | None = None, pattern: str | None = None) -> list[str]:
        """Return raw LIST output.

        Args:
            keyword: Optional list keyword (``ACTIVE``, ``NEWSGROUPS``, ...).
            pattern: Optional wildmat, only valid together with ``keyword``.
        """
        _, _, lines = self.multiline_command(build_list(keyword, pattern), StatusCode.LIST_FOLLOWS)
        return lines

    def list_active(self, pattern: str | None = None) -> list[Group]:
        """Return active groups, optionally filtered by a wildmat."""
        return parse_list_active(self.list("ACTIVE", pattern))

    def group(self, name: str) -> Group:
        """Select a group and return its status."""
        _, message = self.command(build_group(name), StatusCode.GROUP_SELECTED)
        return parse_group(message)

    def new_groups(self, since: datetime) -> list[Group]:
        """Return groups created since ``since``."""
        _, _, lines = self.multiline_command(build_newgroups(since), StatusCode.NEW_GROUPS_FOLLOW)
        return parse_new_groups(lines)

    def new_news(self, wildmat: str, since: datetime) -> list[str]:
        """Return the sorted, de-duplicated message-ids posted since ``since``."""
        _, _, lines = self.multiline_command(build_newnews(wildmat, since), StatusCode.NEW_ARTICLES_FOLLOW)
        return unique_sorted(lines)

    # ─── ARTICLES ─────────────────────────────────────────────────────

    def _pointer(self, verb: str, article_id: str | int = "") -> ArticlePointer:
        _, message = self.command(maybe_id(verb, article_id), StatusCode.ARTICLE_SELECTED)
        return parse_article_pointer(message)

    def stat(self, article_id: str | int = "") -> ArticlePointer:
        """Look up an article by message-id or number without fetching it.

        The returned number is 0 if the article is not in the selected group.
        """
        return self._pointer("STAT", article_id)

    def next(self) -> ArticlePointer:
        """Advance to the next article in the selected group."""
        return self._pointer("NEXT")

    def last(self) -> ArticlePointer:
        """Move back to the previous article in the selected group."""
        return self._pointer("LAST")

    def _fetch(self, verb: str, article_id: str | int, expect: int) -> Article:
        self.command(maybe_id(verb, article_id), expect)
        block = self._stream.iter_dot_lines()
        headers = parse_headers(block)
        body = list(block)
        return Article(headers=headers, body=body)

    def article(self, article_id: str | int = "") -> Article:
        """Fetch an article by message-id, number, or "" for the current one."""
        return self._fetch("ARTICLE", article_id, StatusCode.ARTICLE_FOLLOWS)

    def head(self, article_id: str | int = "") -> Article:
        """Fetch only the headers of an article; the body is left empty."""
        article = self._fetch("HEAD", article_id, StatusCode.HEAD_FOLLOWS)
        if article.body:
            logger.debug("Ignoring %d lines after HEAD header block", len(article.body))
        return Article(headers=article.headers)

    def body(self, article_id: str | int = "") -> list[str]:
        """Fetch only the body lines of an article."""
        _, _, lines = self.multiline_command(maybe_id("BODY", article_id), StatusCode.BODY_FOLLOWS)
        return lines

    def article_text(self, article_id: str | int = "") -> list[str]:
        """Fetch an article as unparsed text lines."""
        _, _, lines = self.multiline_command(maybe_id("ARTICLE", article_id), StatusCode.ARTICLE_FOLLOWS)
        return lines

    def head_text(self, article_id: str | int = "") -> list[str]:
        """Fetch an article's header block as unparsed text lines."""
        _, _, lines = self.multiline_command(maybe_id("HEAD", article_id), StatusCode.HEAD_FOLLOWS)
        return lines

    def overview(self, begin: int, end: int) -> list[MessageOverview]:
        """Return overview records for articles ``begin`` through ``end``.

        Reads the block through a decompressor when compression is on.
        """
        self.command(build_over(begin, end), StatusCode.OVERVIEW_FOLLOWS)
        if self._compress:
            logger.debug("Reading compressed overview data")
            with compressed_block(self._stream.reader) as block:
                lines = list(block)
        else:
            lines = self._stream.read_dot_lines()
        logger.debug("Read %d overview lines", len(lines))
        return parse_overview(lines)

    # ─── POSTING ──────────────────────────────────────────────────────

    def raw_post(self, source: str | bytes | Iterable[str]) -> str:
        """Post a text-formatted article (headers, blank line, body).

        Args:
            source: Article text as a string, a file object, or lines.
                Line endings are normalised and leading dots are escaped.

        Returns:
            The server's message for the 240 reply.
        """
        lines = list(split_lines(source))
        for line in lines:
            if "\r" in line or "\n" in line:
                raise ValueError(f"Article line contains a stray line break: {line!r}")
        self.command("POST", EXPECT_INTERMEDIATE)
        count = self._stream.write_dot_lines(lines)
        logger.info("client: <%d article lines>", count)
        _, message = self._read_status(StatusCode.ARTICLE_POSTED)
        return message

    def post(self, article: Article) -> str:
        """Post an :class:`Article` built in memory."""
        return self.raw_post(article.to_lines())
