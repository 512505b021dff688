"""TCP and TLS connections to an NNTP server.

The connection only dials the socket and exposes it as a
:class:`~nntp_mcp.protocol.framing.LineStream`; reading the greeting and
everything after it is the session's job.
"""

from __future__ import annotations

import logging
import socket
import ssl
from dataclasses import dataclass

from ..protocol.framing import LineStream

logger = logging.getLogger(__name__)

DEFAULT_PORT = 119
DEFAULT_TLS_PORT = 563
DEFAULT_TIMEOUT = 30.0


@dataclass
class Endpoint:
    """Where the connection points."""

    host: str
    port: int
    use_tls: bool = False

    def __str__(self) -> str:
        scheme = "nntps" if self.use_tls else "nntp"
        return f"{scheme}://{self.host}:{self.port}"


class TCPConnection:
    """Manages the socket to a news server.

    Usage::

        conn = TCPConnection("news.example.com", use_tls=True)
        stream = conn.open()
        ...
        conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int | None = None,
        use_tls: bool = False,
        timeout: float | None = DEFAULT_TIMEOUT,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        if not host:
            raise ValueError("Host must not be empty")
        if port is None:
            port = DEFAULT_TLS_PORT if use_tls else DEFAULT_PORT
        self._endpoint = Endpoint(host=host, port=port, use_tls=use_tls)
        self._timeout = timeout
        self._ssl_context = ssl_context
        self._socket: socket.socket | None = None
        self._stream: LineStream | None = None

    @property
    def connected(self) -> bool:
        return self._stream is not None and not self._stream.closed

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    def open(self) -> LineStream:
        """Dial the server and return a line stream over the socket.

        Raises:
            ConnectionError: If the socket or TLS handshake fails.
        """
        if self.connected:
            return self._stream

        endpoint = self._endpoint
        try:
            sock = socket.create_connection((endpoint.host, endpoint.port), timeout=self._timeout)
            if endpoint.use_tls:
                context = self._ssl_context or ssl.create_default_context()
                sock = context.wrap_socket(sock, server_hostname=endpoint.host)
        except OSError as e:
            raise ConnectionError(f"Could not connect to {endpoint}: {e}") from e

        self._socket = sock
        self._stream = LineStream(sock.makefile("rb"), sock.makefile("wb"))
        logger.info("Connected to %s", endpoint)
        return self._stream

    def close(self) -> None:
        """Close the stream and the socket."""
        if self._socket is None:
            return
        try:
            if self._stream is not None:
                self._stream.close()
            self._socket.close()
        except OSError as e:
            logger.warning("Error closing connection: %s", e)
        finally:
            self._socket = None
            self._stream = None
            logger.info("Disconnected from %s", self._endpoint)
