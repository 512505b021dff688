"""Transport layer: dialing plain or TLS connections to a news server."""

from .tcp_connection import TCPConnection
