"""NNTP client library and MCP server for reading and posting news articles."""

from .protocol.errors import NNTPError, NNTPException, ProtocolError
from .session import Session

__version__ = "0.1.0"
