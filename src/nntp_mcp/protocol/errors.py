"""Error types raised by the protocol layer.

Two disjoint kinds exist: :class:`NNTPError` carries a status the server
sent back, :class:`ProtocolError` describes data that breaks the wire
grammar despite a successful status.
"""

from __future__ import annotations


class NNTPException(Exception):
    """Base class for all NNTP errors."""


class NNTPError(NNTPException):
    """An error response reported by the server."""

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(code, message)

    def __str__(self) -> str:
        return f"{self.code:03d} {self.message}"


class ProtocolError(NNTPException):
    """A response that does not look like valid NNTP."""
