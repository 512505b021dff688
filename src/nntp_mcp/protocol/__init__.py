"""Protocol layer: line framing, dot-blocks, headers, commands, and response parsing."""

from .errors import NNTPError, NNTPException, ProtocolError
from .framing import LineStream
from .headers import Headers, parse_headers
from .commands import StatusCode, code_matches
