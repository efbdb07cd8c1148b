"""
=============================================================================
REQUEST SCANNER
=============================================================================

Pulls the three things the server cares about out of a raw request:

    GET /index.html HTTP/1.1\\r\\n            ◄── request line (always first)
    Host: example.com\\r\\n
    Referer: http://example.com/\\r\\n        ◄── referrer
    User-Agent: curl/8.0\\r\\n                ◄── user agent
    \\r\\n

This is NOT an HTTP parser. There is no method validation, no header
folding, no case-insensitive lookup and no body handling. The request is
whatever arrived in a single read, and the scan is one left-to-right pass
over its lines.

=============================================================================
SCANNING RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ 1. Lines end at "\\n". A "\\r" right before it is dropped.           │
    │ 2. Only terminated lines count. Bytes after the last "\\n" are       │
    │    never examined, so a buffer without "\\n" has no request line.    │
    │ 3. The first line is the request line.                              │
    │ 4. Every later non-empty line is a header line.                     │
    │ 5. "Referer:" and "User-Agent:" are matched case-sensitively as     │
    │    line prefixes. The value is everything after the first space     │
    │    in the line, or "-" when the line has no space at all.           │
    └─────────────────────────────────────────────────────────────────────┘

Bytes are decoded as ISO-8859-1. Every byte maps to exactly one character,
so nothing is lost or replaced and the text can be logged as received.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Tuple


NO_VALUE = "-"
REFERER_PREFIX = "Referer:"
USER_AGENT_PREFIX = "User-Agent:"

_ENCODING = "iso-8859-1"


@dataclass(frozen=True)
class ScannedRequest:
    """
    The parts of a raw request the server uses.

    Attributes:
        request_line: First line of the request, terminator removed.
        referrer: Value of the last Referer header, or "-".
        user_agent: Value of the last User-Agent header, or "-".
        header_lines: Every non-empty line after the request line.
        consumed: Bytes scanned, up to and including the last "\\n".
    """

    request_line: str
    referrer: str = NO_VALUE
    user_agent: str = NO_VALUE
    header_lines: Tuple[str, ...] = ()
    consumed: int = 0


def header_value(line: str) -> str:
    """
    Extract the value of a raw header line.

    >>> header_value("User-Agent: curl/8.0")
    'curl/8.0'
    >>> header_value("Referer:")
    '-'
    """
    _, space, value = line.partition(" ")
    return value if space else NO_VALUE


def scan_request(data: bytes) -> Optional[ScannedRequest]:
    """
    Scan a raw request buffer.

    Args:
        data: Bytes from a single read of the client socket.

    Returns:
        The scanned request, or None if the buffer holds no terminated
        first line. None means "do not answer".
    """
    request_line: Optional[str] = None
    referrer = NO_VALUE
    user_agent = NO_VALUE
    header_lines = []

    cursor = 0
    while True:
        end = data.find(b"\n", cursor)
        if end == -1:
            break

        raw = data[cursor:end]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        cursor = end + 1

        line = raw.decode(_ENCODING)
        if request_line is None:
            request_line = line
            continue
        if not line:
            continue

        header_lines.append(line)
        if line.startswith(REFERER_PREFIX):
            referrer = header_value(line)
        elif line.startswith(USER_AGENT_PREFIX):
            user_agent = header_value(line)

    if request_line is None:
        return None

    return ScannedRequest(
        request_line=request_line,
        referrer=referrer,
        user_agent=user_agent,
        header_lines=tuple(header_lines),
        consumed=cursor,
    )
