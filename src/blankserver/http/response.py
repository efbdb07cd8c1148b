"""
=============================================================================
THE RESPONSE
=============================================================================

Every request gets the same answer, byte for byte:

    HTTP/1.1 200 OK\\r\\n
    Content-Type: text/html\\r\\n
    Last-Modified: Sat, 08 Jan 1492 01:12:12 GMT\\r\\n
    Content-Length: 15\\r\\n
    \\r\\n
    <html> </html>\\r\\n

It goes out as five separate sends. If one of them fails the client is
gone and the rest are skipped.

Content-Length is a literal, not len(body). It says 15 while the body
"<html> </html>" is 14 bytes before its trailing CRLF (16 with it). Clients
have been fine with that for a long time and the bytes on the wire are kept
exactly as they always were.

=============================================================================
"""

from typing import Tuple


STATUS_CODE = 200

RESPONSE_PIECES: Tuple[bytes, ...] = (
    b"HTTP/1.1 200 OK\r\n",
    b"Content-Type: text/html\r\n",
    b"Last-Modified: Sat, 08 Jan 1492 01:12:12 GMT\r\n",
    b"Content-Length: 15\r\n\r\n",
    b"<html> </html>\r\n",
)

RESPONSE_BYTES = b"".join(RESPONSE_PIECES)


def write_response(conn) -> bool:
    """
    Send the fixed response over a connection.

    Args:
        conn: A Connection (anything with send_piece(bytes) -> bool).

    Returns:
        True if all five pieces were sent, False at the first failure.
    """
    for piece in RESPONSE_PIECES:
        if not conn.send_piece(piece):
            return False
    return True
