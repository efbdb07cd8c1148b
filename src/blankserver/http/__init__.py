"""
=============================================================================
REQUEST AND RESPONSE
=============================================================================

The protocol side of the server, such as it is:

    scanner.py     Finds the request line, Referer and User-Agent
    response.py    The fixed blank page and how it is sent
    access_log.py  The access-log line written for each answered request

None of these modules touch a socket directly.

=============================================================================
"""

from .scanner import ScannedRequest, scan_request, header_value, NO_VALUE
from .response import RESPONSE_PIECES, RESPONSE_BYTES, STATUS_CODE, write_response
from .access_log import AccessLogEntry, format_log_timestamp

__all__ = [
    "ScannedRequest",
    "scan_request",
    "header_value",
    "NO_VALUE",
    "RESPONSE_PIECES",
    "RESPONSE_BYTES",
    "STATUS_CODE",
    "write_response",
    "AccessLogEntry",
    "format_log_timestamp",
]
