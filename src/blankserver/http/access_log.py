"""
=============================================================================
ACCESS LOG
=============================================================================

One line per answered request, close to the Apache combined format:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ 10.0.0.7 - - [10/Jun/2024:10:55:36 +0000] - "GET / HTTP/1.1" 200 78 │
    │     "http://example.com/" "curl/8.0"                                │
    │ ─────────────────────────────────────────────────────────────────── │
    │ IP           Timestamp (UTC)     Request line  Status Size          │
    │     Referrer              User agent                                │
    └─────────────────────────────────────────────────────────────────────┘

The size column is the number of request bytes the scanner walked over,
not the size of the response. Log consumers that already read these
lines depend on that, so it stays.

=============================================================================
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .response import STATUS_CODE
from .scanner import ScannedRequest


# Fixed English abbreviations; strftime("%b") follows the process locale.
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def format_log_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a time as DD/Mon/YYYY:HH:MM:SS +0000 in UTC.

    Naive datetimes are taken to be UTC already.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)

    return (
        f"{moment.day:02d}/{_MONTHS[moment.month - 1]}/{moment.year:04d}:"
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d} +0000"
    )


@dataclass(frozen=True)
class AccessLogEntry:
    """
    A single access-log record.

    Built once per answered request and written straight to the
    access logger; nothing keeps it afterwards.
    """

    client_ip: str
    timestamp: str
    request_line: str
    status: int
    size: int
    referrer: str
    user_agent: str

    @classmethod
    def from_request(
        cls,
        client_ip: str,
        request: ScannedRequest,
        moment: Optional[datetime] = None,
    ) -> "AccessLogEntry":
        return cls(
            client_ip=client_ip,
            timestamp=format_log_timestamp(moment),
            request_line=request.request_line,
            status=STATUS_CODE,
            size=request.consumed,
            referrer=request.referrer,
            user_agent=request.user_agent,
        )

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] - '
            f'"{self.request_line}" {self.status} {self.size} '
            f'"{self.referrer}" "{self.user_agent}"'
        )
