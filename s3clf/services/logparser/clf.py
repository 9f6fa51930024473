"""Apache Combined Log Format output.

Apache Combined Log Format is documented at:
    https://httpd.apache.org/docs/trunk/logs.html#combined
"""
from __future__ import annotations

from decimal import Decimal

from .constants import APACHE_CLF_FORMAT, PLACEHOLDER, REQUESTER_MAX_LENGTH
from .errors import MalformedLogLine
from .schemas import AccessLogRecord
from .utils import parse_int, round_half_up


def requester(record: AccessLogRecord) -> str:
    """Shorten requester to max 10 characters."""
    return record.requester[:REQUESTER_MAX_LENGTH]


def duration(record: AccessLogRecord) -> int:
    """Total time in whole seconds, halves rounded up."""
    if record.total_time_ms == PLACEHOLDER:
        return 0
    total_time_ms = parse_int(record.total_time_ms, "total_time_ms")
    return round_half_up(Decimal(total_time_ms) / 1000)


def to_apache_clf(record: AccessLogRecord) -> str:
    """Render the record as one Combined Log Format line.

    Output bytes are the Bytes Sent field, never Object Size.

    Raises:
        MalformedLogLine: http_status, bytes or total_time_ms is not an integer,
            or bytes is negative.
    """
    bytes_sent = parse_int(record.bytes, "bytes")
    if bytes_sent < 0:
        raise MalformedLogLine(record.bytes, "Field bytes is negative")
    return APACHE_CLF_FORMAT % (
        record.remote_ip,
        requester(record),
        record.timestamp,
        record.request_uri,
        parse_int(record.http_status, "http_status"),
        bytes_sent,
        record.referrer,
        record.agent,
        duration(record),
    )
