"""Split raw S3 access log lines into AccessLogRecord values.

Field order (http://docs.aws.amazon.com/AmazonS3/latest/dev/LogFormat.html):

    1 Bucket Owner      7 Operation       13 Object Size
    2 Bucket            8 Key             14 Total Time
    3 Time              9 Request-URI     15 Turn-Around Time
    4 Remote IP        10 HTTP status     16 Referrer
    5 Requester        11 Error Code      17 User-Agent
    6 Request ID       12 Bytes Sent      18 Version Id

Anything after field 18 (Host Id, Signature Version, ...) is kept as one
opaque ``trailing_fields`` string.
"""
from __future__ import annotations

import logging
from dataclasses import replace

from .constants import PLACEHOLDER, access_log_pattern, request_line_pattern
from .errors import MalformedLogLine
from .schemas import AccessLogRecord

logger = logging.getLogger(__name__)


def _convert_to_none(value: str) -> str | None:
    """Convert the '-' placeholder to None for optional fields."""
    return None if value == PLACEHOLDER else value


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def tokenize(line: str) -> AccessLogRecord:
    """Split a raw log line into an AccessLogRecord.

    The request line is not broken down here, see parse_request_line.

    Raises:
        MalformedLogLine: The line does not match the 18 field format.
    """
    raw_line = line.rstrip("\r\n")
    matched = access_log_pattern().match(raw_line)
    if not matched:
        raise MalformedLogLine(line)

    datadict = matched.groupdict()
    return AccessLogRecord(
        owner=datadict["owner"],
        bucket=datadict["bucket"],
        timestamp=datadict["timestamp"],
        remote_ip=datadict["remote_ip"],
        requester=datadict["requester"],
        request_id=datadict["request_id"],
        operation=datadict["operation"],
        key=_convert_to_none(datadict["key"]),
        request_uri=datadict["request_uri"],
        http_status=datadict["http_status"],
        error_code=_convert_to_none(datadict["error_code"]),
        bytes="0" if datadict["bytes"] == PLACEHOLDER else datadict["bytes"],
        object_size=datadict["object_size"],
        total_time_ms=datadict["total_time_ms"],
        turnaround_time_ms=datadict["turnaround_time_ms"],
        referrer=datadict["referrer"],
        agent=datadict["agent"],
        version_id=_convert_to_none(datadict["version_id"]),
        trailing_fields=datadict["trailing_fields"].strip() or None,
    )


def parse_request_line(record: AccessLogRecord) -> AccessLogRecord:
    """Break request_uri down into verb, request and httpversion.

    'GET /11625060-v901740/J1084854-mp4.mp4 HTTP/1.1' gives
    ('GET', '/11625060-v901740/J1084854-mp4.mp4', '1.1'). Anything else,
    including '-', ends up in rawrequest.
    """
    inner = _strip_quotes(record.request_uri)
    matched = request_line_pattern().match(inner)
    if matched:
        return replace(
            record,
            verb=matched.group("verb"),
            request=matched.group("request"),
            httpversion=matched.group("httpversion"),
            rawrequest=None,
        )
    logger.debug("Request-URI %s is not a request line", record.request_uri)
    return replace(record, verb=None, request=None, httpversion=None, rawrequest=inner)


def parse_line(line: str) -> AccessLogRecord:
    """Tokenize a line and break down its request line."""
    return parse_request_line(tokenize(line))
