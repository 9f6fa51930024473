"""Corrections applied to a parsed record before it is written as CLF."""
from __future__ import annotations

import logging
from dataclasses import replace

from .constants import (
    PARTIAL_CONTENT_BUFFER_BYTES,
    PARTIAL_CONTENT_MAX_OBSERVED_BITRATE,
    PARTIAL_CONTENT_STATUS,
    PARTIAL_CONTENT_SUFFIX,
    PLACEHOLDER,
    S3_COPY_OPERATION,
)
from .errors import PreconditionViolation
from .schemas import AccessLogRecord
from .tokenizer import parse_request_line
from .utils import parse_int, round_half_up

logger = logging.getLogger(__name__)


def is_copy_operation(record: AccessLogRecord) -> bool:
    """Return True for the request-less REST.COPY.OBJECT_GET lines S3 adds for copies."""
    return record.request_uri == PLACEHOLDER and record.operation == S3_COPY_OPERATION


def convert_copy_operation(record: AccessLogRecord) -> AccessLogRecord:
    """Rewrite a copy operation line as a 'POST /<key>' request.

    The referrer becomes the quoted operation name and the agent '"-"'.
    See: http://docs.aws.amazon.com/AmazonS3/latest/dev/LogFormat.html#AdditionalLoggingforCopyOperations

    Raises:
        PreconditionViolation: The record is not a copy operation.
    """
    if not is_copy_operation(record):
        raise PreconditionViolation(
            f"Not a {S3_COPY_OPERATION}: {record.operation} {record.request_uri}"
        )
    converted = replace(
        record,
        referrer=f'"{record.operation}"',
        agent='"-"',
        request_uri=f'"POST /{record.key or ""} HTTP/1.1"',
        bytes="0",
    )
    return parse_request_line(converted)


def _observed_bitrate(bytes_sent: int, total_time_ms: int) -> int:
    """Bits per millisecond, integer division."""
    return (bytes_sent * 8) // total_time_ms


def estimate_partial_content_bytes(record: AccessLogRecord, max_kbitrate: float) -> AccessLogRecord:
    """Estimate the bytes a client really received for a 206 Partial Content mp3.

    S3 logs the bytes pushed onto the network, which for ranged audio requests
    is far more than the device consumed. When the logged bitrate exceeds
    2 Mbit/s the byte count is capped at a 128 KiB buffer plus ``max_kbitrate``
    bits per second for the duration of the request (24000 -> 3 bytes/ms).

    The returned record never has more bytes than the input one.
    """
    if not (record.key or "").endswith(PARTIAL_CONTENT_SUFFIX):
        return record
    if record.total_time_ms == PLACEHOLDER:
        return record

    status = parse_int(record.http_status, "http_status")
    bytes_sent = parse_int(record.bytes, "bytes")
    total_time_ms = parse_int(record.total_time_ms, "total_time_ms")

    if status != PARTIAL_CONTENT_STATUS or total_time_ms <= 0:
        return record
    if _observed_bitrate(bytes_sent, total_time_ms) <= PARTIAL_CONTENT_MAX_OBSERVED_BITRATE:
        return record

    bytes_per_ms = round_half_up(max_kbitrate / 8000.0)
    estimated = min(PARTIAL_CONTENT_BUFFER_BYTES + bytes_per_ms * total_time_ms, bytes_sent)
    if estimated == bytes_sent:
        return record
    logger.debug(
        "Recalculated bytes for %s: %d -> %d (%d ms)",
        record.key,
        bytes_sent,
        estimated,
        total_time_ms,
    )
    return replace(record, bytes=str(estimated))
