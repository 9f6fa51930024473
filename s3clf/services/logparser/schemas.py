"""Schemas for parsed S3 access log data - pure data, no I/O."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AccessLogRecord:
    """One S3 server access log line split into its documented fields.

    Stages of the pipeline never mutate a record; they return a new one
    built with ``dataclasses.replace``.
    """

    owner: str
    bucket: str
    timestamp: str
    remote_ip: str
    requester: str
    request_id: str
    operation: str
    key: str | None
    request_uri: str
    http_status: str
    error_code: str | None
    bytes: str
    object_size: str
    total_time_ms: str
    turnaround_time_ms: str
    referrer: str
    agent: str
    version_id: str | None
    trailing_fields: str | None = None

    # Request-URI broken down, see parse_request_line
    verb: str | None = None
    request: str | None = None
    httpversion: str | None = None
    rawrequest: str | None = None


@dataclass
class ConversionResult:
    """Outcome of running one raw line through the converter."""

    raw_line: str
    output: str | None = None
    record: AccessLogRecord | None = None
    dropped: bool = field(default=False)
    tags: list[str] = field(default_factory=list)
    error: str | None = field(default=None)

    @property
    def is_failure(self) -> bool:
        return self.error is not None
