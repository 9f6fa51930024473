"""Exceptions raised by the S3 access log pipeline."""
from __future__ import annotations


class S3AccessLogError(Exception):
    """Base class for all S3 access log conversion errors."""


class MalformedLogLine(S3AccessLogError, ValueError):
    """The line is not in S3 access log format, or a numeric field is not an integer."""

    def __init__(self, raw_line: str, reason: str = "Line not in Amazon S3 access log format") -> None:
        self.raw_line = raw_line
        self.reason = reason
        super().__init__(f"{reason}: {raw_line!r}")


class PreconditionViolation(S3AccessLogError):
    """A transform was invoked on a record its guard does not accept."""


class UnsupportedPolicy(S3AccessLogError, ValueError):
    """Unknown copy operation policy."""

    def __init__(self, policy: str) -> None:
        self.policy = policy
        super().__init__(f"Invalid copy operation: {policy!r}")


class InvalidBitrate(S3AccessLogError, ValueError):
    """max_kbitrate must be a positive number."""

    def __init__(self, max_kbitrate: float) -> None:
        self.max_kbitrate = max_kbitrate
        super().__init__(f"Invalid max_kbitrate: {max_kbitrate!r}, must be greater than 0")
