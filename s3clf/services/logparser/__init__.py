"""S3 access log parsing and CLF conversion - no file output or server code."""
from .clf import to_apache_clf
from .errors import (
    InvalidBitrate,
    MalformedLogLine,
    PreconditionViolation,
    S3AccessLogError,
    UnsupportedPolicy,
)
from .logparser import S3AccessLogConverter
from .schemas import AccessLogRecord, ConversionResult
from .tokenizer import parse_line, parse_request_line, tokenize
from .transforms import convert_copy_operation, estimate_partial_content_bytes, is_copy_operation

__all__ = [
    "S3AccessLogConverter",
    "AccessLogRecord",
    "ConversionResult",
    "S3AccessLogError",
    "MalformedLogLine",
    "PreconditionViolation",
    "UnsupportedPolicy",
    "InvalidBitrate",
    "tokenize",
    "parse_request_line",
    "parse_line",
    "is_copy_operation",
    "convert_copy_operation",
    "estimate_partial_content_bytes",
    "to_apache_clf",
]
