"""Patterns and constants for the S3 server access log format.

Amazon S3 Server Access Log Format is documented at:
    http://docs.aws.amazon.com/AmazonS3/latest/dev/LogFormat.html

Apache Combined Log Format is documented at:
    https://httpd.apache.org/docs/trunk/logs.html#combined
"""
import re
from functools import lru_cache

PLACEHOLDER = "-"

# REST.COPY.OBJECT_GET lines carry no request line.
# See: http://docs.aws.amazon.com/AmazonS3/latest/dev/LogFormat.html#AdditionalLoggingforCopyOperations
S3_COPY_OPERATION = "REST.COPY.OBJECT_GET"

COPY_OPERATION_CONVERT = "convert"
COPY_OPERATION_DROP = "drop"
COPY_OPERATIONS = (COPY_OPERATION_CONVERT, COPY_OPERATION_DROP)

PARSE_FAILURE_TAG = "_s3parsefailure"
RECALCULATED_TAG = "bytes_recalculated"

APACHE_CLF_FORMAT = "%s - %s [%s] %s %d %d %s %s %d"
REQUESTER_MAX_LENGTH = 10

DEFAULT_MAX_KBITRATE = 24000
PARTIAL_CONTENT_STATUS = 206
PARTIAL_CONTENT_SUFFIX = ".mp3"
PARTIAL_CONTENT_BUFFER_BYTES = 128 * 1024
# bits per millisecond, i.e. 2 Mbit/s
PARTIAL_CONTENT_MAX_OBSERVED_BITRATE = 2000

_PLAIN = r"[^ ]*"
_QUOTED = r'"[^"]*"|-'


@lru_cache(maxsize=1)
def access_log_pattern() -> re.Pattern[str]:
    """Return the compiled pattern for the 18 documented fields plus trailing fields."""
    return re.compile(
        rf"(?P<owner>{_PLAIN}) "
        rf"(?P<bucket>{_PLAIN}) "
        r"\[(?P<timestamp>[^\]]*)\] "
        rf"(?P<remote_ip>{_PLAIN}) "
        rf"(?P<requester>{_PLAIN}) "
        rf"(?P<request_id>{_PLAIN}) "
        rf"(?P<operation>{_PLAIN}) "
        rf"(?P<key>{_PLAIN}) "
        rf"(?P<request_uri>{_QUOTED}) "
        rf"(?P<http_status>{_PLAIN}) "
        rf"(?P<error_code>{_PLAIN}) "
        rf"(?P<bytes>{_PLAIN}) "
        rf"(?P<object_size>{_PLAIN}) "
        rf"(?P<total_time_ms>{_PLAIN}) "
        rf"(?P<turnaround_time_ms>{_PLAIN}) "
        rf"(?P<referrer>{_QUOTED}) "
        rf"(?P<agent>{_QUOTED}) "
        rf"(?P<version_id>{_PLAIN})"
        r"(?P<trailing_fields> ?.*)"
    )


@lru_cache(maxsize=1)
def request_line_pattern() -> re.Pattern[str]:
    """Return the pattern for 'GET /some/key.mp4 HTTP/1.1'."""
    return re.compile(r"(?P<verb>\b\w+\b) (?P<request>\S+)(?: HTTP/(?P<httpversion>\d+\.\d+))?")
