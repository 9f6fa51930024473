from collections.abc import AsyncGenerator, MutableMapping
import re
import os
import time
import logging
import asyncio
from functools import wraps, lru_cache
from pathlib import Path
from typing import Any, ParamSpec, Callable

import aiofiles
import aiofiles.os

from .clf import to_apache_clf
from .constants import (
    COPY_OPERATION_CONVERT,
    COPY_OPERATION_DROP,
    COPY_OPERATIONS,
    DEFAULT_MAX_KBITRATE,
    PARSE_FAILURE_TAG,
    RECALCULATED_TAG,
    access_log_pattern,
)
from .errors import InvalidBitrate, S3AccessLogError, UnsupportedPolicy
from .schemas import ConversionResult
from .tokenizer import parse_line
from .transforms import convert_copy_operation, estimate_partial_content_bytes, is_copy_operation


logger = logging.getLogger(__name__)

P = ParamSpec("P")


def wait(timeout_seconds: int = 60) -> Callable[[Callable[P, bool]], Callable[P, bool]]:
    """Factory Decorator to wait for a function to return True for a given amount of time.

    Args:
        timeout_seconds (int, optional): Defaults to 60.
    """
    def decorator(func: Callable[P, bool]) -> Callable[P, bool]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> bool:
            # Allow tests to bypass retry loops
            if os.getenv("DISABLE_WAIT", "false").lower() == "true":
                return bool(func(*args, **kwargs))
            timeout: float = time.time() + timeout_seconds
            while time.time() < timeout:
                if func(*args, **kwargs):
                    return True
                time.sleep(1)
            logger.error(f"Timeout of {timeout_seconds} seconds reached on {func.__name__} function.")
            return False
        return wrapper
    return decorator


class S3AccessLogConverter:
    """Converts Amazon S3 Server Access Log lines to Apache Combined Log Format.

    This module handles:
    - Parsing S3 access log lines into AccessLogRecord values
    - Dropping or converting REST.COPY.OBJECT_GET lines
    - Recalculating bytes for 206 Partial Content mp3 requests
    - Writing CLF output into events or streaming it from files

    The config should look like this:

        S3AccessLogConverter(
            copy_operation="drop",  # "drop" or "convert" ("convert" the default)
            recalculate_partial_content=True,
            max_kbitrate=24000,
        )
    """

    def __init__(
        self,
        copy_operation: str = COPY_OPERATION_CONVERT,
        recalculate_partial_content: bool = False,
        max_kbitrate: float = DEFAULT_MAX_KBITRATE,
        source: str = "message",
        target: str | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        """Set up the converter.

        Args:
            copy_operation (str, optional): How to handle REST.COPY.OBJECT_GET lines,
                "convert" to POST requests or "drop" them. Defaults to "convert".
            recalculate_partial_content (bool, optional): Estimate realistic byte counts
                for 206 Partial Content requests. Defaults to False.
            max_kbitrate (float, optional): Bitrate in bits/sec used for the estimate. Defaults to 24000.
            source (str, optional): Event field holding the raw line. Defaults to "message".
            target (str | None, optional): Event field to write CLF into. Defaults to source.
            poll_interval (float, optional): How often to check for new lines when following a file.

        Raises:
            UnsupportedPolicy: copy_operation is not "convert" or "drop".
            InvalidBitrate: max_kbitrate is not greater than 0.
        """
        if copy_operation not in COPY_OPERATIONS:
            raise UnsupportedPolicy(copy_operation)
        if max_kbitrate <= 0:
            raise InvalidBitrate(max_kbitrate)

        self.copy_operation = copy_operation
        self.recalculate_partial_content = recalculate_partial_content
        self.max_kbitrate = max_kbitrate
        self.source = source
        self.target = target or source
        self.poll_interval = poll_interval

        # Statistics
        self.parsed_lines: int = 0
        self.skipped_lines: int = 0
        self.dropped_lines: int = 0
        self.converted_copy_lines: int = 0
        self.recalculated_lines: int = 0

        # Stop event for graceful shutdown (set by conversion service)
        self._stop_event: asyncio.Event | None = None

        logger.debug("Copy operation: %s", self.copy_operation)
        logger.debug("Recalculate partial content: %s", self.recalculate_partial_content)
        logger.debug("Max kbitrate: %s", self.max_kbitrate)

    def set_stop_event(self, event: asyncio.Event) -> None:
        """Set the stop event for graceful shutdown."""
        self._stop_event = event

    def stats(self) -> dict[str, int]:
        """Return the line counters."""
        return {
            "parsed_lines": self.parsed_lines,
            "skipped_lines": self.skipped_lines,
            "dropped_lines": self.dropped_lines,
            "converted_copy_lines": self.converted_copy_lines,
            "recalculated_lines": self.recalculated_lines,
        }

    def merge_stats(self, other: "S3AccessLogConverter") -> None:
        """Add the line counters of another converter to this one."""
        for name, count in other.stats().items():
            setattr(self, name, getattr(self, name) + count)

    @lru_cache(maxsize=1024)
    def validate_log_line(self, log_line: str) -> re.Match[str] | None:
        """Validate the log line against the S3 access log pattern."""
        return access_log_pattern().match(log_line.rstrip("\r\n"))

    @wait(timeout_seconds=60)
    def validate_log_format(self, log_path: Path) -> bool:  # regex tester
        """Try for 60 seconds and validate that the log format is correct by checking the last 3 lines."""
        LAST_LINE_COUNT = 3
        try:
            with open(log_path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.readlines()[-LAST_LINE_COUNT:]
        except OSError as e:
            logger.warning("Could not read log file %s: %s", log_path, e)
            return False
        for line in lines:
            if self.validate_log_line(line):
                logger.info("Log file format is valid!")
                return True
        logger.debug("Testing log format")
        return False

    def convert_line(self, line: str) -> ConversionResult:
        """Run one raw line through parse, copy operation policy, recalculation and CLF output.

        Lines that fail to parse are tagged with '_s3parsefailure' and carry the
        error message; no output is produced for them.
        """
        raw_line = line.rstrip("\r\n")
        try:
            record = parse_line(raw_line)
            result = ConversionResult(raw_line=raw_line, record=record)

            if is_copy_operation(record):
                if self.copy_operation == COPY_OPERATION_DROP:
                    logger.debug("Dropping copy operation: %s", raw_line)
                    self.dropped_lines += 1
                    result.dropped = True
                    return result
                record = convert_copy_operation(record)
                self.converted_copy_lines += 1

            if self.recalculate_partial_content:
                estimated = estimate_partial_content_bytes(record, self.max_kbitrate)
                if estimated is not record:
                    result.tags.append(RECALCULATED_TAG)
                    self.recalculated_lines += 1
                record = estimated

            result.record = record
            result.output = to_apache_clf(record)
        except S3AccessLogError as e:
            self.skipped_lines += 1
            logger.warning("Exception for S3 access log. raw=%r exception=%s", raw_line, e)
            return ConversionResult(raw_line=raw_line, tags=[PARSE_FAILURE_TAG], error=str(e))

        self.parsed_lines += 1
        return result

    def filter(self, event: MutableMapping[str, Any]) -> bool:
        """Convert the source field of an event in place.

        Writes the CLF line into the target field and appends tags to
        event["tags"]. A failed line keeps its source value and is tagged.

        Returns:
            False if the event should be cancelled (dropped copy operation), True otherwise.
        """
        logger.debug("Running S3 Server Access Log filter: %s", event)
        source_line = event.get(self.source)
        if not isinstance(source_line, str):
            result = ConversionResult(
                raw_line=repr(source_line),
                tags=[PARSE_FAILURE_TAG],
                error=f"Field {self.source} is not a string",
            )
            self.skipped_lines += 1
            logger.warning("Exception for S3 access log. source=%s raw=%r", self.source, source_line)
        else:
            result = self.convert_line(source_line)

        if result.dropped:
            return False

        if result.tags:
            tags = event.setdefault("tags", [])
            tags.extend(tag for tag in result.tags if tag not in tags)
        if result.output is not None:
            event[self.target] = result.output

        logger.debug("Event after S3AccessLog filter: %s", event)
        return True

    async def iter_converted(
        self, log_path: Path, *, start_at_end: bool = False, follow: bool = False
    ) -> AsyncGenerator[ConversionResult | None, None]:
        """Async generator that reads a log file and yields a ConversionResult per line.

        Args:
            log_path: S3 access log file to read.
            start_at_end: If True, seek to end of file (tail -f behavior).
            follow: Keep polling for new lines after reaching the end of the file.

        Yields:
            ConversionResult for each line (converted, dropped or failed).
            None when following and no new line is available (idle).
        """
        # Undecodable bytes become U+FFFD so one bad line cannot stop the stream
        async with aiofiles.open(log_path, "r", encoding="utf-8", errors="replace") as file:
            if start_at_end:
                stat_result = await aiofiles.os.stat(log_path)
                await file.seek(stat_result.st_size)

            logger.info("Streaming S3 access log lines from %s.", log_path)

            while not (self._stop_event and self._stop_event.is_set()):
                line = await file.readline()

                if not line:
                    if not follow:
                        return
                    # No new data; yield None to signal idle
                    yield None
                    await asyncio.sleep(self.poll_interval)
                    continue

                if not line.strip():
                    continue

                yield self.convert_line(line)
