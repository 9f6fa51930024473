"""Log conversion service - streams S3 access log files into CLF files.

This service orchestrates:
- Reading and converting lines via S3AccessLogConverter
- Buffering CLF lines and appending them to the output file in batches
- Background task lifecycle (start/stop)
"""
from __future__ import annotations
import os
import logging
import asyncio
from asyncio import Task
import time
from pathlib import Path

import aiofiles

from s3clf.services.logparser.constants import RECALCULATED_TAG
from s3clf.services.logparser.schemas import ConversionResult
from s3clf.services.logparser.logparser import S3AccessLogConverter, wait


logger = logging.getLogger(__name__)


class LogConversionService:
    """Orchestrates conversion of an S3 access log file into a CLF file.

    Example:
        service = LogConversionService(
            converter=converter,
            input_path=Path("access.log"),
            output_path=Path("access.clf.log"),
        )
        await service.start()
        # ... later ...
        await service.stop()
    """

    def __init__(
        self,
        converter: S3AccessLogConverter,
        input_path: Path,
        output_path: Path,
        *,
        batch_size: int = 100,
        flush_interval: float = 5.0,
        follow: bool = False,
        start_at_end: bool = False,
    ) -> None:
        """Initialize the log conversion service.

        Args:
            converter: S3AccessLogConverter instance for converting lines.
            input_path: S3 server access log file to read.
            output_path: File the CLF lines are appended to.
            batch_size: Maximum buffered lines before a forced write.
            flush_interval: Maximum seconds between writes.
            follow: Keep following the input file after reaching its end.
            start_at_end: Skip lines already present in the input file.
        """
        self.converter: S3AccessLogConverter = converter
        self.input_path: Path = input_path
        self.output_path: Path = output_path
        self.batch_size: int = batch_size
        self.flush_interval: float = flush_interval
        self.follow: bool = follow
        self.start_at_end: bool = start_at_end

        # Background task management
        self._stop_event: asyncio.Event | None = None
        self._conversion_task: asyncio.Task[None] | None = None

        self._pending: list[str] = []

        # Statistics
        self.total_processed: int = 0
        self.total_written: int = 0
        self.total_failed: int = 0
        self.total_dropped: int = 0
        self.total_recalculated: int = 0

    @property
    def is_running(self) -> bool:
        """Return True if conversion task is running."""
        return self._conversion_task is not None and not self._conversion_task.done()

    @property
    def pending_lines(self) -> int:
        """Return the number of converted lines not yet written."""
        return len(self._pending)

    @wait(timeout_seconds=60)
    def log_file_exists(self, log_path: Path) -> bool:
        """Try for 60 seconds to check if the log file exists."""
        logger.debug(f"Checking if log file {log_path} exists.")
        if not os.path.exists(log_path):
            logger.warning(f"Log file {log_path} does not exist.")
            return False
        logger.info(f"Log file {log_path} exists.")
        return True

    async def start(self, *, skip_validation: bool = False) -> None:
        """Start the conversion background task.

        Args:
            skip_validation: Skip initial log format validation.
        """
        if self.is_running:
            logger.warning("Conversion already running")
            return

        self._stop_event = asyncio.Event()
        self.converter.set_stop_event(self._stop_event)

        self._conversion_task: Task[None] = asyncio.create_task(
            self.run(skip_validation=skip_validation),
            name="log-conversion",
        )
        logger.info(
            "Started log conversion service (batch_size=%d, flush_interval=%.1fs)",
            self.batch_size,
            self.flush_interval,
        )

    async def stop(self, timeout: float = 10.0) -> None:
        """Stop the conversion gracefully.

        Args:
            timeout: Seconds to wait before force-cancelling.
        """
        if not self._stop_event or not self._conversion_task:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._conversion_task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Conversion did not stop gracefully, cancelling")
            self._conversion_task.cancel()
            try:
                await self._conversion_task
            except asyncio.CancelledError:
                pass
        except asyncio.CancelledError:
            pass

        logger.info(
            "Stopped log conversion service. Total processed: %d", self.total_processed
        )

    async def run(self, *, skip_validation: bool = False) -> None:
        """Core conversion loop. Returns at end of file unless following."""
        last_flush: float = time.monotonic()
        # Validate files exist
        if not await asyncio.to_thread(self.log_file_exists, self.input_path):
            logger.error(
                "Cannot start conversion: log file does not exist at %s",
                self.input_path,
            )
            return
        if not skip_validation:
            if not await asyncio.to_thread(self.converter.validate_log_format, self.input_path):
                logger.warning("Log file format invalid, lines will be tagged as parse failures.")
        try:
            async for result in self.converter.iter_converted(
                self.input_path, start_at_end=self.start_at_end, follow=self.follow
            ):
                # Check for interval-based flush
                now: float = time.monotonic()
                if self._pending and (now - last_flush) >= self.flush_interval:
                    await self._flush()
                    last_flush = now

                # None = idle tick
                if result is None:
                    continue

                self._process_result(result)

                # Check for batch-size flush
                if len(self._pending) >= self.batch_size:
                    await self._flush()
                    last_flush = time.monotonic()

        except asyncio.CancelledError:
            logger.info("Conversion cancelled")
            raise
        except Exception as e:
            logger.exception("Conversion loop error: %s", e)
            raise
        finally:
            # Final flush
            if self._pending:
                try:
                    await self._flush()
                except OSError as e:
                    logger.exception("Final flush failed: %s", e)

    def _process_result(self, result: ConversionResult) -> None:
        """Buffer a converted line and update counters."""
        self.total_processed += 1
        if result.dropped:
            self.total_dropped += 1
            return
        if result.is_failure or result.output is None:
            self.total_failed += 1
            return
        if RECALCULATED_TAG in result.tags:
            self.total_recalculated += 1
        self._pending.append(result.output)

    async def _flush(self) -> None:
        """Append buffered lines to the output file."""
        lines = list(self._pending)
        async with aiofiles.open(self.output_path, "a", encoding="utf-8") as out:
            await out.write("".join(f"{line}\n" for line in lines))
        # Only drop what was written; a failed write keeps the buffer for retry
        del self._pending[: len(lines)]
        self.total_written += len(lines)
        logger.debug("Wrote %d lines to %s", len(lines), self.output_path)

    def stats(self) -> dict[str, int | bool]:
        """Return the service counters."""
        return {
            "total_processed": self.total_processed,
            "total_written": self.total_written,
            "total_failed": self.total_failed,
            "total_dropped": self.total_dropped,
            "total_recalculated": self.total_recalculated,
            "pending_lines": self.pending_lines,
            "is_running": self.is_running,
        }
