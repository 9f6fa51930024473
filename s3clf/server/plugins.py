"""Global plugin instances and configurations.

This module provides singleton instances for:
- S3AccessLogConverter (conversion only, no file output)
- Logging configuration
"""
from __future__ import annotations

from litestar.logging import LoggingConfig

from s3clf.services.logparser.logparser import S3AccessLogConverter
from s3clf.config.settings import get_settings

settings = get_settings()

# Converter instance shared by the API and the conversion service
converter = S3AccessLogConverter(
    copy_operation=settings.filter.copy_operation,
    recalculate_partial_content=settings.filter.recalculate_partial_content,
    max_kbitrate=settings.filter.max_kbitrate,
    source=settings.filter.source,
    target=settings.filter.target,
    poll_interval=settings.conversion.poll_interval,
)

# Logging configuration
logging_config = LoggingConfig(
    root={"level": settings.api.log_level, "handlers": ["queue_listener"]},
    formatters={
        "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}
    },
    log_exceptions="always",
)
