"""Services layer - parsing, conversion and background tasks."""
from .logparser import S3AccessLogConverter
from .conversion import LogConversionService

__all__ = ["S3AccessLogConverter", "LogConversionService"]
