"""Shared dependency providers for API layer."""
from __future__ import annotations

from litestar import Request

from s3clf.services.logparser import S3AccessLogConverter
from s3clf.services.conversion import LogConversionService
from s3clf.server.plugins import converter


def provide_converter() -> S3AccessLogConverter:
    """Provide the global S3AccessLogConverter instance."""
    return converter


def provide_conversion_service(request: Request) -> LogConversionService | None:
    """Provide the LogConversionService from app state.

    Returns None if the service is not running (file conversion disabled).
    """
    return getattr(request.app.state, "conversion_service", None)
