"""Application lifecycle hooks for startup and shutdown."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from s3clf.config.settings import get_settings
from s3clf.server.plugins import converter
from s3clf.services.conversion import LogConversionService

if TYPE_CHECKING:
    from litestar import Litestar

logger = logging.getLogger(__name__)


async def on_startup(app: "Litestar") -> None:
    """Start the file conversion service when it is enabled."""
    settings = get_settings()
    if not settings.conversion.enabled:
        logger.info("File conversion disabled, serving the API only.")
        return

    conversion_service = LogConversionService(
        converter=converter,
        input_path=settings.conversion.input_path,
        output_path=settings.conversion.output_path,
        batch_size=settings.conversion.batch_size,
        flush_interval=settings.conversion.flush_interval,
        follow=settings.conversion.follow,
        start_at_end=settings.conversion.start_at_end,
    )

    # Store in app state for shutdown and API access
    app.state.conversion_service = conversion_service

    await conversion_service.start(
        skip_validation=settings.conversion.skip_validation,
    )


async def on_shutdown(app: "Litestar") -> None:
    """Gracefully stop background services."""
    conversion_service: LogConversionService | None = getattr(
        app.state, "conversion_service", None
    )
    if conversion_service:
        await conversion_service.stop(timeout=5.0)
