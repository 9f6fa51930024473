"""Stats API endpoint for converter statistics."""
from __future__ import annotations

from typing import Any

from litestar import get
from litestar.di import Provide

from s3clf.services.conversion import LogConversionService
from s3clf.services.logparser import S3AccessLogConverter
from s3clf.api.dependencies import provide_conversion_service as pcs


@get("/stats", dependencies={"conversion_service": Provide(pcs, sync_to_thread=False)})
async def stats(
    converter: S3AccessLogConverter,
    conversion_service: LogConversionService | None,
) -> dict[str, Any]:
    """Get converter and file conversion statistics.

    Returns:
        Dictionary with converter line counters and, when the file conversion
        service is running, its counters under "conversion".
    """
    return {
        **converter.stats(),
        "conversion": conversion_service.stats() if conversion_service else None,
    }
