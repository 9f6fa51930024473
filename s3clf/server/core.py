"""Application factory for creating Litestar app instance."""

from __future__ import annotations


from litestar import Litestar
from litestar.di import Provide
from litestar.openapi import OpenAPIConfig
from litestar.config.compression import CompressionConfig
from litestar.middleware.logging import LoggingMiddlewareConfig

from s3clf.config.settings import get_settings
from s3clf.server import plugins
from s3clf.server.lifecycle import on_startup, on_shutdown
from s3clf.server.routes import get_route_handlers
from s3clf.api.dependencies import provide_converter


def create_app() -> Litestar:
    """Create and configure the Litestar application.

    This factory function loads configuration and initializes the app
    with proper settings for OpenAPI, dependency injection, etc.

    Returns:
        Litestar: Configured application instance
    """
    # Load settings once at app creation
    settings = get_settings()

    # Configure OpenAPI
    openapi_config = OpenAPIConfig(
        title=settings.name,
        version=settings.version,
        description=settings.description,
        create_examples=True,
    )

    compression_config = CompressionConfig(
        backend="gzip",
        minimum_size=1000,  # Only compress responses >= 1KB
        gzip_compress_level=6,
    )

    logging_middleware_config = LoggingMiddlewareConfig()

    # Create app with configuration
    app = Litestar(
        debug=settings.debug,
        route_handlers=get_route_handlers(),
        on_startup=[on_startup],
        on_shutdown=[on_shutdown],
        dependencies={
            "converter": Provide(provide_converter, sync_to_thread=False),
        },
        logging_config=plugins.logging_config,
        openapi_config=openapi_config,
        compression_config=compression_config,
        middleware=[logging_middleware_config.middleware],
    )

    return app
