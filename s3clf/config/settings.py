from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from s3clf.services.logparser.constants import DEFAULT_MAX_KBITRATE


class FilterSettings(BaseSettings):
    """S3 access log filter configuration settings."""

    model_config = SettingsConfigDict(env_prefix="FILTER_", env_file=".env", extra="ignore")

    source: str = Field(default="message", description="Event field holding the raw S3 access log line")
    target: str = Field(
        default="message",
        description="Event field to write the CLF line into. Defaults to overwriting the source field.",
    )
    copy_operation: Literal["convert", "drop"] = Field(
        default="convert",
        description="How to handle REST.COPY.OBJECT_GET lines. Either drop or convert to POST requests.",
    )
    recalculate_partial_content: bool = Field(
        default=False,
        description="Recalculate 206 Partial Content requests to reasonable byte counts. "
        "Don't pass cost of buffering at S3 to customers.",
    )
    max_kbitrate: float = Field(
        default=DEFAULT_MAX_KBITRATE,
        gt=0,
        description="Bitrate in bits/sec assumed when recalculating partial content",
    )


class ConversionSettings(BaseSettings):
    """File conversion service configuration settings."""

    model_config = SettingsConfigDict(env_prefix="CONVERSION_", env_file=".env", extra="ignore")

    enabled: bool = Field(default=False, description="Start the file conversion service on startup")
    input_path: Path = Field(
        default=Path("/var/log/s3/access.log"),
        description="Path to the S3 server access log file",
    )
    output_path: Path = Field(
        default=Path("/var/log/s3/access.clf.log"),
        description="Path to append the Combined Log Format lines to",
    )
    poll_interval: float = Field(
        default=1.0,
        description="Interval in seconds to poll the input file for new lines",
    )
    follow: bool = Field(default=False, description="Keep following the input file for new lines")
    start_at_end: bool = Field(default=False, description="Skip lines already in the input file")
    batch_size: int = Field(
        default=100,
        gt=0,
        description="Max lines buffered before a forced write.",
    )
    flush_interval: float = Field(
        default=5.0,
        description="Maximum time interval in seconds between writes. This will write even if batch_size is not reached.",
    )
    skip_validation: bool = Field(
        default=False,
        description="Skip validation of the input file format.",
    )

    @model_validator(mode="after")
    def validate_paths(self) -> "ConversionSettings":
        """Ensure the service does not write into the file it reads."""
        if self.input_path == self.output_path:
            raise ValueError(f"Input and output path must differ: {self.input_path}")
        return self


class APISettings(BaseSettings):
    """API server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="API_", env_file=".env", extra="ignore")

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8000, description="API server port")
    workers: int = Field(default=1, description="Number of worker processes")
    reload: bool = Field(default=False, description="Enable auto-reload on code changes")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


class Settings(BaseSettings):
    """Main application settings.

    This class aggregates all configuration sections and provides
    a single point of access for application configuration.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values

    Example .env file:
        APP_DEBUG=true
        FILTER_COPY_OPERATION=drop
        FILTER_RECALCULATE_PARTIAL_CONTENT=true
        CONVERSION_ENABLED=true
        CONVERSION_INPUT_PATH=/data/s3/access.log
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    name: str = Field(default="s3clf API", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    description: str = Field(
        default="Amazon S3 Server Access Log to Apache Combined Log Format conversion API",
        description="Application description",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )

    # Sub-configurations
    api: APISettings = Field(default_factory=APISettings)
    filter: FilterSettings = Field(default_factory=FilterSettings)
    conversion: ConversionSettings = Field(default_factory=ConversionSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function is cached to ensure we only parse configuration once.
    Use this function throughout the application to access settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
