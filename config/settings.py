"""Application configuration using Pydantic Settings."""

from enum import StrEnum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RacePolicy(StrEnum):
    """How overlapping lookups settle the coordinator state."""

    LAST_RESOLVED = "last_resolved"
    LAST_ISSUED = "last_issued"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenFoodFacts Configuration
    openfoodfacts_base_url: str = Field(
        default="https://world.openfoodfacts.org",
        description="Base URL of the OpenFoodFacts product database",
    )
    openfoodfacts_timeout: float = Field(
        default=10.0, description="Timeout in seconds for a product request"
    )
    openfoodfacts_user_agent: str = Field(
        default="FoodBarcodeLookup/0.1 (https://foodinfo.co.za)",
        description="User-Agent sent to OpenFoodFacts",
    )

    # Lookup Configuration
    lookup_race_policy: RacePolicy = Field(
        default=RacePolicy.LAST_RESOLVED,
        description="Which of two overlapping lookups wins: last_resolved or last_issued",
    )

    # Camera Configuration
    enable_camera: bool = Field(default=True, description="Enable camera barcode scanning")
    camera_index: int = Field(default=0, description="OpenCV device index of the camera")
    camera_facing: str = Field(
        default="environment", description="Preferred camera facing (environment or user)"
    )
    scan_frame_interval: float = Field(
        default=0.05, description="Seconds to wait between undecodable frames"
    )

    # Application Configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # PostHog Configuration
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # Application Metadata
    app_name: str = Field(default="Food-Barcode-Lookup", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
