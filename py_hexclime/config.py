"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HEXCLIME_",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(
        default="json", description="Logging format (json or console)"
    )

    # Fields
    field_workers: int = Field(
        default=4, ge=1, description="Worker threads for field construction"
    )
    raster_directory: str = Field(
        default="./static", description="Directory holding persisted fields"
    )

    # Climate
    ocean_level: float = Field(
        default=0.333333, ge=0.0, le=1.0, description="Raw elevation of the ocean surface"
    )
    continentality_cost_scale: float = Field(
        default=8.0, gt=0.0, description="Multiplier of the co-wind step cost"
    )
    max_relaxations: int = Field(
        default=0,
        ge=0,
        description="Upper bound on frontier relaxations, 0 for unbounded",
    )


settings = Settings()
