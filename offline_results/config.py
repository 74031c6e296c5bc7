"""
Configuration settings for offline result delivery.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="OFFLINE_RESULTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Submission Endpoint
    # ========================================
    api_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the quiz application API",
    )
    results_endpoint: str = Field(
        default="/api/results",
        description="Path that accepts graded result payloads",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent with each submission (optional)",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        description="Transport timeout for a single submission",
    )

    # ========================================
    # Local Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".offline_results",
        description="Directory holding the persisted queue and sync status",
    )
    store_backend: Literal["json", "sqlite", "memory"] = Field(
        default="json",
        description="Durable store backend",
    )

    # ========================================
    # Delivery Policy
    # ========================================
    max_attempts: int = Field(
        default=5,
        ge=1,
        description="Attempts after which a failing result is evicted",
    )
    cooldown_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Minimum wait before a result is attempted again",
    )
    inter_record_delay_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Pause between deliveries within one drain",
    )
    startup_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Settle delay before the startup drain",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Helper Methods
    # ========================================
    @property
    def results_url(self) -> str:
        """Full URL of the result submission endpoint."""
        return f"{self.api_base_url.rstrip('/')}{self.results_endpoint}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
