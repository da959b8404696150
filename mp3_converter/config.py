"""Application settings from environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings from environment."""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    # Storage
    downloads_dir: Path = Path("downloads")
    public_dir: Path = Path("public")

    # Conversion
    default_quality: str = "5"  # yt-dlp VBR scale: 0 (best) to 10 (worst)
    yt_dlp_path: str = "yt-dlp"
    provider_timeout_seconds: Optional[float] = Field(default=None, gt=0)
    max_retry_attempts: int = Field(default=3, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0)

    # Progress simulation
    progress_interval_seconds: float = Field(default=1.0, gt=0)
    progress_initial: int = Field(default=5, ge=0, le=100)
    progress_ceiling: int = Field(default=90, ge=0, le=99)
    progress_max_step: float = Field(default=5.0, ge=0)
    metadata_progress: int = Field(default=20, ge=0, le=99)

    # Retention
    download_grace_seconds: float = Field(default=30.0, ge=0)
    retention_max_age_seconds: float = Field(default=3600.0, gt=0)
    sweep_interval_seconds: float = Field(default=900.0, gt=0)

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensures log_level is a valid logging level string."""
        upper_value = value.upper()
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_value not in allowed_levels:
            raise ValueError(f"'{value}' is not a valid log level. Must be one of {allowed_levels}.")
        return upper_value


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
