"""
Application settings and configuration management.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from pictorium import __version__

STORAGE_BACKENDS = ("s3", "filesystem", "memory")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="pictorium")
    app_version: str = Field(default=__version__)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    logs_dir: Path = Field(default=Path("./logs"))
    log_to_file: bool = Field(default=False)

    # Origin
    origin_root_url: str = Field(default="http://localhost:8081/images")
    origin_timeout: float = Field(default=10.0, gt=0)
    origin_max_bytes: int = Field(default=20 * 1024 * 1024, gt=0)

    # Storage
    storage_backend: str = Field(default="filesystem")
    storage_dir: Path = Field(default=Path("./cache"))
    s3_bucket: str = Field(default="pictorium-cache")
    s3_region: str = Field(default="eu-west-1")
    s3_endpoint_url: Optional[str] = Field(default=None)
    s3_access_key_id: str = Field(default="")
    s3_secret_access_key: str = Field(default="")
    s3_connect_timeout: float = Field(default=5.0, gt=0)
    s3_read_timeout: float = Field(default=30.0, gt=0)

    # Variants
    variants_file: Optional[Path] = Field(default=None)

    @field_validator("logs_dir", "storage_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Ensure directory paths are Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("variants_file", mode="before")
    @classmethod
    def empty_variants_file(cls, v: str | Path | None) -> Path | None:
        """Treat an empty value as "use the built-in table"."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return Path(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        """Validate storage backend name."""
        if v.lower() not in STORAGE_BACKENDS:
            raise ValueError(
                f"Invalid storage backend: {v} (expected one of {', '.join(STORAGE_BACKENDS)})"
            )
        return v.lower()

    @field_validator("origin_root_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Origin URLs are joined with ``/`` so drop any trailing one."""
        return v.rstrip("/")

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        directories = [self.logs_dir]
        if self.storage_backend == "filesystem":
            directories.append(self.storage_dir)
        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance
settings = get_settings()
