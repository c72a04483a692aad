"""Configuration management for the sound catalog and alarm API."""

from pathlib import Path
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_API_KEYS = [
    "scplay-secret-key",
    "kitty-secret-key",
    "sofia-secret-key",
    "liu-secret-key",
    "external-secret-key",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )

    # Server configuration
    port: int = 3000
    host: str = "0.0.0.0"

    # Database configuration
    database_url: str = "sqlite:///alarms.db"
    reset_database_on_startup: bool = False

    # Credential allow-list, e.g. API_KEYS='["key-a", "key-b"]'
    api_keys: List[str] = DEFAULT_API_KEYS
    api_key_header: str = "X-API-Key"
    credential_scoping: bool = True

    # Catalog assets: <assets_dir>/music, <assets_dir>/description, <assets_dir>/cover
    assets_dir: Path = Path("assets")
    swagger_path: Path = Path("swagger.yaml")

    # Rate limiting
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 60

    # Observability
    otlp_endpoint: Optional[str] = None
    otel_console_export: bool = False

    # Logging configuration
    log_level: str = "INFO"

    @property
    def music_dir(self) -> Path:
        return self.assets_dir / "music"

    @property
    def description_dir(self) -> Path:
        return self.assets_dir / "description"

    @property
    def cover_dir(self) -> Path:
        return self.assets_dir / "cover"

    @field_validator('api_keys')
    @classmethod
    def validate_api_keys(cls, v):
        keys = [key for key in v if key]
        if not keys:
            raise ValueError('API_KEYS must contain at least one non-empty key')
        return keys

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f'LOG_LEVEL must be a standard logging level, got {v}')
        return level

    @field_validator('rate_limit_requests', 'rate_limit_window_seconds')
    @classmethod
    def validate_rate_limit(cls, v):
        if v <= 0:
            raise ValueError('Rate limit values must be positive')
        return v


# Global settings instance
settings = Settings()
