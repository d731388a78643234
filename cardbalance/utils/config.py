"""Configuration and settings management."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator
from pathlib import Path


DEFAULT_API_BASE_URL = "https://your-api-backend.com/api"


class Settings(BaseSettings):
    # Recognition API
    API_BASE_URL: str = DEFAULT_API_BASE_URL
    API_TIMEOUT_MS: int = 10000
    HEALTH_TIMEOUT_MS: int = 5000

    # Logging
    LOG_LEVEL: str = "INFO"

    # Cache and storage
    CACHE_DB_PATH: str = "cache/card_balance.db"
    STORAGE_KEY: str = "cardbalance_card_data"

    # Transaction history / fallback
    HISTORY_CAP: int = 5
    FALLBACK_ENABLED: bool = True
    FALLBACK_SEED: Optional[int] = None

    @field_validator('API_BASE_URL', mode='before')
    @classmethod
    def validate_api_base_url(cls, v):
        """Convert empty strings to the default and drop trailing slashes."""
        if isinstance(v, str):
            if not v.strip():
                return DEFAULT_API_BASE_URL
            return v.strip().rstrip("/")
        return v

    @field_validator('API_BASE_URL')
    @classmethod
    def check_api_base_url_scheme(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"API_BASE_URL must be an http(s) URL, got {v!r}")
        return v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "INFO"
        return v

    @field_validator('CACHE_DB_PATH', mode='before')
    @classmethod
    def validate_cache_path(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "cache/card_balance.db"
        return v

    @field_validator('FALLBACK_SEED', mode='before')
    @classmethod
    def validate_fallback_seed(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('HISTORY_CAP')
    @classmethod
    def validate_history_cap(cls, v):
        if v < 1:
            raise ValueError("HISTORY_CAP must be at least 1")
        return v

    @property
    def request_timeout_s(self) -> float:
        return self.API_TIMEOUT_MS / 1000.0

    @property
    def health_timeout_s(self) -> float:
        return self.HEALTH_TIMEOUT_MS / 1000.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }


# Global settings instance
settings = Settings()


def resolve_cache_db_path(db_path: Optional[str] = None) -> Path:
    """Resolve the cache database path; relative paths hang off the working directory."""
    path = Path(db_path or settings.CACHE_DB_PATH).expanduser()
    if path.is_absolute():
        return path
    return Path.cwd() / path


def ensure_cache_dir(db_path: Optional[str] = None) -> Path:
    """Ensure the directory holding the cache database exists."""
    resolved = resolve_cache_db_path(db_path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved
