"""
Application configuration using Pydantic Settings.

Configuration values can be set via environment variables or .env file.
"""

from pathlib import Path
from urllib.parse import urlsplit

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application settings
    app_name: str = "SubTrack"
    version: str = "1.0.0"
    debug: bool = False
    dev_mode: bool = False
    host: str = "0.0.0.0"
    port: int = 8787

    # Shared secret for the single-user session. An empty value never authenticates.
    password: str = ""
    cookie_name: str = "subtrack_auth"
    cookie_max_age: int = 60 * 60 * 24 * 30  # 30 days

    # Key-value store
    database_url: str = "sqlite:///./data/subtrack.db"
    data_key: str = "user_data"

    # Static asset origin
    upstream_origin: str = "https://panpapadopoulos.github.io"
    upstream_path: str = "/subtrack"
    index_document: str = "/index.html"
    proxy_user_agent: str = "SubTrack-Pro-Worker"
    proxy_marker: str = "SubTrack-Proxy"
    proxy_timeout: float = 15.0

    # Client sync
    api_base_url: str = "http://localhost:8787"
    sync_debounce_seconds: float = 0.5

    @field_validator("upstream_origin", "api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("upstream_path")
    @classmethod
    def normalize_upstream_path(cls, value: str) -> str:
        """Keep the prefix in the ``/segment`` form (or empty for the origin root)."""
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @property
    def upstream_host(self) -> str:
        return urlsplit(self.upstream_origin).netloc

    def ensure_data_directory(self) -> None:
        """Create the directory holding a file-backed SQLite store."""
        if self.database_url.startswith("sqlite:///") and ":memory:" not in self.database_url:
            Path(self.database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Dependency returning the active settings."""
    return settings
