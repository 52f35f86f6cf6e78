"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FacebookSettings(BaseSettings):
    """Target platform endpoints and fallback login credentials."""

    model_config = SettingsConfigDict(
        env_prefix="FACEBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    email: str = Field(default="", description="Fallback login email")
    password: SecretStr = Field(default=SecretStr(""), description="Fallback login password")
    base_url: str = Field(default="https://www.facebook.com", description="Desktop site root")
    feed_base_url: str = Field(default="https://m.facebook.com", description="Site root used for group feeds")
    session_name: str = Field(default="facebook-session", description="Key of the persisted cookie jar")


class BrowserSettings(BaseSettings):
    """Browser launch settings."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    headless: bool = Field(default=True, description="Run browser in headless mode")
    timeout_ms: int = Field(default=30000, description="Default Playwright timeout in ms")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
        ),
    )
    locale: str = "en-US"
    timezone_id: str = "America/New_York"


class TimingSettings(BaseSettings):
    """Settle intervals and bounded waits, all in milliseconds."""

    model_config = SettingsConfigDict(
        env_prefix="TIMING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    restore_settle_ms: int = 3000
    login_settle_ms: int = 3000
    field_wait_ms: int = 5000
    two_factor_wait_ms: int = 120000
    two_factor_poll_ms: int = 5000
    scroll_settle_ms: int = 2000
    load_more_settle_ms: int = 1500
    expand_settle_ms: int = 300
    comment_expand_settle_ms: int = 500
    page_load_wait_ms: int = 10000
    feed_settle_ms: int = 3000

    @field_validator("two_factor_poll_ms")
    @classmethod
    def validate_poll(cls, v: int) -> int:
        """Two-factor polling must not hammer the page."""
        if v < 3000:
            raise ValueError("two_factor_poll_ms must be at least 3000")
        return v


class StorageSettings(BaseSettings):
    """Where records, cookie jars and diagnostic dumps live."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_path: str = Field(default="data/harvester.db", description="SQLite database path")
    cookies_dir: str = Field(default="cookies", description="Directory for file-backed cookie jars")
    credential_backend: str = Field(default="file", description="'file' or 'redis'")
    redis_url: str = "redis://localhost:6379/0"
    debug_dir: str = Field(default="", description="Directory for diagnostic HTML dumps (empty = off)")

    @field_validator("credential_backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        if v not in ("file", "redis"):
            raise ValueError("credential_backend must be 'file' or 'redis'")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False)

    @property
    def facebook(self) -> FacebookSettings:
        return FacebookSettings()

    @property
    def browser(self) -> BrowserSettings:
        return BrowserSettings()

    @property
    def timing(self) -> TimingSettings:
        return TimingSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (clear cache and return new instance).

    Call this when .env file is updated to pick up new values.
    """
    get_settings.cache_clear()
    return get_settings()
