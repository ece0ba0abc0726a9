from __future__ import annotations

import secrets
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BASE_DIR / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(BASE_DIR / ".env"), env_prefix="SONGSLEUTHS_", case_sensitive=False)

    # App
    APP_NAME: str = "Song Sleuths"
    ENV: Literal["development", "production", "test"] = Field(default="development")
    LOG_LEVEL: str = Field(default="INFO")

    # Bearer tokens
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    TOKEN_MAX_AGE: int = 60 * 60 * 24 * 30  # 30 days

    # Database
    DATABASE_URL: str = Field(default=f"sqlite:///{(DATA_DIR / 'songsleuths.db').as_posix()}")

    # Catalog provider settings
    # Provider key names are defined in songsleuths.services.catalog.factory
    CATALOG_PROVIDER: str = Field(default="spotify")
    SPOTIFY_CLIENT_ID: str | None = Field(default=None)
    SPOTIFY_CLIENT_SECRET: str | None = Field(default=None)
    SPOTIFY_REFRESH_TOKEN: str | None = Field(default=None, description="Refresh token of the account owning game playlists")
    SPOTIFY_USER_ID: str | None = Field(default=None, description="Account that owns created playlists")
    SPOTIFY_API_BASE: str = Field(default="https://api.spotify.com/v1")
    SPOTIFY_ACCOUNTS_BASE: str = Field(default="https://accounts.spotify.com/api")
    HTTP_TIMEOUT_SECONDS: float = Field(default=10.0)
    SEARCH_LIMIT: int = Field(default=10, ge=1, le=50)
    VALIDATE_SONGS_ON_SUBMIT: bool = Field(default=False, description="Reject ids the catalog does not know")

    # Reveal coordination
    REVEAL_LEASE_SECONDS: int = Field(default=120, description="Age after which an unfinished reveal claim may be taken over")
    REVEAL_WAIT_SECONDS: float = Field(default=5.0, description="How long a losing reader waits for the winning reveal")
    REVEAL_POLL_INTERVAL_SECONDS: float = Field(default=0.25)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()  # type: ignore[call-arg]

    # Ensure directories exist
    DATA_DIR.mkdir(parents=True, exist_ok=True)

    return settings
