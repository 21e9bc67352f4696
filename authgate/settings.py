from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Local dev: load from .env automatically.
    # In production: you typically inject real env vars instead.
    model_config = SettingsConfigDict(env_prefix="", extra="ignore", env_file=".env", env_file_encoding="utf-8")

    # Env vars:
    # - PRODUCTION_MODE: when false (default) the app always starts on the login page
    # - AUTHGATE_STORAGE_PATH: JSON file used for persisted state
    # - AUTHGATE_USERS_KEY (optional): storage key holding the user registry
    # - AUTH_PROVIDER_URL / AUTH_CALLBACK_SCHEME: external login provider and redirect scheme
    # - DEEP_LINK_SCHEMES (optional): comma-separated schemes the deep link probe may open
    # - LOG_LEVEL (optional)
    production_mode: bool = Field(default=False, validation_alias="PRODUCTION_MODE")
    storage_path: str = Field(default=".authgate/storage.json", validation_alias="AUTHGATE_STORAGE_PATH")
    users_storage_key: str = Field(default="users", validation_alias="AUTHGATE_USERS_KEY")

    provider_url: str = Field(default="https://auth.example.com/authorize", validation_alias="AUTH_PROVIDER_URL")
    callback_scheme: str = Field(default="authgate", validation_alias="AUTH_CALLBACK_SCHEME")

    deep_link_schemes: str = Field(default="", validation_alias="DEEP_LINK_SCHEMES")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    def model_post_init(self, __context):  # type: ignore[override]
        # Accept "myapp://" or "myapp:" as well as the bare scheme.
        self.callback_scheme = (self.callback_scheme or "").strip().lower().removesuffix("://").rstrip(":")

    @property
    def deep_link_scheme_list(self) -> list[str]:
        return [s.strip().lower() for s in (self.deep_link_schemes or "").split(",") if s.strip()]


def get_settings() -> Settings:
    """Load settings from environment.

    Keep this as the single canonical constructor for Settings(). The app
    lifespan and tests can override/monkeypatch this function.
    """
    return Settings()
