"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the OAuth flow services and
the state sweeper share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _split_scopes(value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
    """Support providing scopes as a comma-separated string."""
    if isinstance(value, tuple):
        return value
    if isinstance(value, list):
        return tuple(value)
    return tuple(scope.strip() for scope in value.split(",") if scope.strip())


_GROUP_CONFIG = SettingsConfigDict(populate_by_name=True, extra="ignore")


class GoogleSettings(BaseSettings):
    """Credentials for the primary identity provider."""

    model_config = _GROUP_CONFIG

    client_id: str = Field(..., validation_alias="GOOGLE_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GOOGLE_CLIENT_SECRET")


class AirtableSettings(BaseSettings):
    """Credentials for the chained data-integration provider."""

    model_config = _GROUP_CONFIG

    client_id: Optional[str] = Field(None, validation_alias="AIRTABLE_CLIENT_ID")
    client_secret: Optional[str] = Field(
        None, validation_alias="AIRTABLE_CLIENT_SECRET"
    )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _GROUP_CONFIG

    jwt_secret: str = Field(
        ...,
        validation_alias="JWT_SECRET",
        description="HMAC key used to sign domain-scoped session tokens.",
    )
    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the key sealing session tokens held in "
            "transaction records. Defaults to the JWT secret."
        ),
    )


class OAuthSettings(BaseSettings):
    """OAuth flow configuration shared by both providers."""

    model_config = _GROUP_CONFIG

    redirect_base_url: str = Field(
        "http://localhost:8000",
        validation_alias="OAUTH_REDIRECT_URL",
        description="Public base URL of this backend; every callback is derived from it.",
    )
    state_ttl_seconds: int = Field(600, validation_alias="OAUTH_STATE_TTL", gt=0)
    session_ttl_seconds: int = Field(
        24 * 60 * 60, validation_alias="SESSION_TOKEN_TTL", gt=0
    )
    google_scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        (
            "openid",
            "email",
            "profile",
            "https://www.googleapis.com/auth/spreadsheets",
        ),
        validation_alias="GOOGLE_OAUTH_SCOPES",
    )
    airtable_scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("data.records:read", "data.records:write", "schema.bases:read"),
        validation_alias="AIRTABLE_OAUTH_SCOPES",
    )

    @field_validator("google_scopes", "airtable_scopes", mode="before")
    @classmethod
    def _parse_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        return _split_scopes(value)

    @property
    def google_callback_url(self) -> str:
        return f"{self.redirect_base_url.rstrip('/')}/auth/primary/callback"

    @property
    def airtable_callback_url(self) -> str:
        return f"{self.redirect_base_url.rstrip('/')}/auth/secondary/callback"


class StateStoreSettings(BaseSettings):
    """Where in-flight OAuth transactions are kept between start and callback."""

    model_config = _GROUP_CONFIG

    backend: Literal["memory", "sqlite", "dynamodb"] = Field(
        "memory",
        validation_alias="STATE_STORE_BACKEND",
        description="Use 'dynamodb' whenever more than one node serves callbacks.",
    )
    sqlite_path: str = Field(
        "data/oauth_states.db", validation_alias="STATE_STORE_SQLITE_PATH"
    )
    dynamodb_table_name: Optional[str] = Field(
        None, validation_alias="STATE_STORE_DYNAMODB_TABLE"
    )
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    sweep_interval_seconds: int = Field(
        300, validation_alias="STATE_SWEEP_INTERVAL", gt=0
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    airtable: AirtableSettings = Field(default_factory=AirtableSettings)
    state_store: StateStoreSettings = Field(default_factory=StateStoreSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AirtableSettings",
    "AppSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SecuritySettings",
    "StateStoreSettings",
    "get_settings",
]
