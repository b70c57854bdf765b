"""Configuration surface for the Mintology SDK."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MintologySettings(BaseSettings):
    """Main Mintology configuration.

    Every field can be overridden with a ``MINTOLOGY_`` prefixed
    environment variable or an entry in a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MINTOLOGY_",
        env_file=".env",
        extra="ignore",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"

    # OAuth client credentials issued to the plugin
    client_id: str = ""
    client_secret: str = ""
    token_scope: str = "mintology/wp/write"

    # Base URIs
    access_token_url: str = "https://auth.mintology.app/"
    api_base_url: str = "https://api.mintology.app/v1/"
    production_api_base_url: str = "https://prod-api.mintology.app/v1/"

    plugin_type: str = "Wordpress"

    # Host option under which the encrypted tenant key lives
    tenant_key_option: str = "__mint_x_mint_key"

    # Timeouts and fan-out limits
    request_timeout: float = 30.0
    aggregation_deadline: float = 60.0
    max_concurrency: int = 16

    # Caching
    snapshot_ttl_seconds: int = 3600
    token_expiry_skew: int = 30
    token_default_ttl: int = 300

    # Checkout defaults
    default_country: str = "SG"
    default_currency: str = "SGD"
    cookie_max_age: int = 86400

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("access_token_url", "api_base_url", "production_api_base_url")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Relative paths are resolved against the base, so it must end in '/'."""
        return v if v.endswith("/") else f"{v}/"

    @field_validator("max_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrency must be at least 1")
        return v

    @field_validator("default_country")
    @classmethod
    def upper_country(cls, v: str) -> str:
        return v.upper()


@lru_cache
def load_settings(env_file: str | None = None) -> MintologySettings:
    """Load MintologySettings once per process.

    Args:
        env_file: Path of a .env file to read instead of ``./.env``
    """
    if env_file:
        return MintologySettings(_env_file=Path(env_file))
    return MintologySettings()
