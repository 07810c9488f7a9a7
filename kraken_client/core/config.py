"""Client configuration using Pydantic Settings.

Nothing here runs at import time. ``load_settings()`` resolves the
environment when it is called:
- KRAKEN_ENV selects which .env file to read (development, testing,
  staging, production)
- the file is looked up in the working directory and read only if present
- values from the file never overwrite os.environ

``create_client()`` and ``configure_logging()`` call it when they are not
handed explicit settings. Constructing a KrakenClient directly never does.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_BASE_URL = "https://api.kraken.com"
DEFAULT_ENV = "development"

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}


class KrakenSettings(BaseSettings):
    """Exchange credentials and connection options.

    Credentials are optional here; ``create_client()`` rejects missing values
    with a ConfigurationAppError.
    """

    api_key: str | None = Field(
        None,
        description="API key sent in the API-Key header of private calls",
    )
    private_key: SecretStr | None = Field(
        None,
        description="Base64-encoded private key used to sign private calls",
    )
    account_tier: str = Field(
        "none",
        description="Rate-limit tier: none, tier-2, tier-3 or tier-4",
    )
    api_base_url: str = Field(
        DEFAULT_API_BASE_URL,
        description="Base address of the REST API",
    )
    timeout_seconds: float = Field(
        30.0,
        description="HTTP request timeout in seconds",
        gt=0,
    )

    # KRAKEN_ENV shares the prefix but is not a field
    model_config = SettingsConfigDict(
        env_prefix="KRAKEN_",
        case_sensitive=False,
        extra="ignore",
    )


class LogSettings(BaseSettings):
    """Logging configuration consumed by ``configure_logging``."""

    level: str = Field("INFO", description="Level of the kraken_client logger")
    format: str = Field("json", description="Log format: json or plain")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseModel):
    """Settings container composed from the domain-specific sections."""

    kraken_env: str = DEFAULT_ENV
    kraken: KrakenSettings = Field(default_factory=KrakenSettings)
    log: LogSettings = Field(default_factory=LogSettings)


def resolve_env_file(
    kraken_env: str | None = None,
    base_dir: Path | None = None,
) -> Path | None:
    """Return the .env file for an environment, or None when it is absent.

    Args:
        kraken_env: Environment name; defaults to KRAKEN_ENV.
        base_dir: Directory holding the .env files; defaults to the cwd.
    """

    env = kraken_env or os.getenv("KRAKEN_ENV", DEFAULT_ENV)
    path = (base_dir or Path.cwd()) / ENV_FILE_MAP.get(env, ENV_FILE_MAP[DEFAULT_ENV])
    return path if path.is_file() else None


def load_settings(
    kraken_env: str | None = None,
    *,
    env_file: Path | str | None = None,
) -> Settings:
    """Build settings from the environment and the selected .env file.

    Process environment variables take precedence over the file, which is
    parsed by pydantic-settings' python-dotenv source.

    Args:
        kraken_env: Environment name; defaults to KRAKEN_ENV.
        env_file: Explicit .env file, bypassing the KRAKEN_ENV lookup.
    """

    env = kraken_env or os.getenv("KRAKEN_ENV", DEFAULT_ENV)
    source = env_file if env_file is not None else resolve_env_file(env)

    return Settings(
        kraken_env=env,
        kraken=KrakenSettings(_env_file=source),
        log=LogSettings(_env_file=source),
    )
