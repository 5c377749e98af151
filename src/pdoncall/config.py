"""Settings loading from YAML config files, the environment and flags."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

TOKEN_ENV_VAR = "PAGERDUTY_TOKEN"
DEFAULT_BASE_URL = "https://api.pagerduty.com"


class ConfigError(Exception):
    """Exception raised for missing or invalid configuration."""


class Settings(BaseModel):
    api_token: str | None = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = Field(default=30.0, gt=0)

    def require_token(self) -> str:
        if not self.api_token:
            raise ConfigError(
                f"No API token configured. Pass --api-token or set {TOKEN_ENV_VAR}."
            )
        return self.api_token


def _read_config_file(config_path: Path) -> dict:
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Unable to read {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {config_path}: expected a mapping at top level")
    return data


def load_settings(
    config_path: Path | None = None,
    api_token: str | None = None,
    use_dotenv: bool = True,
) -> Settings:
    """Build settings from defaults, config file, environment and flags.

    Later sources win: a ``--config`` file overrides the defaults, the
    ``PAGERDUTY_TOKEN`` environment variable (or ``.env`` entry) overrides
    the file, and an explicit ``api_token`` overrides everything.

    Raises:
        ConfigError: If the config file is missing or fails validation.
    """
    if use_dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    data: dict = {}
    if config_path is not None:
        data.update(_read_config_file(config_path))

    env_token = os.environ.get(TOKEN_ENV_VAR)
    if env_token:
        data["api_token"] = env_token
    if api_token:
        data["api_token"] = api_token

    source = str(config_path) if config_path is not None else "settings"
    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid {source}: {e}") from e
