"""Application configuration (Pydantic v2). Load from digitizer_config.yml with optional env override."""

import os
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

from pattern_digitizer.core.errors import ConfigurationError


DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_API_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_CONFIG_ENV_VAR = "PATTERN_DIGITIZER_CONFIG"
DEFAULT_CONFIG_FILENAME = "digitizer_config.yml"
# Checked in order; the first non-empty value wins.
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


class Settings(BaseModel):
    """
    Digitizer config loaded from YAML.

    The api_key may be supplied by GEMINI_API_KEY (or API_KEY) in the environment, which
    takes precedence over the YAML value when loading the default config.
    """

    model_config = {"extra": "ignore"}

    api_key: str | None = None
    digitizer: Literal["gemini", "mock"] = "gemini"
    model: str = DEFAULT_MODEL
    api_endpoint: str = DEFAULT_API_ENDPOINT
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    request_timeout_seconds: float = Field(default=180.0, gt=0)
    log_level: str = "INFO"
    forensics_dir: str = "logs/forensics"
    max_sessions: int = Field(default=256, gt=0)
    session_idle_ttl_seconds: float = Field(default=3600.0, gt=0)

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_api_key_is_none(cls, v: Any) -> str | None:
        if v is not None and str(v).strip() != "":
            return str(v).strip()
        return None

    def masked_api_key(self) -> str:
        """Return the key with all but the last four characters hidden."""
        if not self.api_key:
            return "<unset>"
        return "*" * max(len(self.api_key) - 4, 0) + self.api_key[-4:]


_config: Settings | None = None


class ConfigLoader:
    """
    Helper responsible for loading Settings from YAML and environment.

    - load_from_yaml(path, apply_env_override): read a YAML file and optionally apply env overrides.
    - load_default(): resolve the default config path from PATTERN_DIGITIZER_CONFIG / digitizer_config.yml
      and apply the API key override when present.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def _env_api_key(self) -> str | None:
        for name in API_KEY_ENV_VARS:
            value = self._env.get(name)
            if value:
                return value
        return None

    def load_from_yaml(self, path: Path, apply_env_override: bool) -> Settings:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = yaml.safe_load(f)
        if not data:
            data = {}
        env_key = self._env_api_key()
        if apply_env_override and env_key:
            data["api_key"] = env_key
        return Settings.model_validate(data)

    def load_default(self) -> Settings:
        """
        Load the default Settings, using PATTERN_DIGITIZER_CONFIG or digitizer_config.yml.

        The credential normally lives only in the environment, so a missing YAML file is not
        an error: defaults are used and the env key is applied on top.
        """
        path_str = self._env.get(DEFAULT_CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILENAME
        path = Path(path_str)
        if path.exists():
            return self.load_from_yaml(path, apply_env_override=True)
        return Settings(api_key=self._env_api_key())


_loader = ConfigLoader()


def get_config(config_path: str | Path | None = None) -> Settings:
    """
    Return singleton config.

    - If config_path is given, load from it (without env overrides for api_key) and update the cache.
    - Otherwise, return the cached config if available, or load via ConfigLoader.load_default().
    """
    global _config
    if config_path is not None:
        _config = _loader.load_from_yaml(Path(config_path), apply_env_override=False)
        return _config
    if _config is not None:
        return _config
    _config = _loader.load_default()
    return _config


def reset_config() -> None:
    """Clear cached config (for tests)."""
    global _config
    _config = None


def validate_settings(settings: Settings) -> Settings:
    """
    Startup check: the Gemini backend cannot run without a credential.

    Raises ConfigurationError; callers treat it as fatal and do not retry.
    """
    if settings.digitizer == "gemini" and not settings.api_key:
        raise ConfigurationError(
            "API key is not set. Export GEMINI_API_KEY (or API_KEY) or set api_key in "
            f"{DEFAULT_CONFIG_FILENAME}."
        )
    return settings
