"""Configuration for merklehash.

Settings are resolved in order: built-in defaults < config file
(~/.config/merklehash/config.yaml) < MERKLEHASH_* environment variables.
Command line flags override all of these in the CLI.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .algorithms import DEFAULT_ALGORITHM, get_factory
from .constants import CONFIG_DIR_NAME, CONFIG_FILE, ENV_PREFIX
from .errors import ConfigError, UnknownAlgorithmError
from .hashing import DEFAULT_CHUNK_SIZE, DigestFactory

# Settings that may be overridden from the environment
ENV_FIELDS = ("algorithm", "max_workers", "chunk_size", "timeout")


class HashSettings(BaseModel):
    """Resolved settings for one digest run."""

    algorithm: str = DEFAULT_ALGORITHM
    max_workers: Optional[int] = Field(default=None, ge=1)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    timeout: Optional[float] = Field(default=None, gt=0)  # seconds

    @field_validator("algorithm")
    @classmethod
    def validate_algorithm(cls, v: str) -> str:
        """Reject algorithms missing from the registry."""
        try:
            get_factory(v)
        except UnknownAlgorithmError as e:
            raise ValueError(str(e)) from e
        return v.strip().lower()

    @property
    def factory(self) -> DigestFactory:
        return get_factory(self.algorithm)


def default_config_path() -> Path:
    """Get the default config file location."""
    return Path.home() / CONFIG_DIR_NAME / CONFIG_FILE


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Could not read config file {path}: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping", path=str(path))
    return data


def _read_env() -> Dict[str, str]:
    values = {}
    for name in ENV_FIELDS:
        raw = os.environ.get(ENV_PREFIX + name.upper())
        if raw is not None and raw.strip():
            values[name] = raw.strip()
    return values


def load_settings(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> HashSettings:
    """Load settings from the config file and environment.

    Overrides (e.g. command line flags) are applied before validation, so a
    bad file value that is overridden is never reported.

    Args:
        config_path: Config file to read (default: ~/.config/merklehash/config.yaml)
        overrides: Values taking precedence over file and environment; None
            values are ignored

    Returns:
        Validated settings

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    path = config_path or default_config_path()
    data = _read_config_file(path)
    data.update(_read_env())
    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        return HashSettings(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
