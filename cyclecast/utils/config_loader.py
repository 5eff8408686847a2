"""
Configuration loader for the cyclecast prediction core.

Loads settings from a YAML config file with an environment variable override.
The file is read lazily on first access so importing the library never
touches the filesystem.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CYCLECAST_CONFIG"
DEFAULT_CONFIG_FILE = "config/default.yaml"


class Config:
    """Central configuration manager."""

    _instance: "Config | None" = None
    _config: dict[str, Any] | None = None
    _model: Any = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._config is None:
            self._load()

    def _load(self):
        """Load config from YAML file."""
        env_path = os.getenv(CONFIG_ENV_VAR)
        config_path = Path(env_path or DEFAULT_CONFIG_FILE)

        if not config_path.is_absolute():
            # Try relative to project root
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / config_path

        if not config_path.exists():
            if env_path:
                raise FileNotFoundError(f"Config file not found: {config_path}")
            # Installed without the project tree: schema defaults apply
            logger.warning(f"Config file not found at {config_path}, using built-in defaults")
            raw: dict[str, Any] = {}
        else:
            with open(config_path) as f:
                raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping at top level")

        self._config = raw
        self._model = None
        self._validate_config()
        logger.info(f"Configuration loaded from {config_path}")

    def _validate_config(self):
        """Validate the raw mapping against the pydantic schema, fail fast on errors."""
        from pydantic import ValidationError

        from cyclecast.utils.config_schema import validate_config

        try:
            self._model = validate_config(self._config)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ]
            raise ValueError("Config validation failed:\n  - " + "\n  - ".join(problems)) from exc

        logger.debug("Config validation passed")

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value using dot notation, returning default if not found."""
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def get_section(self, section: str) -> dict:
        """Get entire config section."""
        if self._config is None:
            return {}
        value = self._config.get(section, {})
        return value if isinstance(value, dict) else {}

    @property
    def model(self):
        """Validated config object (CyclecastConfig)."""
        return self._model

    def reload(self):
        """Force reload config from file."""
        self._config = None
        self._model = None
        self._load()


def _get_config() -> Config:
    return Config()


def get(key: str, default: Any = None) -> Any:
    """Get config value."""
    return _get_config().get(key, default)


def get_section(section: str) -> dict:
    """Get config section."""
    return _get_config().get_section(section)


def get_model():
    """Get the validated configuration object."""
    return _get_config().model


def reload():
    """Reload config."""
    _get_config().reload()
