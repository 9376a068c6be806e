"""Shared configuration utilities."""

import os
from pathlib import Path
from typing import Callable, Generic, TypeVar

import yaml

from common.errors import ConfigurationError

T = TypeVar('T')


def find_config_path(
    config_name: str | None,
    config_dir: Path,
    default_name: str = "prod",
    env_var: str | None = None,
) -> Path:
    """Find config file path, checking env var and defaults.

    ``config_name`` may also be a path to a YAML file.

    Raises:
        ConfigurationError: If the config file doesn't exist
    """
    if config_name is None:
        config_name = os.environ.get(env_var, default_name) if env_var else default_name

    candidate = Path(config_name)
    if candidate.suffix in (".yaml", ".yml"):
        config_path = candidate
    else:
        config_path = config_dir / f"{config_name}.yaml"

    if not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    return config_path


def load_yaml(path: Path) -> dict:
    """Load YAML file and return dict (empty files give an empty dict)."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def require_env(name: str) -> str:
    """Return a required environment variable or raise ConfigurationError."""
    value = os.environ.get(name)
    if not value:
        raise ConfigurationError(f"{name} environment variable is required")
    return value


class ConfigSingleton(Generic[T]):
    """Generic config singleton manager.

    Example:
        >>> _manager = ConfigSingleton(load_my_config)
        >>> get_config = _manager.get
        >>> set_config = _manager.set
        >>> reset_config = _manager.reset
    """

    def __init__(self, loader: Callable[[], T] | None = None):
        self._config: T | None = None
        self._loader = loader

    def get(self) -> T:
        """Get the config, loading it lazily if needed."""
        if self._config is None:
            if self._loader is None:
                raise RuntimeError("No config loaded and no loader set")
            self._config = self._loader()
        return self._config

    def set(self, config: T) -> None:
        """Set the config directly (useful for testing)."""
        self._config = config

    def reset(self) -> None:
        """Reset the config, forcing reload on next get()."""
        self._config = None
