"""Configuration handling for forest"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from forest.constants import CONFIG_KEYS, DEFAULT_WORKTREE_DIR, ErrorCode, config_file_path
from forest.exceptions import ForestError, ValidationError
from forest.logging_config import get_logger
from forest.services.validation_service import validate_config_path

logger = get_logger(__name__)


def default_directory() -> str:
    return os.path.expanduser(DEFAULT_WORKTREE_DIR)


def _absolute_directory(value: str) -> str:
    return os.path.abspath(os.path.expanduser(value.strip())) if value.strip() else value


@dataclass
class Config:
    """Persisted forest configuration with validation."""

    directory: str = field(default_factory=default_directory)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_directory()

    def _validate_directory(self):
        """Validate directory is a string accepted by validate_config_path."""
        if not isinstance(self.directory, str):
            raise ValueError(f"directory must be a string, got {type(self.directory).__name__}")
        if self.directory == default_directory():
            return
        result = validate_config_path(self.directory)
        if not result.valid:
            raise ValueError(result.error)

    @property
    def root_directory(self) -> Path:
        """Worktree root with any leading ~ expanded."""
        return Path(os.path.expanduser(self.directory))

    def to_dict(self) -> dict:
        return {"directory": self.directory}

    def get(self, key: str, default=None):
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        filtered = {k: v for k, v in config_dict.items() if k in CONFIG_KEYS}
        return cls(**filtered)


class ConfigStore:
    """Load, validate, save and reset the config file.

    Every call touches the file; nothing is cached between calls.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else config_file_path()

    def load(self) -> Config:
        """Read the config file, falling back to defaults when absent or invalid."""
        if not self.path.exists():
            logger.debug(f"No config file at {self.path}, using defaults")
            return Config()

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Could not read config file {self.path}: {e}")
            return Config()

        if not isinstance(data, dict):
            logger.debug("Config file is not a JSON object, using defaults")
            return Config()

        try:
            return Config.from_dict(data)
        except (TypeError, ValueError) as e:
            # Invalid stored values are discarded in favour of the defaults
            logger.debug(f"Ignoring invalid config file {self.path}: {e}")
            return Config()

    def save(self, config: Config) -> None:
        """Write the config atomically (temporary file then replace)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".config-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(config.to_dict(), f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ForestError(
                f"Failed to write config file {self.path}: {e}",
                code=ErrorCode.CONFIG_ERROR,
                suggestion="Check permissions on the config directory",
            ) from e
        logger.info(f"Saved config to {self.path}")

    def reset(self) -> Config:
        """Remove the config file so the defaults apply again."""
        try:
            self.path.unlink()
            logger.info(f"Removed config file {self.path}")
        except FileNotFoundError:
            logger.debug("Config file already absent")
        except OSError as e:
            raise ForestError(
                f"Failed to reset config file {self.path}: {e}",
                code=ErrorCode.CONFIG_ERROR,
            ) from e
        return Config()

    def get(self, key: str) -> str:
        """Return one config value by key."""
        if key not in CONFIG_KEYS:
            raise ValidationError(
                f"Unknown config key: {key}",
                code=ErrorCode.UNKNOWN_CONFIG_KEY,
                suggestion=f"Valid keys: {', '.join(CONFIG_KEYS)}",
            )
        return getattr(self.load(), key)

    def set(self, key: str, value: Optional[str]) -> Config:
        """Validate and persist one config value, returning the new config."""
        if key not in CONFIG_KEYS:
            raise ValidationError(
                f"Unknown config key: {key}",
                code=ErrorCode.UNKNOWN_CONFIG_KEY,
                suggestion=f"Valid keys: {', '.join(CONFIG_KEYS)}",
            )
        if value is None:
            raise ValidationError(
                f"A value is required for '{key}'",
                suggestion=f"Usage: forest config set {key} <value>",
            )
        # Check the raw value for traversal, then the absolute path for the deny-list
        for candidate in (value, _absolute_directory(value)):
            result = validate_config_path(candidate)
            if not result.valid:
                raise ValidationError(
                    result.error or "Invalid directory",
                    code=ErrorCode.INVALID_CONFIG,
                    suggestion="Choose a directory under your home directory",
                )
        config = Config(directory=_absolute_directory(value))
        self.save(config)
        return config
