"""Centralized configuration for the processing engine.

Configuration can be loaded from a YAML file, overridden from the
environment, and is validated before use.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from procsim.utils.result import ConfigError, Err, Ok, Result

DEFAULT_STORE_PATH = "./procsim-state.json"
DEFAULT_WORK_DELAY = 1.0

ENV_PARALLELISM = "PROCSIM_PARALLELISM"
ENV_WORK_DELAY = "PROCSIM_WORK_DELAY"
ENV_STORE_PATH = "PROCSIM_STORE_PATH"


def default_parallelism() -> int:
    """Available parallelism of the host."""
    return os.cpu_count() or 1


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "info"
    format: str = "json"


@dataclass
class EngineConfig:
    """
    Complete engine configuration.

    Attributes:
        parallelism: Worker limit for background processing of one process
        work_delay: Seconds the simulated unit of work takes per item
        store_path: JSON snapshot used by the file-backed store
        logging: Logging settings
    """

    parallelism: int = field(default_factory=default_parallelism)
    work_delay: float = DEFAULT_WORK_DELAY
    store_path: Path = field(default_factory=lambda: Path(DEFAULT_STORE_PATH))
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> Result["EngineConfig", ConfigError]:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Result with loaded config or error
        """
        path = Path(path)

        if not path.exists():
            return Err(ConfigError(
                field="path",
                message=f"Configuration file not found: {path}",
            ))

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            return Err(ConfigError(
                field="yaml",
                message=f"Failed to parse YAML: {e}",
            ))
        except OSError as e:
            return Err(ConfigError(
                field="file",
                message=f"Failed to read config file: {e}",
            ))

        if not isinstance(data, dict):
            return Err(ConfigError(
                field="yaml",
                message="Top-level YAML value must be a mapping",
            ))

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Result["EngineConfig", ConfigError]:
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            Result with loaded config or error
        """
        try:
            logging_data = data.get("logging", {}) or {}
            logging_config = LoggingConfig(
                level=str(logging_data.get("level", "info")),
                format=str(logging_data.get("format", "json")),
            )

            parallelism = data.get("parallelism")
            config = cls(
                parallelism=int(parallelism) if parallelism is not None else default_parallelism(),
                work_delay=float(data.get("work_delay", DEFAULT_WORK_DELAY)),
                store_path=Path(data.get("store_path", DEFAULT_STORE_PATH)),
                logging=logging_config,
            )
        except (TypeError, ValueError) as e:
            return Err(ConfigError(
                field="unknown",
                message=f"Failed to parse configuration: {e}",
            ))

        return Ok(config)

    def apply_env(self, environ: Optional[dict[str, str]] = None) -> Result["EngineConfig", ConfigError]:
        """
        Overlay PROCSIM_* environment variables onto this config.

        Returns:
            Result with the updated config or the first bad variable
        """
        env = os.environ if environ is None else environ

        if env.get(ENV_PARALLELISM):
            try:
                self.parallelism = int(env[ENV_PARALLELISM])
            except ValueError:
                return Err(ConfigError(
                    field=ENV_PARALLELISM,
                    message=f"Not an integer: {env[ENV_PARALLELISM]!r}",
                ))

        if env.get(ENV_WORK_DELAY):
            try:
                self.work_delay = float(env[ENV_WORK_DELAY])
            except ValueError:
                return Err(ConfigError(
                    field=ENV_WORK_DELAY,
                    message=f"Not a number: {env[ENV_WORK_DELAY]!r}",
                ))

        if env.get(ENV_STORE_PATH):
            self.store_path = Path(env[ENV_STORE_PATH])

        return Ok(self)

    def validate(self) -> Result[None, ConfigError]:
        """
        Validate configuration values.

        Returns:
            Result indicating success or validation error
        """
        if self.parallelism < 1:
            return Err(ConfigError(
                field="parallelism",
                message=f"Must be at least 1, got {self.parallelism}",
            ))

        if self.work_delay < 0:
            return Err(ConfigError(
                field="work_delay",
                message=f"Must not be negative, got {self.work_delay}",
            ))

        if self.logging.format not in ("json", "text"):
            return Err(ConfigError(
                field="logging.format",
                message=f"Must be 'json' or 'text', got {self.logging.format!r}",
            ))

        return Ok(None)


def load_config(
    config_path: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> Result[EngineConfig, ConfigError]:
    """
    Load configuration.

    Reads config_path when given (defaults otherwise), overlays the
    environment, then validates.

    Args:
        config_path: Optional YAML file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Result with loaded config or error
    """
    if config_path is not None:
        result = EngineConfig.from_yaml(config_path)
        if result.is_err():
            return result
        config = result.unwrap()
    else:
        config = EngineConfig()

    result = config.apply_env(environ)
    if result.is_err():
        return result

    validation_result = config.validate()
    if validation_result.is_err():
        return Err(validation_result.unwrap_err())

    return Ok(config)
