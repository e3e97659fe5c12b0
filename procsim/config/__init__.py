"""Configuration module for procsim."""

from procsim.config.settings import EngineConfig, LoggingConfig, load_config

__all__ = ["EngineConfig", "LoggingConfig", "load_config"]
