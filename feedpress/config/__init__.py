"""Configuration management for feedpress."""

from .loader import Config, load_config, save_config
from .models import (
    CacheConfig,
    ConfigModel,
    LLMConfig,
    LoggingConfig,
    PostgresConfig,
    RefreshConfig,
    TimeoutConfig,
)

__all__ = [
    "CacheConfig",
    "Config",
    "ConfigModel",
    "LLMConfig",
    "LoggingConfig",
    "PostgresConfig",
    "RefreshConfig",
    "TimeoutConfig",
    "load_config",
    "save_config",
]
