"""Configuration models and loaders for mirrorkit."""

from .loader import BASE_URL_ENV, ConfigError, DEFAULT_CONFIG_PATH, dump_example_config, load_config
from .models import HttpConfig, MirrorConfig, RuntimeConfig

__all__ = [
    "BASE_URL_ENV",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "HttpConfig",
    "MirrorConfig",
    "RuntimeConfig",
    "dump_example_config",
    "load_config",
]
