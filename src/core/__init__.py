"""Core package exports."""

from .config_loader import AppConfig, ConfigResolver, load_config
from .errors import ConfigError, ConfigFileError, ConfigParseError, ConfigValidationError
from .validation import validate_config

__all__ = [
    "AppConfig",
    "ConfigError",
    "ConfigFileError",
    "ConfigParseError",
    "ConfigResolver",
    "ConfigValidationError",
    "load_config",
    "validate_config",
]
