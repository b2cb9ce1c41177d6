"""Forumops configuration module."""

from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    format_validation_errors,
    generate_default_config,
    generate_example_config_yaml,
    load_config,
    save_config,
)
from .schema import (
    AlertManagerConfig,
    AppConfig,
    BackupConfig,
    ForumopsConfig,
    GrafanaConfig,
    HttpConfig,
    HttpMethod,
    LoadProfile,
    LoadTestConfig,
    PrometheusConfig,
    StackConfig,
)

__all__ = [
    # Config classes
    "ForumopsConfig",
    "AppConfig",
    "PrometheusConfig",
    "AlertManagerConfig",
    "GrafanaConfig",
    "StackConfig",
    "BackupConfig",
    "LoadProfile",
    "LoadTestConfig",
    "HttpConfig",
    # Enums
    "HttpMethod",
    # Loader functions
    "load_config",
    "save_config",
    "generate_default_config",
    "generate_example_config_yaml",
    "format_validation_errors",
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
