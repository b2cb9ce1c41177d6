"""Configuration loader for forumops."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .schema import ForumopsConfig


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    pass


class ConfigParseError(ConfigError):
    """Raised when configuration file cannot be parsed."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def format_validation_errors(exc: ValidationError) -> tuple[str, list[dict[str, Any]]]:
    """Flatten a pydantic ValidationError into ``loc: msg`` lines.

    Returns:
        Tuple of (joined message lines, list of error dicts)
    """
    errors = exc.errors()
    lines = []
    for err in errors:
        loc = ".".join(str(x) for x in err["loc"]) or "(root)"
        lines.append(f"  - {loc}: {err['msg']}")
    return "\n".join(lines), [dict(e) for e in errors]  # type: ignore[call-overload]


def load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file and return as dictionary.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails or the top level is not a mapping
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    try:
        with open(path) as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}")  # noqa: B904

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigParseError(
            f"Expected a mapping at the top of {path}, got {type(content).__name__}"
        )
    return content


def load_config(path: str | Path) -> ForumopsConfig:
    """Load and validate forumops configuration from file.

    Args:
        path: Path to configuration YAML file

    Returns:
        Validated ForumopsConfig object

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    path = Path(path)
    data = load_yaml(path)

    try:
        return ForumopsConfig.model_validate(data)
    except ValidationError as e:
        message, errors = format_validation_errors(e)
        raise ConfigValidationError(  # noqa: B904
            "Configuration validation failed:\n" + message,
            errors=errors,
        )


def save_config(config: ForumopsConfig, path: str | Path) -> None:
    """Save configuration to YAML file."""
    path = Path(path)
    data = config.model_dump(mode="json", exclude_defaults=False)

    with open(path, "w") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def generate_default_config(
    name: str,
    app_url: str = "",
    prometheus_url: str = "",
    alertmanager_url: str = "",
    grafana_url: str = "",
) -> ForumopsConfig:
    """Generate a configuration with the given endpoints pre-filled.

    Empty arguments keep the localhost defaults.
    """
    config_dict: dict[str, Any] = {
        "name": name,
        "description": f"Monitoring stack for {name}",
        "version": 1,
    }
    if app_url:
        config_dict["app"] = {"base_url": app_url}
    if prometheus_url:
        config_dict["prometheus"] = {"url": prometheus_url}
    if alertmanager_url:
        config_dict["alertmanager"] = {"url": alertmanager_url}
    if grafana_url:
        config_dict["grafana"] = {"url": grafana_url}

    try:
        return ForumopsConfig.model_validate(config_dict)
    except ValidationError as e:
        message, errors = format_validation_errors(e)
        raise ConfigValidationError(  # noqa: B904
            "Configuration validation failed:\n" + message,
            errors=errors,
        )


def generate_example_config_yaml() -> str:
    """Generate example configuration YAML with comments.

    Only ``name`` is uncommented; every other option is shown with its
    default so operators can discover and enable it.
    """
    return """# Forumops Configuration
# =======================
# Describes the forum service and the monitoring stack around it.
#
# LEGEND:
#   Uncommented fields  = REQUIRED or explicitly set values
#   # field: value      = Available option with its DEFAULT value.

# REQUIRED: Name of the monitored deployment
name: forum-monitoring

# description: "Monitoring stack for the forum service"

# ============================================================================
# APPLICATION
# ============================================================================
app:
  base_url: http://localhost:3000
  # health_path: /health
  # live_path: /health/live
  # ready_path: /health/ready
  # metrics_path: /metrics
  # test_alert_path: /test-alert
  # test_alert_method: POST          # GET | POST

# ============================================================================
# MONITORING SERVICES
# ============================================================================
# prometheus:
#   url: http://localhost:9090
# alertmanager:
#   url: http://localhost:9093
# grafana:
#   url: http://localhost:3001
#   user: admin
#   password: admin

# ============================================================================
# COMPOSE STACK
# ============================================================================
# stack:
#   compose_file: docker-compose.monitoring.yml
#   project_name: ""                  # Empty = compose default
#   compose_command: [docker, compose] # [docker-compose] for compose v1
#   services: [prometheus, alertmanager, grafana, node-exporter]
#   timeout: 300

# ============================================================================
# BACKUPS
# ============================================================================
# backup:
#   directory: ./backups
#   paths:
#     - monitoring/prometheus
#     - monitoring/alertmanager
#     - monitoring/grafana
#   keep: 10                          # Older archives are pruned after backup

# ============================================================================
# LOAD TESTING (Apache Bench)
# ============================================================================
# loadtest:
#   binary: ab
#   path: /health
#   default_profile: light
#   keepalive: false
#   timeout: 30
#   profiles:
#     light:  {requests: 100, concurrency: 10}
#     medium: {requests: 1000, concurrency: 50}
#     heavy:  {requests: 10000, concurrency: 100}

# http:
#   timeout: 5.0
#   verify_tls: true
"""
