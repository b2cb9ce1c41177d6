"""Pydantic models for forumops configuration.

One YAML file describes where the forum service and its monitoring stack
live, how the compose stack is started, what gets backed up, and the load
test profiles.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from forumops._constants import (
    ALERTMANAGER_PORT,
    APP_PORT,
    DEFAULT_BACKUP_DIR,
    DEFAULT_COMPOSE_FILE,
    GRAFANA_PORT,
    PROMETHEUS_PORT,
)

# =============================================================================
# Helpers
# =============================================================================


def _normalize_url(value: str) -> str:
    value = value.strip()
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"URL must start with http:// or https://: {value!r}")
    return value.rstrip("/")


def _check_path(value: str) -> str:
    if not value.startswith("/"):
        raise ValueError(f"Path must start with '/': {value!r}")
    return value


# =============================================================================
# Enums
# =============================================================================


class HttpMethod(str, Enum):
    """HTTP methods accepted for the test-alert trigger."""

    GET = "GET"
    POST = "POST"


# =============================================================================
# Application (the monitored forum service)
# =============================================================================


class AppConfig(BaseModel):
    """HTTP surface of the forum service consumed by the probes."""

    base_url: str = f"http://localhost:{APP_PORT}"
    health_path: str = "/health"
    live_path: str = "/health/live"
    ready_path: str = "/health/ready"
    metrics_path: str = "/metrics"
    test_alert_path: str = "/test-alert"
    test_alert_method: HttpMethod = HttpMethod.POST

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        return _normalize_url(v)

    @field_validator("health_path", "live_path", "ready_path", "metrics_path", "test_alert_path")
    @classmethod
    def validate_paths(cls, v: str) -> str:
        return _check_path(v)

    def url(self, path: str) -> str:
        """Join a path onto the base URL."""
        return f"{self.base_url}{path}"


# =============================================================================
# Monitoring services
# =============================================================================


class PrometheusConfig(BaseModel):
    """Prometheus server location."""

    url: str = f"http://localhost:{PROMETHEUS_PORT}"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _normalize_url(v)


class AlertManagerConfig(BaseModel):
    """AlertManager location."""

    url: str = f"http://localhost:{ALERTMANAGER_PORT}"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _normalize_url(v)


class GrafanaConfig(BaseModel):
    """Grafana location and basic-auth credentials."""

    url: str = f"http://localhost:{GRAFANA_PORT}"
    user: str = "admin"
    password: str = "admin"

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _normalize_url(v)


# =============================================================================
# Compose stack
# =============================================================================


class StackConfig(BaseModel):
    """docker compose invocation for the monitoring stack."""

    compose_file: str = DEFAULT_COMPOSE_FILE
    project_name: str = ""  # Empty = compose default (directory name)
    compose_command: list[str] = Field(default_factory=lambda: ["docker", "compose"])
    services: list[str] = Field(
        default_factory=lambda: ["prometheus", "alertmanager", "grafana", "node-exporter"]
    )
    timeout: int = Field(default=300, ge=1, description="Seconds before a compose call is killed")

    @field_validator("compose_command")
    @classmethod
    def validate_compose_command(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("compose_command must not be empty")
        return v


# =============================================================================
# Backups
# =============================================================================


class BackupConfig(BaseModel):
    """Which monitoring config directories to archive, and where."""

    directory: str = DEFAULT_BACKUP_DIR
    paths: list[str] = Field(
        default_factory=lambda: [
            "monitoring/prometheus",
            "monitoring/alertmanager",
            "monitoring/grafana",
        ]
    )
    keep: int = Field(default=10, ge=1)


# =============================================================================
# Load testing
# =============================================================================


class LoadProfile(BaseModel):
    """One Apache Bench profile."""

    requests: int = Field(default=100, ge=1)
    concurrency: int = Field(default=10, ge=1)

    @model_validator(mode="after")
    def validate_concurrency(self) -> LoadProfile:
        """ab refuses to run with more concurrent clients than requests."""
        if self.concurrency > self.requests:
            raise ValueError(
                f"concurrency ({self.concurrency}) cannot exceed requests ({self.requests})"
            )
        return self


def _default_profiles() -> dict[str, LoadProfile]:
    return {
        "light": LoadProfile(requests=100, concurrency=10),
        "medium": LoadProfile(requests=1000, concurrency=50),
        "heavy": LoadProfile(requests=10000, concurrency=100),
    }


class LoadTestConfig(BaseModel):
    """Apache Bench wrapper settings."""

    binary: str = "ab"
    path: str = "/health"
    default_profile: str = "light"
    keepalive: bool = False
    timeout: int = Field(default=30, ge=1, description="ab -s socket timeout in seconds")
    profiles: dict[str, LoadProfile] = Field(default_factory=_default_profiles)

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        return _check_path(v)

    @model_validator(mode="after")
    def validate_default_profile(self) -> LoadTestConfig:
        if self.default_profile not in self.profiles:
            valid = ", ".join(sorted(self.profiles)) or "(none)"
            raise ValueError(
                f"default_profile '{self.default_profile}' is not defined. Profiles: {valid}"
            )
        return self

    def get_profile(self, name: str | None = None) -> LoadProfile:
        """Look up a profile by name, falling back to the default profile."""
        key = name or self.default_profile
        try:
            return self.profiles[key]
        except KeyError:
            valid = ", ".join(sorted(self.profiles))
            raise ValueError(f"Unknown load profile: {key}. Valid profiles: {valid}")  # noqa: B904


# =============================================================================
# HTTP client
# =============================================================================


class HttpConfig(BaseModel):
    """Settings shared by every HTTP client."""

    timeout: float = Field(default=5.0, gt=0)
    verify_tls: bool = True


# =============================================================================
# Root Configuration
# =============================================================================


class ForumopsConfig(BaseModel):
    """Root configuration for forumops."""

    name: str = Field(default="", description="Name of the monitored deployment (REQUIRED)")
    description: str = ""
    version: int = 1

    app: AppConfig = Field(default_factory=AppConfig)
    prometheus: PrometheusConfig = Field(default_factory=PrometheusConfig)
    alertmanager: AlertManagerConfig = Field(default_factory=AlertManagerConfig)
    grafana: GrafanaConfig = Field(default_factory=GrafanaConfig)
    stack: StackConfig = Field(default_factory=StackConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)
    loadtest: LoadTestConfig = Field(default_factory=LoadTestConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)

    @model_validator(mode="after")
    def validate_required_fields(self) -> ForumopsConfig:
        """Validate required fields are present."""
        if not self.name:
            raise ValueError("'name' is required")
        return self

    def service_urls(self) -> dict[str, str]:
        """URLs of every component, keyed by display name."""
        return {
            "app": self.app.base_url,
            "metrics": self.app.url(self.app.metrics_path),
            "prometheus": self.prometheus.url,
            "alertmanager": self.alertmanager.url,
            "grafana": self.grafana.url,
        }
