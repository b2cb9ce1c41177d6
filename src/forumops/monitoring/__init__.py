"""Monitoring stack API clients.

Prometheus, AlertManager and Grafana clients share one httpx-based base
class; ``exposition`` reads the forum service's own ``/metrics`` output.
"""

from .alertmanager import AlertManagerClient, Silence
from .client import APIClient, MonitoringAPIError, MonitoringError, MonitoringUnavailableError
from .exposition import MetricFamilySummary, MetricsParseError, fetch_metrics, summarize_metrics
from .grafana import Dashboard, Datasource, GrafanaClient, GrafanaHealth
from .prometheus import Alert, PrometheusClient, Rule, RuleGroup, Sample, Target

__all__ = [
    "APIClient",
    "PrometheusClient",
    "AlertManagerClient",
    "GrafanaClient",
    "Alert",
    "Rule",
    "RuleGroup",
    "Target",
    "Sample",
    "Silence",
    "Dashboard",
    "Datasource",
    "GrafanaHealth",
    "MetricFamilySummary",
    "fetch_metrics",
    "summarize_metrics",
    "MonitoringError",
    "MonitoringAPIError",
    "MonitoringUnavailableError",
    "MetricsParseError",
]
