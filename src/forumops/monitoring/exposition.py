"""Reading the service's ``/metrics`` endpoint.

The text exposition format is parsed with ``prometheus_client``'s parser so
the operator gets a per-family summary instead of a raw dump.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from prometheus_client.parser import text_string_to_metric_families

from .client import MonitoringAPIError, MonitoringError, MonitoringUnavailableError


class MetricsParseError(MonitoringError):
    """Raised when a /metrics body is not valid text exposition format."""

    pass


@dataclass
class MetricFamilySummary:
    name: str
    type: str
    documentation: str
    sample_count: int
    first_value: float | None = None


def fetch_metrics(client: httpx.Client, url: str) -> str:
    """GET the exposition text.

    Raises:
        MonitoringUnavailableError: If the endpoint cannot be reached.
        MonitoringAPIError: On a non-2xx response.
    """
    try:
        resp = client.get(url)
    except httpx.HTTPError as e:
        raise MonitoringUnavailableError("metrics", url, e.__class__.__name__)  # noqa: B904
    if not resp.is_success:
        raise MonitoringAPIError("metrics", resp.status_code, resp.text.strip()[:200])
    return resp.text


def summarize_metrics(text: str, prefix: str | None = None) -> list[MetricFamilySummary]:
    """Summarize each metric family, optionally keeping only names with *prefix*.

    Counter families are named without their ``_total`` suffix, as
    ``prometheus_client`` reports them.
    """
    summaries = []
    try:
        for family in text_string_to_metric_families(text):
            if prefix and not family.name.startswith(prefix):
                continue
            summaries.append(
                MetricFamilySummary(
                    name=family.name,
                    type=family.type,
                    documentation=family.documentation,
                    sample_count=len(family.samples),
                    first_value=family.samples[0].value if family.samples else None,
                )
            )
    except ValueError as e:
        raise MetricsParseError(f"Invalid metrics exposition: {e}")  # noqa: B904
    return sorted(summaries, key=lambda s: s.name)
