"""Prometheus HTTP API client.

Covers the endpoints the operator workflow needs: health, config reload,
alerts, rules, scrape targets and instant queries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .client import APIClient, MonitoringAPIError

logger = logging.getLogger(__name__)


@dataclass
class Alert:
    """An alert as reported by Prometheus or AlertManager."""

    name: str
    state: str
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    active_at: str = ""
    value: str = ""

    @property
    def severity(self) -> str:
        return self.labels.get("severity", "")

    @property
    def summary(self) -> str:
        return self.annotations.get("summary") or self.annotations.get("description", "")


@dataclass
class Rule:
    """One alerting or recording rule."""

    name: str
    type: str
    health: str = ""
    state: str = ""  # Recording rules have no state
    query: str = ""
    last_error: str = ""


@dataclass
class RuleGroup:
    """A rule group loaded from a rules file."""

    name: str
    file: str
    rules: list[Rule] = field(default_factory=list)


@dataclass
class Target:
    """An active scrape target."""

    job: str
    instance: str
    scrape_url: str
    health: str
    last_error: str = ""
    last_scrape: str = ""

    @property
    def up(self) -> bool:
        return self.health == "up"


@dataclass
class Sample:
    """A single instant-query sample."""

    metric: dict[str, str]
    timestamp: float
    value: str

    def label_string(self) -> str:
        name = self.metric.get("__name__", "")
        labels = ",".join(f'{k}="{v}"' for k, v in sorted(self.metric.items()) if k != "__name__")
        return f"{name}{{{labels}}}" if labels else name or "{}"


class PrometheusClient(APIClient):
    """Client for the Prometheus server API."""

    service = "Prometheus"

    def _data(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Unwrap the ``{"status": ..., "data": ...}`` envelope."""
        payload = self.get_json(path, params=params)
        if not isinstance(payload, dict):
            raise MonitoringAPIError(self.service, None, f"unexpected response from {path}")
        if payload.get("status") != "success":
            raise MonitoringAPIError(
                self.service,
                None,
                f"{payload.get('errorType', 'error')}: {payload.get('error', 'unknown error')}",
            )
        return payload.get("data", {})

    def reload(self) -> None:
        """Ask Prometheus to re-read its configuration and rules.

        Raises:
            MonitoringAPIError: 403/405 when the lifecycle API is disabled.
        """
        try:
            self.request("POST", "/-/reload")
        except MonitoringAPIError as e:
            if e.status_code in (403, 405):
                raise MonitoringAPIError(  # noqa: B904
                    self.service,
                    e.status_code,
                    "lifecycle API disabled; start Prometheus with --web.enable-lifecycle",
                )
            raise

    def alerts(self) -> list[Alert]:
        """Active (pending or firing) alerts."""
        data = self._data("/api/v1/alerts")
        return [
            Alert(
                name=a.get("labels", {}).get("alertname", ""),
                state=a.get("state", ""),
                labels=a.get("labels", {}),
                annotations=a.get("annotations", {}),
                active_at=a.get("activeAt", ""),
                value=str(a.get("value", "")),
            )
            for a in data.get("alerts", [])
        ]

    def rules(self, rule_type: str | None = None) -> list[RuleGroup]:
        """Loaded rule groups, optionally filtered to ``alert`` or ``record``."""
        params = {"type": rule_type} if rule_type else None
        data = self._data("/api/v1/rules", params=params)
        groups = []
        for g in data.get("groups", []):
            rules = [
                Rule(
                    name=r.get("name", ""),
                    type=r.get("type", ""),
                    health=r.get("health", ""),
                    state=r.get("state", ""),
                    query=r.get("query", ""),
                    last_error=r.get("lastError", ""),
                )
                for r in g.get("rules", [])
            ]
            groups.append(RuleGroup(name=g.get("name", ""), file=g.get("file", ""), rules=rules))
        return groups

    def targets(self) -> list[Target]:
        """Active scrape targets."""
        data = self._data("/api/v1/targets", params={"state": "active"})
        targets = []
        for t in data.get("activeTargets", []):
            labels = t.get("labels", {})
            targets.append(
                Target(
                    job=labels.get("job", t.get("scrapePool", "")),
                    instance=labels.get("instance", ""),
                    scrape_url=t.get("scrapeUrl", ""),
                    health=t.get("health", "unknown"),
                    last_error=t.get("lastError", ""),
                    last_scrape=t.get("lastScrape", ""),
                )
            )
        return targets

    def query(self, promql: str) -> list[Sample]:
        """Run an instant query.

        Vector results give one sample per series; scalar and string results
        give a single sample with empty labels.
        """
        data = self._data("/api/v1/query", params={"query": promql})
        result_type = data.get("resultType")
        result = data.get("result", [])

        if result_type in ("scalar", "string"):
            ts, value = result
            return [Sample(metric={}, timestamp=float(ts), value=str(value))]

        if result_type == "matrix":
            # Range selectors return every point; keep the newest per series
            samples = []
            for series in result:
                values = series.get("values", [])
                if values:
                    ts, value = values[-1]
                    samples.append(
                        Sample(metric=series.get("metric", {}), timestamp=float(ts), value=value)
                    )
            return samples

        return [
            Sample(
                metric=s.get("metric", {}),
                timestamp=float(s["value"][0]),
                value=str(s["value"][1]),
            )
            for s in result
            if s.get("value")
        ]
