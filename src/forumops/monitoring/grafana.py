"""Grafana HTTP API client."""

from __future__ import annotations

from dataclasses import dataclass, field

from .client import APIClient, MonitoringAPIError


@dataclass
class GrafanaHealth:
    database: str
    version: str

    @property
    def ok(self) -> bool:
        return self.database == "ok"


@dataclass
class Dashboard:
    uid: str
    title: str
    url: str
    folder: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class Datasource:
    name: str
    type: str
    url: str
    is_default: bool = False


class GrafanaClient(APIClient):
    """Client for the Grafana API (basic auth)."""

    service = "Grafana"
    health_path = "/api/health"

    def health(self) -> GrafanaHealth:
        data = self.get_json("/api/health")
        return GrafanaHealth(database=data.get("database", ""), version=data.get("version", ""))

    def dashboards(self, query: str = "") -> list[Dashboard]:
        params = {"type": "dash-db"}
        if query:
            params["query"] = query
        payload = self.get_json("/api/search", params=params)
        if not isinstance(payload, list):
            raise MonitoringAPIError(self.service, None, "unexpected search response")
        return [
            Dashboard(
                uid=d.get("uid", ""),
                title=d.get("title", ""),
                url=d.get("url", ""),
                folder=d.get("folderTitle", "General"),
                tags=d.get("tags", []),
            )
            for d in payload
        ]

    def datasources(self) -> list[Datasource]:
        payload = self.get_json("/api/datasources")
        if not isinstance(payload, list):
            raise MonitoringAPIError(self.service, None, "unexpected datasources response")
        return [
            Datasource(
                name=d.get("name", ""),
                type=d.get("type", ""),
                url=d.get("url", ""),
                is_default=bool(d.get("isDefault", False)),
            )
            for d in payload
        ]
