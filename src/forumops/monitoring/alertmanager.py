"""AlertManager v2 API client."""

from __future__ import annotations

from dataclasses import dataclass, field

from .client import APIClient, MonitoringAPIError
from .prometheus import Alert


@dataclass
class Silence:
    """An AlertManager silence."""

    id: str
    state: str
    matchers: list[str] = field(default_factory=list)
    created_by: str = ""
    comment: str = ""
    ends_at: str = ""


def _format_matcher(m: dict) -> str:
    op = "=~" if m.get("isRegex") else "="
    if m.get("isEqual") is False:
        op = "!~" if m.get("isRegex") else "!="
    return f"{m.get('name', '')}{op}{m.get('value', '')}"


class AlertManagerClient(APIClient):
    """Client for the AlertManager API."""

    service = "AlertManager"

    def reload(self) -> None:
        """Re-read alertmanager.yml."""
        self.request("POST", "/-/reload")

    def alerts(self, active_only: bool = True) -> list[Alert]:
        """Alerts known to AlertManager.

        With ``active_only`` silenced and inhibited alerts are left out.
        """
        params = None
        if active_only:
            params = {"active": "true", "silenced": "false", "inhibited": "false"}
        payload = self.get_json("/api/v2/alerts", params=params)
        if not isinstance(payload, list):
            raise MonitoringAPIError(self.service, None, "unexpected alerts response")

        return [
            Alert(
                name=a.get("labels", {}).get("alertname", ""),
                state=a.get("status", {}).get("state", ""),
                labels=a.get("labels", {}),
                annotations=a.get("annotations", {}),
                active_at=a.get("startsAt", ""),
            )
            for a in payload
        ]

    def silences(self, include_expired: bool = False) -> list[Silence]:
        payload = self.get_json("/api/v2/silences")
        if not isinstance(payload, list):
            raise MonitoringAPIError(self.service, None, "unexpected silences response")

        silences = []
        for s in payload:
            state = s.get("status", {}).get("state", "")
            if state == "expired" and not include_expired:
                continue
            silences.append(
                Silence(
                    id=s.get("id", ""),
                    state=state,
                    matchers=[_format_matcher(m) for m in s.get("matchers", [])],
                    created_by=s.get("createdBy", ""),
                    comment=s.get("comment", ""),
                    ends_at=s.get("endsAt", ""),
                )
            )
        return silences
