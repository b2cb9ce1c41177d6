"""Shared HTTP plumbing for the monitoring API clients."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class MonitoringError(Exception):
    """Base exception for monitoring API errors."""

    pass


class MonitoringUnavailableError(MonitoringError):
    """Raised when a monitoring service cannot be reached."""

    def __init__(self, service: str, url: str, reason: str = ""):
        self.service = service
        self.url = url
        detail = f": {reason}" if reason else ""
        super().__init__(f"{service} is not responding ({url}){detail}")


class MonitoringAPIError(MonitoringError):
    """Raised when a monitoring API answers with an error."""

    def __init__(self, service: str, status_code: int | None, message: str):
        self.service = service
        self.status_code = status_code
        self.message = message
        prefix = f"HTTP {status_code}: " if status_code else ""
        super().__init__(f"{service} API error: {prefix}{message}")


class APIClient:
    """Thin httpx wrapper that maps transport and status errors.

    Args:
        service: Display name used in error messages.
        base_url: Service root URL, without trailing slash.
        client: Optional pre-built httpx client; when omitted one is created
            and closed with this object.
    """

    service = "service"
    health_path = "/-/healthy"

    def __init__(
        self,
        base_url: str,
        client: httpx.Client | None = None,
        timeout: float = 5.0,
        verify: bool = True,
        auth: tuple[str, str] | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout, verify=verify)
        self.auth = auth

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a request and return the response if it is 2xx.

        Raises:
            MonitoringUnavailableError: On connection errors and timeouts.
            MonitoringAPIError: On non-2xx responses.
        """
        url = f"{self.base_url}{path}"
        kwargs: dict[str, Any] = {"params": params}
        if self.auth:
            kwargs["auth"] = self.auth
        logger.debug("%s %s %s", self.service, method, url)

        try:
            resp = self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise MonitoringUnavailableError(self.service, url, e.__class__.__name__)  # noqa: B904

        if not resp.is_success:
            raise MonitoringAPIError(self.service, resp.status_code, self._error_message(resp))
        return resp

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        resp = self.request("GET", path, params=params)
        try:
            return resp.json()
        except ValueError:
            raise MonitoringAPIError(  # noqa: B904
                self.service, resp.status_code, f"invalid JSON from {path}"
            )

    def healthy(self) -> bool:
        """True when the service's health endpoint answers 2xx."""
        try:
            self.request("GET", self.health_path)
        except MonitoringError:
            return False
        return True

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            return resp.text.strip()[:200] or resp.reason_phrase
        if isinstance(data, dict):
            return str(data.get("error") or data.get("message") or data)[:200]
        return str(data)[:200]
