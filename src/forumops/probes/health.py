"""HTTP health and readiness probes.

Probes never raise: a refused connection, a timeout, or a non-2xx status
all produce a :class:`ProbeResult` with ``ok=False`` so the caller can
print a fallback message and carry on with the next probe.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from forumops.config import ForumopsConfig, HttpMethod

logger = logging.getLogger(__name__)

# Response bodies are kept for display; anything longer is truncated
_BODY_LIMIT = 2000


@dataclass
class ProbeResult:
    """Outcome of a single HTTP probe."""

    name: str
    url: str
    ok: bool
    status_code: int | None = None
    elapsed_ms: float = 0.0
    body: str = ""
    error: str | None = None

    @property
    def summary(self) -> str:
        if self.error:
            return self.error
        return f"HTTP {self.status_code} in {self.elapsed_ms:.0f} ms"


def fallback_message(result: ProbeResult) -> str:
    """Message printed in place of a failed probe's output."""
    return f"{result.name} is not responding ({result.url})"


def request_probe(
    client: httpx.Client,
    name: str,
    url: str,
    method: str = "GET",
) -> ProbeResult:
    """Issue one request and turn the outcome into a ProbeResult."""
    start = time.monotonic()
    try:
        resp = client.request(method, url)
    except httpx.TimeoutException:
        elapsed = (time.monotonic() - start) * 1000
        logger.debug("Probe %s timed out: %s", name, url)
        return ProbeResult(name=name, url=url, ok=False, elapsed_ms=elapsed, error="timed out")
    except httpx.HTTPError as e:
        elapsed = (time.monotonic() - start) * 1000
        logger.debug("Probe %s failed: %s", name, e)
        return ProbeResult(
            name=name,
            url=url,
            ok=False,
            elapsed_ms=elapsed,
            error=f"connection failed: {e.__class__.__name__}",
        )

    elapsed = (time.monotonic() - start) * 1000
    return ProbeResult(
        name=name,
        url=url,
        ok=resp.is_success,
        status_code=resp.status_code,
        elapsed_ms=elapsed,
        body=resp.text[:_BODY_LIMIT],
    )


class HealthProber:
    """Probes the forum service and the monitoring stack.

    Args:
        config: Loaded forumops configuration.
        client: Optional pre-built httpx client (tests inject one backed
            by ``httpx.MockTransport``).
    """

    def __init__(self, config: ForumopsConfig, client: httpx.Client | None = None):
        self.config = config
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=config.http.timeout,
            verify=config.http.verify_tls,
        )

    def __enter__(self) -> HealthProber:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def probe(self, name: str, url: str, method: str = "GET") -> ProbeResult:
        return request_probe(self.client, name, url, method)

    def app_endpoints(self) -> list[tuple[str, str]]:
        app = self.config.app
        return [
            ("health", app.url(app.health_path)),
            ("liveness", app.url(app.live_path)),
            ("readiness", app.url(app.ready_path)),
        ]

    def stack_endpoints(self) -> list[tuple[str, str]]:
        return [
            ("prometheus", f"{self.config.prometheus.url}/-/healthy"),
            ("alertmanager", f"{self.config.alertmanager.url}/-/healthy"),
            ("grafana", f"{self.config.grafana.url}/api/health"),
        ]

    def probe_app(self) -> list[ProbeResult]:
        """Probe /health, /health/live and /health/ready."""
        return [self.probe(name, url) for name, url in self.app_endpoints()]

    def probe_stack(self) -> list[ProbeResult]:
        """Probe the Prometheus, AlertManager and Grafana health endpoints."""
        return [self.probe(name, url) for name, url in self.stack_endpoints()]

    def probe_ready(self) -> ProbeResult:
        app = self.config.app
        return self.probe("readiness", app.url(app.ready_path))

    def trigger_test_alert(self, method: HttpMethod | str | None = None) -> ProbeResult:
        """Hit the service's test-alert endpoint."""
        app = self.config.app
        verb = method or app.test_alert_method
        verb = verb.value if hasattr(verb, "value") else str(verb)
        return self.probe("test-alert", app.url(app.test_alert_path), method=verb)
