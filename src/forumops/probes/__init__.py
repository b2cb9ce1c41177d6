"""Health probes for the forum service and monitoring stack."""

from .health import HealthProber, ProbeResult, fallback_message, request_probe
from .wait import WaitResult, WaitStatus, wait_until_ready

__all__ = [
    "HealthProber",
    "ProbeResult",
    "fallback_message",
    "request_probe",
    "WaitResult",
    "WaitStatus",
    "wait_until_ready",
]
