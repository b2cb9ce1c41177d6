"""Wait-for-ready polling."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class WaitStatus(Enum):
    """Status of a wait operation."""

    READY = "ready"
    TIMEOUT = "timeout"


@dataclass
class WaitResult:
    """Result of a wait operation."""

    status: WaitStatus
    message: str
    elapsed_seconds: float
    attempts: int

    @property
    def ready(self) -> bool:
        return self.status == WaitStatus.READY


def wait_until_ready(
    check_fn: Callable[[], tuple[bool, str]],
    timeout_seconds: float = 120,
    poll_interval: float = 2,
    description: str = "service",
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> WaitResult:
    """Poll *check_fn* until it succeeds or the timeout elapses.

    Args:
        check_fn: Returns (success, message)
        timeout_seconds: Maximum time to wait
        poll_interval: Seconds between checks
        description: Used in the timeout message
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        WaitResult with outcome
    """
    start = clock()
    attempts = 0

    while True:
        attempts += 1
        success, message = check_fn()
        elapsed = clock() - start

        if success:
            return WaitResult(
                status=WaitStatus.READY,
                message=message,
                elapsed_seconds=elapsed,
                attempts=attempts,
            )

        logger.debug("Waiting for %s (attempt %d): %s", description, attempts, message)
        if elapsed >= timeout_seconds:
            return WaitResult(
                status=WaitStatus.TIMEOUT,
                message=f"Timeout after {int(elapsed)}s waiting for {description}: {message}",
                elapsed_seconds=elapsed,
                attempts=attempts,
            )

        sleep(poll_interval)
