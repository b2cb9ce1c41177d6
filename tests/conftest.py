"""Shared fixtures for forumops test suite."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock, patch

import httpx
import pytest

from forumops.config import ForumopsConfig

VALID_UUID = "123e4567-e89b-12d3-a456-426614174000"
OTHER_UUID = "9b2f7c1e-4d3a-4b8e-9f10-2a6c5d7e8f90"


def make_config(**overrides) -> ForumopsConfig:
    """Create a ForumopsConfig with sensible defaults for testing.

    This is the canonical config factory for tests. Prefer this over
    hand-building dicts so that new required fields are handled in one place.
    """
    base: dict = {
        "name": "test-fixture",
        "app": {"base_url": "http://forum.test:3000"},
        "prometheus": {"url": "http://prom.test:9090"},
        "alertmanager": {"url": "http://am.test:9093"},
        "grafana": {"url": "http://grafana.test:3001"},
    }
    base.update(overrides)
    return ForumopsConfig(**base)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """httpx client whose requests are answered by *handler*."""
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def default_config() -> ForumopsConfig:
    """A default ForumopsConfig for tests that don't care about specifics."""
    return make_config()


@pytest.fixture
def mock_subprocess():
    """Mock subprocess.run for tests that exercise docker compose / ab calls."""
    with patch("subprocess.run") as m:
        m.return_value = MagicMock(
            returncode=0,
            stdout="",
            stderr="",
        )
        yield m


@pytest.fixture
def topic_payload() -> dict:
    """A complete, valid forum topic payload."""
    return {
        "title": "Welcome to the course forum",
        "isPinned": True,
        "isClosed": False,
        "courseId": OTHER_UUID,
        "categoryId": VALID_UUID,
    }
