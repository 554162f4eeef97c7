"""
Global test configuration: environment isolation and a simulated service.
"""

import os
from typing import Any

import pytest

from nextrows import AsyncNextrowsClient, NextrowsClient
from tests.helpers import TEST_API_KEY, FakeService


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_nextrows_env(request, monkeypatch):
    """Ensure a clean NEXTROWS_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("NEXTROWS_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def client(service):
    with NextrowsClient(TEST_API_KEY, transport=service.transport) as c:
        yield c


@pytest.fixture
def async_client_factory(service):
    """Build AsyncNextrowsClient instances bound to the fake service."""

    def _make(**kwargs: Any) -> AsyncNextrowsClient:
        return AsyncNextrowsClient(TEST_API_KEY, transport=service.transport, **kwargs)

    return _make
