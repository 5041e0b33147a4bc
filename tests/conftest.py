"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from anchortrust.config import Settings
from anchortrust.logging import clear_context
from anchortrust.models import RawGraph, TrustRequest
from anchortrust.service import TrustService
from anchortrust.storage import InMemoryTrustStore


@pytest.fixture
def chain_graph() -> RawGraph:
    """admin -> bob -> carol, no cycles."""
    return {
        "admin": {"bob": 100},
        "bob": {"carol": 100},
        "carol": {},
    }


@pytest.fixture
def cycle_graph() -> RawGraph:
    """Anchor splits its trust between bob and carol, who trust each other fully."""
    return {
        "admin": {"bob": 50, "carol": 50},
        "bob": {"carol": 100},
        "carol": {"bob": 100},
    }


@pytest.fixture
def community_graph() -> RawGraph:
    """A small community with partial budgets, a self-loop and a cycle."""
    return {
        "admin": {"bob": 60, "carol": 40},
        "bob": {"carol": 30, "dave": 50, "bob": 20},
        "carol": {"bob": 40, "erin": 40},
        "dave": {"erin": 100},
        "erin": {"dave": 10},
    }


@pytest.fixture
def community_request(community_graph: RawGraph) -> TrustRequest:
    return TrustRequest(graph=community_graph, anchor_id="admin")


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment."""
    return Settings(_env_file=None, anchor_id="admin", log_format="text")  # type: ignore[call-arg]


@pytest.fixture
def store(community_graph: RawGraph) -> InMemoryTrustStore:
    return InMemoryTrustStore(anchor_id="admin", allocations=community_graph)


@pytest.fixture
def service(store: InMemoryTrustStore, settings: Settings) -> TrustService:
    return TrustService.create(store, settings)


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Keep structlog context variables from leaking between tests."""
    clear_context()
    yield
    clear_context()
