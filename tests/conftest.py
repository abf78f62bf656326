"""Shared pytest fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from entra_membership.core.config import MembershipConfig, MutationPolicy, PollPolicy


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set mock environment variables for testing."""
    monkeypatch.setenv("MS_GRAPH_TENANT_ID", "test-tenant-id")
    monkeypatch.setenv("MS_GRAPH_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("MS_GRAPH_CLIENT_SECRET", "test-client-secret")


@pytest.fixture
def clean_membership_env(monkeypatch):
    """Remove membership tuning variables so defaults apply."""
    for name in (
        "ENTRA_MEMBER_ADD_ATTEMPTS",
        "ENTRA_MEMBER_ADD_DELAY",
        "ENTRA_OWNER_ADD_ATTEMPTS",
        "ENTRA_OWNER_CONFIRM",
        "ENTRA_POLL_ATTEMPTS",
        "ENTRA_POLL_DELAY",
        "ENTRA_POLL_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_graph_client():
    """Mock MS Graph client for testing."""
    return MagicMock()


@pytest.fixture
def mock_sleep():
    """Sleep replacement that records delays without waiting."""
    return AsyncMock()


@pytest.fixture
def fast_config():
    """Membership config with the default budgets and no overall poll timeout."""
    return MembershipConfig(
        members=MutationPolicy(attempts=11, delay=2.0, confirm=True),
        owners=MutationPolicy(attempts=1),
        poll=PollPolicy(attempts=5, delay=1.0, timeout=None),
    )
