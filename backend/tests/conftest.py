"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import pytest
from datetime import datetime, timezone, timedelta
import jwt  # PyJWT

from api.dependencies import reset_container
from shared.clock import FixedClock
from modules.audit.service import AuditLog
from modules.entitlements.reconciler import ActivationReconciler
from modules.entitlements.repository import InMemoryEntitlementStore


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

# A fixed instant every time-dependent test starts from
T0 = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def create_test_token(
    user_id: str = "test-user-123",
    email: str = "test@example.com",
    expired: bool = False,
    email_verified: bool = True,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        email: Email to include in the token
        expired: If True, creates an expired token
        email_verified: Whether the email should be marked as verified

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "email": email,
        "email_confirmed_at": now.isoformat() if email_verified else None,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_service_container():
    """Reset the service container before and after each test."""
    reset_container()
    yield
    reset_container()


@pytest.fixture
def test_user_id() -> str:
    """Provide a consistent test user ID."""
    return "test-user-123"


@pytest.fixture
def auth_headers(test_user_id: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {create_test_token(user_id=test_user_id)}"}


@pytest.fixture
def clock() -> FixedClock:
    """A clock frozen at T0; tests move it with advance()/set()."""
    return FixedClock(T0)


@pytest.fixture
def audit() -> AuditLog:
    return AuditLog()


@pytest.fixture
def store() -> InMemoryEntitlementStore:
    return InMemoryEntitlementStore()


@pytest.fixture
def reconciler(store, audit, clock) -> ActivationReconciler:
    return ActivationReconciler(store=store, audit=audit, clock=clock)


TEST_WEBHOOK_SECRET = "whsec-test"
TEST_ADMIN_ID = "admin-root"


@pytest.fixture
def container(monkeypatch, clock):
    """
    A memory-backed service container installed as the app's singleton.

    The JWT and webhook secrets are set in the environment so tokens from
    create_test_token() are accepted; TEST_ADMIN_ID is a super admin.
    """
    from api import dependencies
    from shared.config import get_settings

    monkeypatch.setenv("SUPABASE_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)
    monkeypatch.setenv("ADMIN_BOOTSTRAP_IDS", f'["{TEST_ADMIN_ID}"]')
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    get_settings.cache_clear()

    instance = dependencies.ServiceContainer(clock=clock)
    monkeypatch.setattr(dependencies, "_container", instance)
    yield instance
    get_settings.cache_clear()


@pytest.fixture
def client(container):
    """TestClient over the app; the lifespan (and its sweeper) is not started."""
    from fastapi.testclient import TestClient
    from api.app import create_app

    return TestClient(create_app())
