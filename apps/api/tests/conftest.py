"""
Shared fixtures for the portal test suite.

Settings are read from the environment when ``coop_portal.core.config`` is
first imported, so the test defaults are set before anything else loads.
"""

import os

os.environ.setdefault("PYTHON_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MOCK_LATENCY_SCALE", "0")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import UUID, uuid4  # noqa: E402

import pytest  # noqa: E402

from coop_portal.core.auth import CurrentUser  # noqa: E402
from coop_portal.core.permissions import Role  # noqa: E402


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()

    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=None)
    nested.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=nested)
    return db


@pytest.fixture
def county_id():
    """Return a consistent county (tenant) UUID for testing."""
    return UUID("00000000-0000-0000-0000-000000000047")


@pytest.fixture
def super_admin():
    return CurrentUser(
        id=UUID("00000000-0000-0000-0000-000000000001"),
        email="admin@coop.test",
        role=Role.SUPER_ADMIN,
        name="Super Admin",
    )


@pytest.fixture
def county_admin(county_id):
    return CurrentUser(
        id=uuid4(),
        email="county.admin@coop.test",
        role=Role.COUNTY_ADMIN,
        tenant_id=county_id,
        name="County Admin",
    )


@pytest.fixture
def county_officer(county_id):
    return CurrentUser(
        id=uuid4(),
        email="officer@coop.test",
        role=Role.COUNTY_OFFICER,
        tenant_id=county_id,
        name="County Officer",
    )


@pytest.fixture
def citizen(county_id):
    return CurrentUser(
        id=uuid4(),
        email="citizen@coop.test",
        role=Role.CITIZEN,
        tenant_id=county_id,
        name="Jane Wanjiku",
    )


@pytest.fixture
def cooperative_admin(county_id):
    return CurrentUser(
        id=uuid4(),
        email="coop.admin@coop.test",
        role=Role.COOPERATIVE_ADMIN,
        tenant_id=county_id,
        cooperative_id=uuid4(),
        name="Cooperative Admin",
    )
