"""Shared test fixtures for all tests."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.fixtures.factories import InMemoryCatalog, InMemoryQuotaLedger


@pytest.fixture
def mock_user():
    """Mock user owning the files under test."""
    user = MagicMock()
    user.id = "user_123"
    user.email = "test@example.com"
    user.full_name = "Test User"
    user.is_active = True
    user.storage_quota = 10 * 1024**3
    user.storage_used = 0
    user.storage_reserved = 0
    user.created_at = datetime.now(UTC)
    return user


@pytest.fixture
def mock_db_session():
    """Mock database session."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_session_maker(mock_db_session):
    """Callable returning an async context manager that yields mock_db_session."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=mock_db_session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


@pytest.fixture
def mock_storage():
    """Mock content store."""
    storage = AsyncMock()
    storage.put = AsyncMock(return_value="users/user_123/files/2026/10/new.txt")
    storage.get = AsyncMock(return_value=b"content")
    storage.exists = AsyncMock(return_value=True)
    storage.delete = AsyncMock(return_value=True)
    return storage


@pytest.fixture
def mock_quota():
    """Mock quota ledger that always has room."""
    quota = AsyncMock()
    quota.reserve = AsyncMock(return_value=True)
    quota.confirm = AsyncMock()
    quota.cancel_reservation = AsyncMock()
    quota.release = AsyncMock()
    return quota


@pytest.fixture
def mock_activity():
    """Mock activity recorder."""
    activity = AsyncMock()
    activity.record = AsyncMock()
    return activity


@pytest.fixture
def catalog():
    """In-memory version catalog with commit/rollback semantics."""
    return InMemoryCatalog()


@pytest.fixture
def ledger():
    """In-memory quota ledger."""
    return InMemoryQuotaLedger()


@pytest.fixture
def local_storage(tmp_path):
    """Local storage backend rooted in a temp directory."""
    from file_storage.backends.local import LocalStorageBackend

    return LocalStorageBackend(base_path=tmp_path / "storage")
