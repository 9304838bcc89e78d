import pytest
from unittest.mock import AsyncMock, MagicMock

from session_engine.app.services.session_store import SessionStore
from session_engine.app.services.settings import SessionSettings
from tests.fixtures.in_memory import FakeClock, InMemoryUnitOfWork


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def settings():
    return SessionSettings(
        secret_key="unit-test-secret-key-0123456789abcdef",
        session_expiry_minutes=60,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def uow():
    return InMemoryUnitOfWork()


@pytest.fixture
def store(uow, settings, clock):
    return SessionStore(uow, settings, clock=clock)
