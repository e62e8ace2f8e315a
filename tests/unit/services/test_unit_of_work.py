from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.session_repository import SessionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
def db_session():
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.mark.asyncio
async def test_enter_binds_repositories(db_session):
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        assert isinstance(uow.sessions, SessionRepository)
        assert isinstance(uow.audit_events, AuditEventRepository)
        assert uow.sessions.session is db_session


@pytest.mark.asyncio
async def test_exception_rolls_back(db_session):
    """Test uncommitted work is discarded when the block raises"""
    with pytest.raises(RuntimeError):
        async with SqlAlchemyUnitOfWork(db_session):
            raise RuntimeError("store unavailable")

    db_session.rollback.assert_awaited_once()
    db_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_clean_exit_keeps_loaded_state(db_session):
    """Test a block that finishes normally is not rolled back"""
    async with SqlAlchemyUnitOfWork(db_session) as uow:
        await uow.commit()

    db_session.commit.assert_awaited_once()
    db_session.rollback.assert_not_called()
