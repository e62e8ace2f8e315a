import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from libs.result import Error, Return
from src.adapter.services.session_cleanup_runner import SessionCleanupRunner
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork


def make_factory():
    db_session = MagicMock()
    db_session.__aenter__ = AsyncMock(return_value=db_session)
    db_session.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=db_session), db_session


@pytest.mark.asyncio
async def test_run_once_returns_revoked_count():
    factory, db_session = make_factory()
    service = MagicMock()
    service.cleanup_expired_sessions = AsyncMock(return_value=Return.ok(4))
    builder = MagicMock(return_value=service)

    runner = SessionCleanupRunner(factory, builder, interval_seconds=60)
    count = await runner.run_once()

    assert count == 4
    uow = builder.call_args.args[0]
    assert isinstance(uow, SqlAlchemyUnitOfWork)
    assert uow.session is db_session
    db_session.__aexit__.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_once_failure_returns_zero():
    factory, _ = make_factory()
    service = MagicMock()
    service.cleanup_expired_sessions = AsyncMock(
        return_value=Return.err(Error("CLEANUP_FAILED", "Expired session cleanup failed"))
    )

    runner = SessionCleanupRunner(factory, MagicMock(return_value=service), interval_seconds=60)

    assert await runner.run_once() == 0


@pytest.mark.asyncio
async def test_loop_survives_failing_tick():
    """Test an exception in one tick does not stop the schedule"""
    factory, _ = make_factory()
    ticks = asyncio.Event()
    calls = []

    async def cleanup():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("store unavailable")
        ticks.set()
        return Return.ok(0)

    service = MagicMock()
    service.cleanup_expired_sessions = cleanup
    runner = SessionCleanupRunner(factory, MagicMock(return_value=service), interval_seconds=0)

    runner.start()
    await asyncio.wait_for(ticks.wait(), timeout=5)
    await runner.stop()

    assert len(calls) >= 2
    assert runner._task is None


@pytest.mark.asyncio
async def test_stop_without_start():
    factory, _ = make_factory()
    runner = SessionCleanupRunner(factory, MagicMock(), interval_seconds=60)

    await runner.stop()
