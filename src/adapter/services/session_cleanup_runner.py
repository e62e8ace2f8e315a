import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.session_service import SessionService
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SessionCleanupRunner:
    """
    Periodically revokes expired sessions.

    Every tick opens its own database session. Failures are logged and the
    loop keeps running.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        service_builder: Callable[[UnitOfWork], SessionService],
        interval_seconds: float,
    ):
        self.session_factory = session_factory
        self.service_builder = service_builder
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> int:
        async with self.session_factory() as db_session:
            service = self.service_builder(SqlAlchemyUnitOfWork(db_session))
            result = await service.cleanup_expired_sessions()

        if result.is_err():
            logger.error(f"Session cleanup failed: {result.error.code}")
            return 0
        return result.value

    async def _run_forever(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Session cleanup tick failed")

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._run_forever())
            logger.info(f"Session cleanup scheduled every {self.interval_seconds}s")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
