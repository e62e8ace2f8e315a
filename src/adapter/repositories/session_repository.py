from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        stmt = select(Session).where(Session.id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> List[Session]:
        """Get all sessions for a user"""
        stmt = select(Session).where(Session.user_id == user_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_by_user_id(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[Session]:
        """Get non-revoked sessions for a user, optionally only unexpired ones"""
        stmt = select(Session).where(
            Session.user_id == user_id, Session.revoked_at.is_(None)
        )
        if now is not None:
            stmt = stmt.where(Session.expires_at > now)
        stmt = stmt.order_by(Session.last_used_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_user_id(
        self, user_id: str, active_at: Optional[datetime] = None
    ) -> int:
        """Count sessions for a user"""
        stmt = select(func.count()).select_from(Session).where(Session.user_id == user_id)
        if active_at is not None:
            stmt = stmt.where(Session.revoked_at.is_(None), Session.expires_at > active_at)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def rotate_refresh_token(
        self,
        session_id: UUID,
        expected_hash: str,
        new_hash: str,
        expires_at: datetime,
        last_used_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[Session]:
        """
        Compare-and-swap the refresh token hash.

        The WHERE clause carries the hash the caller verified against, so a
        concurrent rotation that already replaced it makes this a no-op.
        """
        values = {
            "refresh_token_hash": new_hash,
            "expires_at": expires_at,
            "last_used_at": last_used_at,
        }
        if ip_address is not None:
            values["ip_address"] = ip_address
        if user_agent is not None:
            values["user_agent"] = user_agent

        stmt = (
            update(Session)
            .where(
                Session.id == session_id,
                Session.refresh_token_hash == expected_hash,
                Session.revoked_at.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        if result.rowcount != 1:
            return None

        stmt = (
            select(Session)
            .where(Session.id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def revoke_by_id(self, session_id: UUID, revoked_at: datetime) -> bool:
        """Revoke a specific session by ID"""
        stmt = (
            update(Session)
            .where(Session.id == session_id, Session.revoked_at.is_(None))
            .values(revoked_at=revoked_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def revoke_by_ids(self, session_ids: List[UUID], revoked_at: datetime) -> int:
        """Revoke the given non-revoked sessions in one statement"""
        if not session_ids:
            return 0
        stmt = (
            update(Session)
            .where(Session.id.in_(session_ids), Session.revoked_at.is_(None))
            .values(revoked_at=revoked_at)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def get_expired_unrevoked(self, now: datetime, limit: int) -> List[Session]:
        """Expired sessions that were never revoked, oldest expiry first"""
        stmt = (
            select(Session)
            .where(Session.expires_at < now, Session.revoked_at.is_(None))
            .order_by(Session.expires_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
