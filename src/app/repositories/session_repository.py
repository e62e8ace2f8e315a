from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[Session]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> List[Session]:
        """Get all sessions for a user"""
        pass

    @abstractmethod
    async def get_active_by_user_id(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[Session]:
        """
        Get non-revoked sessions for a user.

        When ``now`` is given, sessions whose expires_at is not after it are
        left out.
        """
        pass

    @abstractmethod
    async def count_by_user_id(
        self, user_id: str, active_at: Optional[datetime] = None
    ) -> int:
        """Count a user's sessions, or only those active and unexpired at active_at"""
        pass

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
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
        Replace the refresh token hash only if it still equals expected_hash
        and the session is not revoked.

        Returns the updated session, or None when the condition did not hold.
        """
        pass

    @abstractmethod
    async def revoke_by_id(self, session_id: UUID, revoked_at: datetime) -> bool:
        """Revoke a session. Returns True if it existed and was not yet revoked."""
        pass

    @abstractmethod
    async def revoke_by_ids(self, session_ids: List[UUID], revoked_at: datetime) -> int:
        """Revoke the given non-revoked sessions in one write. Returns count."""
        pass

    @abstractmethod
    async def get_expired_unrevoked(self, now: datetime, limit: int) -> List[Session]:
        """Sessions with expires_at < now and no revoked_at, oldest expiry first"""
        pass
