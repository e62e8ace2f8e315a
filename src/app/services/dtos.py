"""
Session Service DTOs (Data Transfer Objects)

Response and settings classes for the session service.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.domain.entities import Session


# ============================================================================
# Settings
# ============================================================================


class SessionPolicy(BaseModel):
    """Lifetimes and batching limits applied by the session service"""

    refresh_ttl: timedelta = timedelta(days=30)
    grace_period: timedelta = timedelta(minutes=5)
    revoke_batch_size: int = Field(default=500, gt=0)

    @classmethod
    def from_config(cls, config) -> "SessionPolicy":
        return cls(
            refresh_ttl=timedelta(days=config.REFRESH_TOKEN_TTL_DAYS),
            grace_period=timedelta(seconds=config.REFRESH_GRACE_PERIOD_SECONDS),
            revoke_batch_size=config.SESSION_REVOKE_BATCH_SIZE,
        )


# ============================================================================
# Response DTOs
# ============================================================================


class AuthTokens(BaseModel):
    """Token pair handed to the client after create or rotate"""

    access_token: str
    access_token_expires_at: Optional[datetime]
    refresh_token: str
    refresh_token_expires_at: datetime
    session_id: str


class SessionGrant(BaseModel):
    """Session record together with the freshly issued tokens"""

    session: Session
    tokens: AuthTokens


class SessionInfo(BaseModel):
    """Client-visible view of a session (never includes the token hash)"""

    id: str
    device_id: str
    device_info: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    last_used_at: datetime
    expires_at: datetime

    @classmethod
    def from_entity(cls, session: Session) -> "SessionInfo":
        return cls(
            id=str(session.id),
            device_id=session.device_id,
            device_info=session.device_info,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            created_at=session.created_at,
            last_used_at=session.last_used_at,
            expires_at=session.expires_at,
        )


class SessionStats(BaseModel):
    """Session counts for a user"""

    active_sessions: int
    total_sessions: int
