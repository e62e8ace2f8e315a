"""
Session Entity

One row per signed-in device, holding the hash of its current refresh token.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, Field, Index, SQLModel

from src.domain.base import UTCDateTime, utc_now


class Session(SQLModel, table=True):
    """
    Session entity - a device login and its rotating refresh token.

    Business Rules:
    - Refresh tokens are stored as bcrypt hashes only
    - Tokens rotate on each refresh; a secret is valid exactly once
    - revoked_at is terminal, it is never cleared
    - expires_at slides forward on every rotation
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: str = Field(max_length=128, nullable=False, index=True)

    refresh_token_hash: str = Field(max_length=60)  # Bcrypt output

    # Provenance
    device_id: str = Field(max_length=255)
    device_info: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False)
    )
    last_used_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False)
    )
    expires_at: datetime = Field(sa_column=Column(UTCDateTime, nullable=False))
    revoked_at: Optional[datetime] = Field(
        default=None, sa_column=Column(UTCDateTime, nullable=True)
    )

    __table_args__ = (
        Index("idx_session_user_revoked", "user_id", "revoked_at"),
        Index("idx_session_expires_at", "expires_at"),
    )
