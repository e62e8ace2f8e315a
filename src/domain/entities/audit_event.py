"""
AuditEvent Entity

Immutable log of session lifecycle events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, Field, Index, SQLModel

from src.domain.base import UTCDateTime, utc_now


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of session events.

    Business Rules:
    - Immutable (never updated or deleted)
    - session_id is null for user-wide events (revoke all, cleanup)
    - Metadata stores additional context (IP, device, counts)
    - Never carries raw refresh tokens
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: Optional[str] = Field(default=None, max_length=128, index=True)
    session_id: Optional[UUID] = Field(default=None, index=True)

    action: str = Field(max_length=100)  # e.g., "session_created"
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(
        default_factory=utc_now, sa_column=Column(UTCDateTime, nullable=False)
    )

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_user_action", "user_id", "action"),
    )
