"""
Session Service Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AuditAction(str, Enum):
    """Audited session lifecycle events"""

    session_created = "session_created"
    session_rotated = "session_rotated"
    session_revoked = "session_revoked"
    sessions_revoked_all = "sessions_revoked_all"
    refresh_token_reuse_detected = "refresh_token_reuse_detected"
    expired_sessions_cleaned = "expired_sessions_cleaned"
