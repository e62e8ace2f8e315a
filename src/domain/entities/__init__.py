"""
Session Service Domain Entities

Each entity in its own file.
"""

from .enums import AuditAction
from .session import Session
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AuditAction",
    # Entities
    "Session",
    "AuditEvent",
]
