from abc import ABC, abstractmethod
from typing import List

from src.domain.entities import AuditEvent


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: str, limit: int = 50) -> List[AuditEvent]:
        """Get a user's audit events, newest first"""
        pass
