from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID


class ITokenIssuer(ABC):
    """Issues short-lived signed access tokens and opaque refresh secrets"""

    @abstractmethod
    def create_access_token(self, user_id: str, session_id: UUID) -> str:
        """Sign an access token bound to (user_id, session_id)"""
        pass

    @abstractmethod
    def get_expiry(self, token: str) -> Optional[datetime]:
        """
        Read the exp claim without verifying the signature.

        For reporting expiry to clients only, never for authorization.
        """
        pass

    @abstractmethod
    def verify_access_token(self, token: str) -> Optional[dict]:
        """Return the claims of a valid, unexpired token, or None"""
        pass

    @abstractmethod
    def generate_refresh_secret(self) -> str:
        """Generate a high-entropy opaque refresh secret"""
        pass
