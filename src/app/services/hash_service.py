from abc import ABC, abstractmethod


class IHashService(ABC):
    """One-way salted hashing for refresh token secrets"""

    @abstractmethod
    async def hash(self, secret: str) -> str:
        """Hash a secret with a fresh salt"""
        pass

    @abstractmethod
    async def verify(self, secret: str, hashed: str) -> bool:
        """Constant-time check of a secret against a stored hash"""
        pass
