import asyncio

import bcrypt

from src.app.services.hash_service import IHashService


class BcryptHashService(IHashService):
    """
    bcrypt hashing for refresh tokens.

    bcrypt.checkpw compares in constant time. Hashing runs in a worker thread
    so concurrent requests do not queue behind each other on the event loop.
    """

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    async def hash(self, secret: str) -> str:
        hashed = await asyncio.to_thread(
            bcrypt.hashpw, secret.encode(), bcrypt.gensalt(self.rounds)
        )
        return hashed.decode()

    async def verify(self, secret: str, hashed: str) -> bool:
        try:
            return await asyncio.to_thread(
                bcrypt.checkpw, secret.encode(), hashed.encode()
            )
        except (ValueError, AttributeError):
            # Malformed stored hash
            return False
