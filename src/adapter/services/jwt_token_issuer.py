import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from jose import JWTError, jwt

from src.app.services.token_issuer import ITokenIssuer

logger = logging.getLogger(__name__)


class JwtTokenIssuer(ITokenIssuer):
    """HS256 access tokens via python-jose"""

    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        access_ttl: timedelta = timedelta(minutes=15),
        algorithm: str = "HS256",
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.access_ttl = access_ttl
        self.algorithm = algorithm

    @classmethod
    def from_config(cls, config) -> "JwtTokenIssuer":
        return cls(
            secret=config.JWT_SECRET,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            access_ttl=timedelta(minutes=config.ACCESS_TOKEN_TTL_MINUTES),
            algorithm=config.JWT_ALGORITHM,
        )

    def create_access_token(self, user_id: str, session_id: UUID) -> str:
        """
        Generate JWT access token

        Args:
            user_id: Owning user
            session_id: Session the token is bound to

        Returns:
            JWT token string with sub, sid, jti, iat, exp, iss, aud claims
        """
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "sid": str(session_id),
            "jti": str(uuid4()),
            "iat": now,
            "exp": now + self.access_ttl,
            "iss": self.issuer,
            "aud": self.audience,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def get_expiry(self, token: str) -> Optional[datetime]:
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return None
        exp = claims.get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(exp, tz=UTC)

    def verify_access_token(self, token: str) -> Optional[dict]:
        """
        Verify and decode JWT token

        Returns:
            Decoded payload dict or None if invalid or expired
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except JWTError as exc:
            logger.debug(f"Access token rejected: {exc}")
            return None

    def generate_refresh_secret(self) -> str:
        return secrets.token_urlsafe(32)
