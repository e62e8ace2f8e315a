from fastapi import Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from libs.result import Error
from src.api.error import ClientError
from src.adapter.services.bcrypt_hash_service import BcryptHashService
from src.adapter.services.jwt_token_issuer import JwtTokenIssuer
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.dtos import SessionPolicy
from src.app.services.hash_service import IHashService
from src.app.services.session_service import SessionService
from src.app.services.token_issuer import ITokenIssuer
from src.app.services.unit_of_work import UnitOfWork

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

security = HTTPBearer()

hash_service = BcryptHashService(rounds=ApplicationConfig.BCRYPT_ROUNDS)
token_issuer = JwtTokenIssuer.from_config(ApplicationConfig)
session_policy = SessionPolicy.from_config(ApplicationConfig)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_hash_service() -> IHashService:
    return hash_service


def get_token_issuer() -> ITokenIssuer:
    return token_issuer


def get_session_policy() -> SessionPolicy:
    return session_policy


def build_session_service(uow: UnitOfWork) -> SessionService:
    """Session service wired with the process-wide collaborators"""
    return SessionService(uow, hash_service, token_issuer, session_policy)


async def get_session_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    hasher: IHashService = Depends(get_hash_service),
    issuer: ITokenIssuer = Depends(get_token_issuer),
    policy: SessionPolicy = Depends(get_session_policy),
) -> SessionService:
    return SessionService(uow, hasher, issuer, policy)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    issuer: ITokenIssuer = Depends(get_token_issuer),
) -> dict:
    """
    Dependency to extract and verify the access token from Authorization header.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        Decoded JWT payload containing sub (user id) and sid (session id)

    Raises:
        ClientError: 401 INVALID_TOKEN if token is invalid or expired
    """
    token = credentials.credentials
    payload = issuer.verify_access_token(token)

    if payload is None or "sub" not in payload or "sid" not in payload:
        raise ClientError(
            Error("INVALID_TOKEN", "Invalid or expired token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return payload
