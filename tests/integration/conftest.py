from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.services.bcrypt_hash_service import BcryptHashService
from src.adapter.services.jwt_token_issuer import JwtTokenIssuer
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.dtos import SessionPolicy
from src.depends import get_hash_service, get_unit_of_work


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hash_service():
    # Low cost factor keeps the suite fast
    return BcryptHashService(rounds=4)


@pytest.fixture
def token_issuer():
    return JwtTokenIssuer(secret="integration-secret", issuer="test-issuer", audience="test-aud")


@pytest.fixture
def policy():
    return SessionPolicy(
        refresh_ttl=timedelta(days=30),
        grace_period=timedelta(minutes=5),
        revoke_batch_size=500,
    )


@pytest_asyncio.fixture
async def client(session_factory, hash_service):
    from src.api.app import create_app

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        async with session_factory() as session:
            yield SqlAlchemyUnitOfWork(session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_hash_service] = lambda: hash_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
