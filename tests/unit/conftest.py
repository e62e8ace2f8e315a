from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.adapter.services.jwt_token_issuer import JwtTokenIssuer
from src.app.services.dtos import SessionPolicy
from src.app.services.session_service import SessionService
from tests.fixtures.sessions import NOW


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.audit_events.create = AsyncMock()
    return uow


@pytest.fixture
def mock_hash_service():
    hash_service = MagicMock()
    hash_service.hash = AsyncMock(return_value="new-hash")
    hash_service.verify = AsyncMock(return_value=True)
    return hash_service


@pytest.fixture
def token_issuer():
    return JwtTokenIssuer(secret="unit-test-secret", issuer="test-issuer", audience="test-aud")


@pytest.fixture
def policy():
    return SessionPolicy(
        refresh_ttl=timedelta(days=30),
        grace_period=timedelta(minutes=5),
        revoke_batch_size=500,
    )


@pytest.fixture
def service(mock_uow, mock_hash_service, token_issuer, policy):
    return SessionService(
        mock_uow, mock_hash_service, token_issuer, policy, clock=lambda: NOW
    )
