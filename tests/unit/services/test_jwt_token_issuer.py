from datetime import UTC, datetime, timedelta
from uuid import uuid4

from jose import jwt

from src.adapter.services.jwt_token_issuer import JwtTokenIssuer


def test_access_token_claims(token_issuer):
    session_id = uuid4()

    token = token_issuer.create_access_token("u1", session_id)
    claims = token_issuer.verify_access_token(token)

    assert claims["sub"] == "u1"
    assert claims["sid"] == str(session_id)
    assert claims["iss"] == "test-issuer"
    assert claims["aud"] == "test-aud"
    assert claims["jti"]
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_access_tokens_are_unique(token_issuer):
    """Test jti makes tokens for the same session distinct"""
    session_id = uuid4()

    first = token_issuer.create_access_token("u1", session_id)
    second = token_issuer.create_access_token("u1", session_id)

    assert first != second


def test_get_expiry(token_issuer):
    before = datetime.now(UTC).replace(microsecond=0)
    token = token_issuer.create_access_token("u1", uuid4())

    expiry = token_issuer.get_expiry(token)

    assert expiry.tzinfo is not None
    assert before + timedelta(minutes=15) <= expiry <= datetime.now(UTC) + timedelta(minutes=15)


def test_get_expiry_garbage_token(token_issuer):
    assert token_issuer.get_expiry("not-a-jwt") is None


def test_get_expiry_without_exp(token_issuer):
    token = jwt.encode({"sub": "u1"}, "unit-test-secret", algorithm="HS256")

    assert token_issuer.get_expiry(token) is None


def test_verify_rejects_wrong_secret(token_issuer):
    other = JwtTokenIssuer(secret="other-secret", issuer="test-issuer", audience="test-aud")
    token = other.create_access_token("u1", uuid4())

    assert token_issuer.verify_access_token(token) is None


def test_verify_rejects_wrong_audience(token_issuer):
    other = JwtTokenIssuer(secret="unit-test-secret", issuer="test-issuer", audience="web")
    token = other.create_access_token("u1", uuid4())

    assert token_issuer.verify_access_token(token) is None


def test_verify_rejects_expired_token():
    issuer = JwtTokenIssuer(
        secret="unit-test-secret",
        issuer="test-issuer",
        audience="test-aud",
        access_ttl=timedelta(seconds=-30),
    )
    token = issuer.create_access_token("u1", uuid4())

    assert issuer.verify_access_token(token) is None


def test_refresh_secrets_are_random(token_issuer):
    secrets = {token_issuer.generate_refresh_secret() for _ in range(20)}

    assert len(secrets) == 20
    assert all(len(s) >= 43 for s in secrets)
