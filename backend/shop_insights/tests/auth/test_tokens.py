"""Access token and password hashing tests."""

import pytest
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt

from shop_insights.auth.jwt import TokenConfig, TokenService
from shop_insights.auth.passwords import hash_password, verify_password
from shop_insights.config.settings import Settings
from shop_insights.platform.errors import (
    AuthenticationError,
    ErrorCode,
    ServiceUnavailableError,
)

SECRET = "unit-test-secret"


@pytest.fixture
def service():
    return TokenService(TokenConfig(jwt_secret=SECRET, issuer="shop-insights"))


@pytest.fixture
def owner():
    return SimpleNamespace(id=7, email="owner@alpha.myshopify.com", role="STORE_OWNER", tenant_id=3)


def encode(payload, secret=SECRET):
    return jwt.encode(payload, secret, algorithm="HS256")


def base_claims(**overrides):
    now = datetime.now(timezone.utc)
    claims = {
        "sub": "7",
        "email": "owner@alpha.myshopify.com",
        "role": "STORE_OWNER",
        "tenant_id": 3,
        "iss": "shop-insights",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
    }
    claims.update(overrides)
    return claims


class TestTokenConfig:

    def test_from_settings(self):
        config = TokenConfig.from_settings(
            Settings(jwt_secret="s", jwt_issuer="iss", jwt_expires_minutes=30)
        )
        assert (config.jwt_secret, config.issuer, config.lifetime_minutes) == ("s", "iss", 30)

    def test_missing_secret_is_unavailable(self):
        with pytest.raises(ServiceUnavailableError):
            TokenConfig.from_settings(Settings(jwt_secret=None))


class TestTokenService:

    def test_issued_token_carries_identity(self, service, owner):
        claims = service.verify(service.issue(owner))
        assert claims.user_id == 7
        assert claims.role == "STORE_OWNER"
        assert claims.tenant_id == 3
        assert claims.exp - claims.iat == 1440 * 60

    def test_expired_token(self, service, owner):
        token = service.issue(owner, lifetime_minutes=-5)
        with pytest.raises(AuthenticationError) as exc_info:
            service.verify(token)
        assert exc_info.value.code == ErrorCode.TOKEN_EXPIRED
        assert exc_info.value.status_code == 401

    def test_wrong_secret(self, service):
        with pytest.raises(AuthenticationError) as exc_info:
            service.verify(encode(base_claims(), secret="another-secret"))
        assert exc_info.value.code == ErrorCode.INVALID_TOKEN

    def test_wrong_issuer(self, service):
        with pytest.raises(AuthenticationError) as exc_info:
            service.verify(encode(base_claims(iss="someone-else")))
        assert exc_info.value.code == ErrorCode.INVALID_TOKEN

    def test_garbage(self, service):
        with pytest.raises(AuthenticationError) as exc_info:
            service.verify("not.a.token")
        assert exc_info.value.code == ErrorCode.INVALID_TOKEN

    def test_missing_required_claim(self, service):
        claims = base_claims()
        del claims["exp"]
        with pytest.raises(AuthenticationError) as exc_info:
            service.verify(encode(claims))
        assert exc_info.value.code == ErrorCode.INVALID_TOKEN

    def test_non_numeric_subject(self, service):
        with pytest.raises(AuthenticationError) as exc_info:
            service.verify(encode(base_claims(sub="user-abc")))
        assert exc_info.value.code == ErrorCode.INVALID_TOKEN


class TestPasswords:

    def test_hash_and_verify(self):
        password_hash = hash_password("correct horse")
        assert password_hash != "correct horse"
        assert verify_password("correct horse", password_hash)
        assert not verify_password("wrong", password_hash)

    def test_non_bcrypt_hash(self):
        assert not verify_password("anything", "plaintext")
