import uuid
from datetime import timedelta

import jwt
import pytest

from campus_stay.models.enums import UserRole
from campus_stay.security.tokens import (
    InvalidTokenError,
    TokenClaims,
    TokenConfigurationError,
    TokenIssuer,
)

SECRET = "a" * 40


@pytest.fixture
def issuer():
    return TokenIssuer(secret_key=SECRET)


@pytest.fixture
def claims():
    return TokenClaims(user_id=uuid.uuid4(), email="ada@example.com", role=UserRole.AGENT)


def test_access_token_carries_identity(issuer, claims):
    token = issuer.create_access_token(claims)

    assert issuer.verify_access_token(token) == claims
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["userId"] == str(claims.user_id)
    assert payload["type"] == "access"


def test_token_pair_tokens_are_not_interchangeable(issuer, claims):
    pair = issuer.create_token_pair(claims)

    assert issuer.verify_refresh_token(pair.refresh_token) == claims
    with pytest.raises(InvalidTokenError):
        issuer.verify_refresh_token(pair.access_token)
    with pytest.raises(InvalidTokenError):
        issuer.verify_access_token(pair.refresh_token)


def test_expired_token_is_rejected(claims):
    issuer = TokenIssuer(secret_key=SECRET, access_ttl=timedelta(seconds=-5))
    token = issuer.create_access_token(claims)

    with pytest.raises(InvalidTokenError):
        issuer.verify_access_token(token)


def test_token_signed_with_other_secret_is_rejected(issuer, claims):
    forged = TokenIssuer(secret_key="b" * 40).create_access_token(claims)

    with pytest.raises(InvalidTokenError):
        issuer.verify_access_token(forged)


def test_garbage_token_is_rejected(issuer):
    with pytest.raises(InvalidTokenError):
        issuer.verify_access_token("not-a-jwt")


def test_short_secret_refuses_to_sign(claims):
    issuer = TokenIssuer(secret_key="too-short")

    with pytest.raises(TokenConfigurationError):
        issuer.create_access_token(claims)
