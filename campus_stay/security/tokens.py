import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from campus_stay.core.settings import settings
from campus_stay.models.enums import UserRole

ACCESS = "access"
REFRESH = "refresh"
MIN_SECRET_LENGTH = 32


class InvalidTokenError(Exception):
    """Raised for any token that cannot be trusted.

    Expired, malformed and wrongly signed tokens all surface as this one
    error so callers cannot tell them apart.
    """


class TokenConfigurationError(RuntimeError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    user_id: uuid.UUID
    email: str
    role: UserRole


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenIssuer:
    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        access_ttl: timedelta | None = None,
        refresh_ttl: timedelta | None = None,
    ):
        self._secret_key = secret_key
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.access_ttl = access_ttl or timedelta(minutes=settings.ACCESS_EXPIRE_MINUTES)
        self.refresh_ttl = refresh_ttl or timedelta(days=settings.REFRESH_EXPIRE_DAYS)

    @property
    def secret_key(self) -> str:
        secret = self._secret_key or settings.JWT_SECRET_KEY
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise TokenConfigurationError(
                f"JWT_SECRET_KEY must be set and at least {MIN_SECRET_LENGTH} characters"
            )
        return secret

    def _encode(self, claims: TokenClaims, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(claims.user_id),
            "userId": str(claims.user_id),
            "email": claims.email,
            "role": claims.role.value,
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def _decode(self, token: str, expected_type: str) -> TokenClaims:
        secret = self.secret_key
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub", "type"]},
            )
            if payload.get("type") != expected_type:
                raise InvalidTokenError("Invalid token")
            return TokenClaims(
                user_id=uuid.UUID(payload["sub"]),
                email=payload["email"],
                role=UserRole(payload["role"]),
            )
        except InvalidTokenError:
            raise
        except (jwt.PyJWTError, KeyError, ValueError, TypeError) as e:
            raise InvalidTokenError("Invalid token") from e

    def create_access_token(self, claims: TokenClaims) -> str:
        return self._encode(claims, ACCESS, self.access_ttl)

    def create_refresh_token(self, claims: TokenClaims) -> str:
        return self._encode(claims, REFRESH, self.refresh_ttl)

    def create_token_pair(self, claims: TokenClaims) -> TokenPair:
        return TokenPair(
            access_token=self.create_access_token(claims),
            refresh_token=self.create_refresh_token(claims),
        )

    def verify_access_token(self, token: str) -> TokenClaims:
        return self._decode(token, ACCESS)

    def verify_refresh_token(self, token: str) -> TokenClaims:
        return self._decode(token, REFRESH)


def claims_for(user) -> TokenClaims:
    return TokenClaims(user_id=user.id, email=user.email, role=user.role)


token_issuer = TokenIssuer()
