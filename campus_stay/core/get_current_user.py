import logging
import uuid
from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from campus_stay.models.enums import UserRole
from campus_stay.models.models import User
from campus_stay.repos.user_repo import UserRepo
from campus_stay.security.cookies import (
    get_access_token_from_request,
    get_refresh_token_from_request,
)
from campus_stay.security.tokens import (
    InvalidTokenError,
    TokenClaims,
    claims_for,
    token_issuer,
)

from .check_permission import role_permission
from .errors import AuthenticationError
from .get_db import get_db_async

logger = logging.getLogger(__name__)

RENEWED_ACCESS_TOKEN = "renewed_access_token"


@dataclass
class AuthContext:
    user: User

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def role(self) -> UserRole:
        return self.user.role


async def _load_session_user(repo: UserRepo, claims: TokenClaims) -> User | None:
    user = await repo.get_active_by_id(claims.user_id)
    if not user:
        return None
    # a role change or email change by an admin invalidates older tokens
    if user.email != claims.email or user.role != claims.role:
        return None
    return user


async def resolve_session(request: Request, db: AsyncSession) -> AuthContext | None:
    repo = UserRepo(db)

    access_token = get_access_token_from_request(request)
    if access_token:
        try:
            claims = token_issuer.verify_access_token(access_token)
        except InvalidTokenError:
            claims = None
        if claims:
            user = await _load_session_user(repo, claims)
            return AuthContext(user=user) if user else None

    refresh_token = get_refresh_token_from_request(request)
    if not refresh_token:
        return None
    try:
        claims = token_issuer.verify_refresh_token(refresh_token)
    except InvalidTokenError:
        return None

    user = await _load_session_user(repo, claims)
    if not user:
        return None

    # picked up by RenewedAccessCookieMiddleware once the response exists
    setattr(
        request.state,
        RENEWED_ACCESS_TOKEN,
        token_issuer.create_access_token(claims_for(user)),
    )
    logger.debug(f"Access token renewed from refresh cookie for user {user.id}")
    return AuthContext(user=user)


def require_roles(*roles: UserRole):
    """Build a dependency that authenticates the caller and checks its role.

    With no roles any active user passes; otherwise the caller's role must
    cover one of ``roles`` in the role hierarchy.
    """

    async def dependency(
        request: Request, db: AsyncSession = Depends(get_db_async)
    ) -> AuthContext:
        context = await resolve_session(request, db)
        if context is None:
            raise AuthenticationError("Authentication required")
        role_permission.ensure(context.role, roles)
        request.state.user = context.user
        return context

    dependency.__name__ = "require_" + ("_".join(r.value for r in roles) or "auth")
    return dependency


async def with_optional_auth(
    request: Request, db: AsyncSession = Depends(get_db_async)
) -> AuthContext | None:
    context = await resolve_session(request, db)
    if context is not None:
        request.state.user = context.user
    return context


with_auth = require_roles()
with_agent = require_roles(UserRole.AGENT)
with_admin = require_roles(UserRole.ADMIN)
