import logging
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from campus_stay.core.errors import (
    AuthenticationError,
    ConflictError,
    InvalidInputError,
    TooManyRequestsError,
)
from campus_stay.core.mapper import ORMMapper
from campus_stay.core.settings import settings
from campus_stay.models.enums import NotificationKind
from campus_stay.models.models import User
from campus_stay.models.utils import as_utc, utc_now
from campus_stay.notifications.outbox import NotificationOutbox
from campus_stay.repos.user_repo import UserRepo
from campus_stay.schemas.schema import (
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionUserOut,
    UpdateProfileRequest,
)
from campus_stay.security.security_generate import user_generate
from campus_stay.security.security_verification import user_verification
from campus_stay.security.tokens import (
    InvalidTokenError,
    TokenPair,
    claims_for,
    token_issuer,
)

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, you will receive password reset instructions."
)
RESEND_VERIFICATION_MESSAGE = (
    "If an account exists with this email and is not yet verified, "
    "you will receive a verification email."
)


class AuthService:
    def __init__(self, db, outbox: NotificationOutbox | None = None):
        self.repo: UserRepo = UserRepo(db)
        self.outbox = outbox
        self.mapper: ORMMapper = ORMMapper()

    async def session_user(self, user: User) -> SessionUserOut:
        await self.repo.refresh_sets(user)
        return self.mapper.one(user, SessionUserOut)

    def _issue(self, user: User) -> TokenPair:
        return token_issuer.create_token_pair(claims_for(user))

    async def register(self, data: RegisterRequest) -> tuple[SessionUserOut, TokenPair]:
        if await self.repo.get_by_email(data.email):
            raise ConflictError("An account with this email already exists")

        token, expires = await user_generate.generate_verify_token(data.email)
        user = User(
            email=data.email,
            name=data.name,
            phone=data.phone,
            role=data.role,
            matric_number=data.matric_number,
            is_email_verified=False,
            is_verified=False,
            verification_token=token,
            verification_token_expires=expires,
        )
        user.set_password(data.password)

        try:
            user = await self.repo.create(user)
        except IntegrityError:
            # lost a race with a concurrent registration for the same email
            raise ConflictError("An account with this email already exists")

        self.outbox.stage(
            NotificationKind.VERIFICATION, user.email, name=user.name, token=token
        )
        await self.outbox.flush()
        logger.info(f"Registered {user.role.value} account {user.id}")

        return await self.session_user(user), self._issue(user)

    async def login(self, data: LoginRequest) -> tuple[SessionUserOut, TokenPair]:
        user = await self.repo.get_by_email(data.email)
        if not user:
            raise AuthenticationError("Invalid email or password")
        if user.is_deleted:
            raise AuthenticationError("This account has been deactivated")
        if not user.check_password(data.password):
            raise AuthenticationError("Invalid email or password")

        return await self.session_user(user), self._issue(user)

    async def refresh(self, refresh_token: str | None) -> tuple[SessionUserOut, TokenPair]:
        if not refresh_token:
            raise AuthenticationError("Refresh token not found")
        try:
            claims = token_issuer.verify_refresh_token(refresh_token)
        except InvalidTokenError:
            raise AuthenticationError("Invalid or expired refresh token")

        user = await self.repo.get_active_by_id(claims.user_id)
        if not user or user.email != claims.email or user.role != claims.role:
            raise AuthenticationError("Invalid or expired refresh token")

        return await self.session_user(user), self._issue(user)

    async def update_me(self, user: User, data: UpdateProfileRequest) -> SessionUserOut:
        for field, value in data.to_columns().items():
            setattr(user, field, value)

        await self.repo.save(user)
        return await self.session_user(user)

    async def forgot_password(self, email: str) -> dict:
        user = await self.repo.get_active_by_email(email)
        if user:
            token, expires = await user_generate.generate_reset_token(user.email)
            user.reset_password_token = token
            user.reset_password_expires = expires
            await self.repo.save(user)

            self.outbox.stage(
                NotificationKind.PASSWORD_RESET, user.email, name=user.name, token=token
            )
            await self.outbox.flush()
        return {"message": FORGOT_PASSWORD_MESSAGE}

    async def _user_for_reset_token(self, token: str) -> User | None:
        email = await user_verification.verify_reset_token(token)
        if not email:
            return None
        user = await self.repo.get_by_reset_token(token)
        if not user or user.email != email:
            return None
        expires = as_utc(user.reset_password_expires)
        if not expires or expires <= utc_now():
            return None
        return user

    async def check_reset_token(self, token: str | None) -> dict:
        if not token:
            raise InvalidInputError("Reset token is required")
        return {"valid": await self._user_for_reset_token(token) is not None}

    async def reset_password(self, data: ResetPasswordRequest) -> dict:
        user = await self._user_for_reset_token(data.token)
        if not user:
            raise InvalidInputError("Invalid or expired reset token")

        user.set_password(data.password)
        user.reset_password_token = None
        user.reset_password_expires = None
        await self.repo.save(user)

        self.outbox.stage(NotificationKind.PASSWORD_CHANGED, user.email, name=user.name)
        await self.outbox.flush()
        return {
            "message": "Password reset successfully. You can now log in with your new password."
        }

    async def _user_for_verify_token(self, token: str) -> User | None:
        email = await user_verification.verify_verify_token(token)
        if not email:
            return None
        user = await self.repo.get_by_verification_token(token)
        if not user or user.email != email:
            return None
        expires = as_utc(user.verification_token_expires)
        if not expires or expires <= utc_now():
            return None
        return user

    async def verify_email(self, token: str) -> dict:
        user = await self._user_for_verify_token(token)
        if not user:
            raise InvalidInputError("Invalid or expired verification token")

        user.is_email_verified = True
        user.verification_token = None
        user.verification_token_expires = None
        await self.repo.save(user)

        self.outbox.stage(NotificationKind.WELCOME, user.email, name=user.name)
        await self.outbox.flush()
        return {"message": "Email verified successfully"}

    async def verify_email_redirect(self, token: str | None) -> str:
        base = f"{settings.APP_URL.rstrip('/')}/auth/login"
        if not token:
            return f"{base}?error=missing_token"
        try:
            await self.verify_email(token)
        except InvalidInputError:
            return f"{base}?error=invalid_token"
        return f"{base}?verified=true"

    async def resend_verification(self, email: str) -> dict:
        user = await self.repo.get_active_by_email(email)
        if not user:
            return {"message": RESEND_VERIFICATION_MESSAGE}
        if user.is_email_verified:
            raise InvalidInputError("Email is already verified")

        expires = as_utc(user.verification_token_expires)
        if expires:
            issued_at = expires - timedelta(hours=settings.VERIFICATION_TOKEN_HOURS)
            cooldown = timedelta(minutes=settings.RESEND_VERIFICATION_COOLDOWN_MINUTES)
            if utc_now() - issued_at < cooldown:
                raise TooManyRequestsError(
                    "Verification email was recently sent. "
                    "Please wait a few minutes before requesting another."
                )

        token, expires = await user_generate.generate_verify_token(user.email)
        user.verification_token = token
        user.verification_token_expires = expires
        await self.repo.save(user)

        self.outbox.stage(
            NotificationKind.VERIFICATION, user.email, name=user.name, token=token
        )
        await self.outbox.flush()
        return {"message": RESEND_VERIFICATION_MESSAGE}
