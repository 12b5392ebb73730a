from itsdangerous import BadSignature, SignatureExpired

from campus_stay.core.settings import settings

from .security_generate import token_serializer


class UserVerification:
    async def verify_verify_token(self, token: str) -> str | None:
        try:
            payload = token_serializer(settings.VERIFY_EMAIL_SECRET_KEY).loads(
                token,
                salt=settings.VERIFY_EMAIL_SALT,
                max_age=settings.VERIFICATION_TOKEN_HOURS * 3600,
            )
        except (SignatureExpired, BadSignature):
            return None
        return payload.get("email") if isinstance(payload, dict) else None

    async def verify_reset_token(self, token: str) -> str | None:
        try:
            payload = token_serializer(settings.RESET_SECRET_KEY).loads(
                token,
                salt=settings.RESET_PASSWORD_SALT,
                max_age=settings.RESET_TOKEN_MINUTES * 60,
            )
        except (SignatureExpired, BadSignature):
            return None
        return payload.get("email") if isinstance(payload, dict) else None


user_verification = UserVerification()
