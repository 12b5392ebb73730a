import secrets
from datetime import datetime, timedelta

from itsdangerous import URLSafeTimedSerializer

from campus_stay.core.settings import settings
from campus_stay.models.utils import utc_now


def token_serializer(secret: str | None) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret or settings.JWT_SECRET_KEY or "")


class UserGenerate:
    """Mints the one-time tokens mailed to users.

    Each token is signed and timestamped by itsdangerous and also stored on
    the user row, so it can be checked for tampering, age and single use.
    """

    async def generate_verify_token(self, email: str) -> tuple[str, datetime]:
        token = token_serializer(settings.VERIFY_EMAIL_SECRET_KEY).dumps(
            {"email": email, "nonce": secrets.token_hex(8)},
            salt=settings.VERIFY_EMAIL_SALT,
        )
        return token, utc_now() + timedelta(hours=settings.VERIFICATION_TOKEN_HOURS)

    async def generate_reset_token(self, email: str) -> tuple[str, datetime]:
        token = token_serializer(settings.RESET_SECRET_KEY).dumps(
            {"email": email, "nonce": secrets.token_hex(8)},
            salt=settings.RESET_PASSWORD_SALT,
        )
        return token, utc_now() + timedelta(minutes=settings.RESET_TOKEN_MINUTES)


user_generate = UserGenerate()
