import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from campus_stay.core.breaker import email_breaker
from campus_stay.core.settings import settings
from campus_stay.models.enums import NotificationKind
from campus_stay.notifications.outbox import NotificationEvent

logger = logging.getLogger(__name__)


def _layout(title: str, body: str) -> str:
    return f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6;">
            <h2>{title}</h2>
            {body}
            <hr>
            <p>Best regards,<br>The CampusStay Team</p>
        </body>
        </html>
        """


def _button(link: str, label: str) -> str:
    return (
        f'<a href="{link}" style="display:inline-block;background:#28a745;color:white;'
        f'padding:10px 20px;text-decoration:none;border-radius:4px;">{label}</a>'
    )


def render_verification(ctx: dict) -> tuple[str, str]:
    link = f"{settings.APP_URL}/auth/verify-email?token={ctx.get('token', '')}"
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>Please confirm your email address to finish setting up your account.</p>
            {_button(link, "Verify Email")}
            <p>This link will expire in {settings.VERIFICATION_TOKEN_HOURS} hours.</p>
            <p>If you did not create an account, please ignore this message.</p>
    """
    return "Verify Your Email", _layout("Email Verification", body)


def render_welcome(ctx: dict) -> tuple[str, str]:
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>Your email is verified. You can now browse listings, save favourites
            and find roommates around campus.</p>
            {_button(f"{settings.APP_URL}/listings", "Browse Listings")}
    """
    return "Welcome to CampusStay", _layout("Welcome!", body)


def render_password_reset(ctx: dict) -> tuple[str, str]:
    link = f"{settings.APP_URL}/auth/reset-password?token={ctx.get('token', '')}"
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>We received a request to reset your password.</p>
            {_button(link, "Reset Password")}
            <p>This link will expire in {settings.RESET_TOKEN_MINUTES} minutes.</p>
            <p>If you did not request this, please ignore this message.</p>
    """
    return "Reset Your Password", _layout("Password Reset", body)


def render_password_changed(ctx: dict) -> tuple[str, str]:
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>Your password was changed. If this was not you, reset it immediately
            and contact support.</p>
    """
    return "Your Password Was Changed", _layout("Password Changed", body)


def render_payment_submitted(ctx: dict) -> tuple[str, str]:
    body = f"""
            <p>A new payment proof is waiting for review.</p>
            <p><strong>Student:</strong> {ctx.get('user_name', '')}<br>
            <strong>Listing:</strong> {ctx.get('listing_title', '')}<br>
            <strong>Reference:</strong> {ctx.get('reference', '')}<br>
            <strong>Amount:</strong> NGN {ctx.get('amount', settings.UNLOCK_FEE)}</p>
            {_button(f"{settings.APP_URL}/admin/payments", "Review Payments")}
    """
    return "New Payment Proof Submitted", _layout("Payment Proof Submitted", body)


def render_payment_approved(ctx: dict) -> tuple[str, str]:
    link = f"{settings.APP_URL}/listings/{ctx.get('listing_id', '')}"
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>Your payment for <strong>{ctx.get('listing_title', '')}</strong> was
            approved. The full address and agent contact are now unlocked.</p>
            {_button(link, "View Listing")}
    """
    return "Payment Approved", _layout("Payment Approved", body)


def render_payment_rejected(ctx: dict) -> tuple[str, str]:
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>Your payment proof for <strong>{ctx.get('listing_title', '')}</strong>
            was rejected.</p>
            <p><strong>Reason:</strong> {ctx.get('reason') or 'Not specified'}</p>
            <p>You can submit a new proof from the listing page.</p>
    """
    return "Payment Proof Rejected", _layout("Payment Rejected", body)


def render_agent_verified(ctx: dict) -> tuple[str, str]:
    body = f"""
            <p>Hello {ctx.get('name', '')},</p>
            <p>Your agent account has been verified. Your listings now carry the
            verified badge.</p>
            {_button(f"{settings.APP_URL}/agent/dashboard", "Go to Dashboard")}
    """
    return "Your Agent Account Is Verified", _layout("Account Verified", body)


TEMPLATES = {
    NotificationKind.VERIFICATION: render_verification,
    NotificationKind.WELCOME: render_welcome,
    NotificationKind.PASSWORD_RESET: render_password_reset,
    NotificationKind.PASSWORD_CHANGED: render_password_changed,
    NotificationKind.PAYMENT_SUBMITTED: render_payment_submitted,
    NotificationKind.PAYMENT_APPROVED: render_payment_approved,
    NotificationKind.PAYMENT_REJECTED: render_payment_rejected,
    NotificationKind.AGENT_VERIFIED: render_agent_verified,
}


class EmailService:
    @property
    def configured(self) -> bool:
        return bool(settings.EMAIL_SERVER and settings.EMAIL_SENDER)

    def render(self, event: NotificationEvent) -> tuple[str, str]:
        return TEMPLATES[event.kind](event.context)

    async def deliver(self, event: NotificationEvent) -> int:
        subject, html = self.render(event)
        sent = 0
        for recipient in event.recipients:
            if await self.send(recipient, subject, html):
                sent += 1
        return sent

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not self.configured:
            logger.warning(f"Email not configured; skipping '{subject}' to {to}")
            return False

        async def handler():
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = settings.EMAIL_SENDER
            message["To"] = to
            message.attach(MIMEText(html, "html"))

            try:
                await aiosmtplib.send(
                    message,
                    hostname=settings.EMAIL_SERVER,
                    port=settings.EMAIL_PORT,
                    username=settings.EMAIL_USER,
                    password=settings.EMAIL_PASSWORD,
                    start_tls=settings.EMAIL_USE_TLS,
                )
            except Exception as e:
                logger.error(f"Error sending '{subject}' email to {to}: {e}")
                raise

        await email_breaker.call(handler)
        logger.info(f"Sent '{subject}' email to {to}")
        return True

    async def check_connection(self) -> dict:
        if not self.configured:
            return {"configured": False, "connected": False}

        smtp = aiosmtplib.SMTP(
            hostname=settings.EMAIL_SERVER,
            port=settings.EMAIL_PORT,
            start_tls=settings.EMAIL_USE_TLS,
            timeout=10,
        )
        try:
            await smtp.connect()
            if settings.EMAIL_USER:
                await smtp.login(settings.EMAIL_USER, settings.EMAIL_PASSWORD or "")
            await smtp.quit()
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning(f"SMTP connection check failed: {e}")
            return {"configured": True, "connected": False, "error": str(e)}
        return {"configured": True, "connected": True}
