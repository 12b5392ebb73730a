import pytest

from campus_stay.core.breaker import CircuitBreaker, CircuitBreakerOpen
from campus_stay.dramatiq_tasks.notification_tasks import deliver
from campus_stay.email_notify.email_service import TEMPLATES, EmailService
from campus_stay.models.enums import NotificationKind
from campus_stay.notifications.outbox import NotificationEvent


def test_every_notification_kind_has_a_template():
    assert set(TEMPLATES) == set(NotificationKind)


def test_verification_email_links_token():
    event = NotificationEvent(
        kind=NotificationKind.VERIFICATION,
        recipients=["ada@example.com"],
        context={"name": "Ada", "token": "tok-123"},
    )
    subject, html = EmailService().render(event)

    assert subject == "Verify Your Email"
    assert "Hello Ada" in html
    assert "/auth/verify-email?token=tok-123" in html


def test_rejection_email_includes_reason():
    event = NotificationEvent(
        kind=NotificationKind.PAYMENT_REJECTED,
        recipients=["ada@example.com"],
        context={"name": "Ada", "listing_title": "Quiet room", "reason": "Blurry receipt image"},
    )
    _, html = EmailService().render(event)

    assert "Quiet room" in html
    assert "Blurry receipt image" in html


async def test_unconfigured_service_skips_sending():
    service = EmailService()
    assert not service.configured

    assert await service.send("ada@example.com", "Hi", "<p>Hi</p>") is False
    assert await service.check_connection() == {"configured": False, "connected": False}


async def test_worker_delivery_counts_sent_recipients():
    class FakeEmailService(EmailService):
        def __init__(self):
            self.sent = []

        async def send(self, to, subject, html):
            self.sent.append((to, subject))
            return to != "bounce@example.com"

    service = FakeEmailService()
    event = NotificationEvent(
        kind=NotificationKind.PAYMENT_SUBMITTED,
        recipients=["admin@example.com", "bounce@example.com"],
        context={"user_name": "Ada", "listing_title": "Quiet room", "reference": "TRX-1"},
    )

    assert await deliver(event, service) == 1
    assert [to for to, _ in service.sent] == ["admin@example.com", "bounce@example.com"]
    assert service.sent[0][1] == "New Payment Proof Submitted"


async def test_breaker_opens_after_repeated_failures():
    breaker = CircuitBreaker(name="test", failure_threshold=2, base_recovery_time=60)

    async def boom():
        raise ConnectionError("smtp down")

    for _ in range(2):
        with pytest.raises(ConnectionError):
            await breaker.call(boom)

    assert breaker.state == "OPEN"
    with pytest.raises(CircuitBreakerOpen):
        await breaker.call(boom)


async def test_breaker_trial_call_closes_or_reopens():
    breaker = CircuitBreaker(name="test", failure_threshold=1, base_recovery_time=30)

    async def boom():
        raise ConnectionError("smtp down")

    async def ok():
        return "sent"

    with pytest.raises(ConnectionError):
        await breaker.call(boom)
    assert breaker.state == "OPEN"

    breaker.opened_at -= 31
    with pytest.raises(ConnectionError):
        await breaker.call(boom)
    assert breaker.state == "OPEN"
    assert breaker.recovery_time == 60

    breaker.opened_at -= 61
    assert await breaker.call(ok) == "sent"
    assert breaker.state == "CLOSED"
    assert breaker.failure_count == 0
