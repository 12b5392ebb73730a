import dramatiq

from campus_stay.email_notify.email_service import EmailService
from campus_stay.notifications.outbox import NotificationEvent


async def deliver(event: NotificationEvent, email_service: EmailService | None = None):
    service = email_service or EmailService()
    return await service.deliver(event)


def create_notification_task(broker):
    @dramatiq.actor(
        broker=broker,
        queue_name="notifications",
        max_retries=3,
        time_limit=60_000,
    )
    async def deliver_notification(kind: str, recipients: list, context: dict):
        await deliver(NotificationEvent.from_message(kind, recipients, context))

    return deliver_notification
