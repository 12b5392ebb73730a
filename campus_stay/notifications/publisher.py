import logging

from campus_stay.dramatiq_worker.dramatiq_app import DramatiqManager, dramatiq_app

from .outbox import NotificationEvent

logger = logging.getLogger(__name__)


class DramatiqPublisher:
    """Hands notification events to the dramatiq ``notifications`` queue."""

    actor_name = "deliver_notification"

    def __init__(self, manager: DramatiqManager | None = None):
        self.manager = manager or dramatiq_app

    async def connect(self):
        await self.manager.connect()

    async def publish(self, event: NotificationEvent) -> None:
        message = event.to_message()
        self.manager.delay(
            self.actor_name,
            message["kind"],
            message["recipients"],
            message["context"],
        )
        logger.info(
            f"Queued {event.kind.value} notification for {len(event.recipients)} recipient(s)"
        )
