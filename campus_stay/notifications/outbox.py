import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from fastapi import Request

from campus_stay.models.enums import NotificationKind

logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    kind: NotificationKind
    recipients: list[str]
    context: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "recipients": list(self.recipients),
            "context": dict(self.context),
        }

    @classmethod
    def from_message(cls, kind: str, recipients: list[str], context: dict[str, Any]):
        return cls(kind=NotificationKind(kind), recipients=recipients, context=context)


class NotificationPublisher(Protocol):
    async def connect(self) -> None: ...

    async def publish(self, event: NotificationEvent) -> None: ...


class NotificationOutbox:
    """Collects notifications during a request and releases them after commit.

    Services ``stage`` events while they work and call ``flush`` only once
    their transaction has committed, so a rolled back change never emails
    anybody. Delivery is the worker's job; a failed publish is logged and
    does not affect the response.
    """

    def __init__(self, publisher: NotificationPublisher):
        self.publisher = publisher
        self._pending: list[NotificationEvent] = []

    @property
    def pending(self) -> list[NotificationEvent]:
        return list(self._pending)

    def stage(self, kind: NotificationKind, recipients: list[str] | str, **context):
        if isinstance(recipients, str):
            recipients = [recipients]
        recipients = [r for r in recipients if r]
        if not recipients:
            logger.warning(f"Dropping {kind.value} notification with no recipients")
            return
        self._pending.append(
            NotificationEvent(kind=kind, recipients=recipients, context=context)
        )

    def discard(self):
        self._pending.clear()

    async def flush(self) -> int:
        pending, self._pending = self._pending, []
        published = 0
        for event in pending:
            try:
                await self.publisher.publish(event)
                published += 1
            except Exception:
                logger.exception(
                    f"Failed to publish {event.kind.value} notification "
                    f"to {len(event.recipients)} recipient(s)"
                )
        return published


def get_outbox(request: Request) -> NotificationOutbox:
    return NotificationOutbox(request.app.state.notification_publisher)
