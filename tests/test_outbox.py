import logging

from conftest import RecordingPublisher

from campus_stay.dramatiq_worker.dramatiq_app import DramatiqManager
from campus_stay.models.enums import NotificationKind
from campus_stay.notifications.outbox import NotificationEvent, NotificationOutbox
from campus_stay.notifications.publisher import DramatiqPublisher


async def test_staged_events_wait_for_flush():
    publisher = RecordingPublisher()
    outbox = NotificationOutbox(publisher)

    outbox.stage(NotificationKind.WELCOME, "ada@example.com", name="Ada")
    assert publisher.published == []
    assert len(outbox.pending) == 1

    assert await outbox.flush() == 1
    assert publisher.kinds() == [NotificationKind.WELCOME]
    assert publisher.published[0].recipients == ["ada@example.com"]
    assert outbox.pending == []


async def test_discard_drops_staged_events():
    publisher = RecordingPublisher()
    outbox = NotificationOutbox(publisher)

    outbox.stage(NotificationKind.PAYMENT_APPROVED, ["ada@example.com"], name="Ada")
    outbox.discard()

    assert await outbox.flush() == 0
    assert publisher.published == []


async def test_event_without_recipients_is_not_staged():
    outbox = NotificationOutbox(RecordingPublisher())

    outbox.stage(NotificationKind.PAYMENT_SUBMITTED, [])
    outbox.stage(NotificationKind.PAYMENT_SUBMITTED, ["", None])

    assert outbox.pending == []


async def test_publish_failure_is_logged_not_raised(caplog):
    publisher = RecordingPublisher()
    publisher.fail = True
    outbox = NotificationOutbox(publisher)
    outbox.stage(NotificationKind.AGENT_VERIFIED, "agent@example.com", name="Tunde")

    with caplog.at_level(logging.ERROR):
        assert await outbox.flush() == 0

    assert "Failed to publish agent_verified notification" in caplog.text


def test_event_message_shape():
    event = NotificationEvent(
        kind=NotificationKind.PASSWORD_RESET,
        recipients=["ada@example.com"],
        context={"token": "abc"},
    )
    message = event.to_message()

    assert message == {
        "kind": "password_reset",
        "recipients": ["ada@example.com"],
        "context": {"token": "abc"},
    }
    assert NotificationEvent.from_message(**message) == event


async def test_dramatiq_publisher_enqueues_on_notifications_queue():
    manager = DramatiqManager(None)
    publisher = DramatiqPublisher(manager)

    await publisher.publish(
        NotificationEvent(
            kind=NotificationKind.WELCOME,
            recipients=["ada@example.com"],
            context={"name": "Ada"},
        )
    )

    queued = manager.broker.queues["notifications"]
    assert queued.qsize() == 1
    message = queued.get_nowait()
    assert b"deliver_notification" in message
