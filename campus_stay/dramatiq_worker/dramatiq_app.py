import logging

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import (
    AgeLimit,
    AsyncIO,
    Callbacks,
    Pipelines,
    Retries,
    ShutdownNotifications,
    TimeLimit,
)

from campus_stay.core.settings import settings
from campus_stay.dramatiq_tasks.notification_tasks import create_notification_task

logger = logging.getLogger(__name__)


def _middleware():
    return [
        AgeLimit(max_age=3_600_000),
        TimeLimit(time_limit=600_000),
        ShutdownNotifications(),
        Callbacks(),
        Pipelines(),
        Retries(max_retries=3),
        AsyncIO(),
    ]


class DramatiqManager:
    def __init__(self, redis_url: str | None = None):
        self.redis_url = redis_url

        if redis_url:
            self.broker = RedisBroker(url=redis_url, middleware=_middleware())
        else:
            # in-memory broker for development and tests; nothing is delivered
            self.broker = StubBroker(middleware=_middleware())
            self.broker.emit_after("process_boot")

        dramatiq.set_broker(self.broker)
        self._register_tasks()

    def _register_tasks(self):
        create_notification_task(self.broker)

    @property
    def is_stub(self) -> bool:
        return isinstance(self.broker, StubBroker)

    async def connect(self):
        if self.is_stub:
            logger.info("Dramatiq running on the in-memory stub broker.")
            return
        try:
            self.broker.client.ping()
            logger.info("Dramatiq broker reachable.")
        except Exception:
            logger.exception("Dramatiq broker ping failed")

    def delay(self, actor_name: str, *args, **kwargs):
        actor = self.broker.get_actor(actor_name)
        return actor.send(*args, **kwargs)


dramatiq_app = DramatiqManager(settings.DRAMATIQ_REDIS_URL)
