import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreakerOpen(ConnectionError):
    pass


class CircuitBreaker:
    """Stops hammering an external service that keeps failing.

    After ``failure_threshold`` consecutive failures the circuit opens and
    calls fail fast until the recovery window passes. The window doubles with
    every failure past the threshold, capped at ``max_recovery_time``. One
    trial call is let through once it elapses; a failed trial reopens.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        base_recovery_time: int = 10,
        max_recovery_time: int = 60,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.base_recovery_time = base_recovery_time
        self.max_recovery_time = max_recovery_time
        self.reset()

    def reset(self):
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = 0.0

    @property
    def recovery_time(self) -> float:
        overflow = max(self.failure_count - self.failure_threshold, 0)
        return min(self.base_recovery_time * 2**overflow, self.max_recovery_time)

    def _remaining(self) -> float:
        return self.recovery_time - (time.monotonic() - self.opened_at)

    def _before_call(self):
        if self.state is not CircuitState.OPEN:
            return
        remaining = self._remaining()
        if remaining > 0:
            raise CircuitBreakerOpen(
                f"Circuit '{self.name}' is open, retry in {remaining:.1f}s"
            )
        self.state = CircuitState.HALF_OPEN
        logger.info(f"Circuit '{self.name}' half-open, allowing a trial call")

    def _record_failure(self, exc: Exception):
        self.failure_count += 1
        logger.error(
            f"Circuit '{self.name}' failure {self.failure_count}/"
            f"{self.failure_threshold}: {exc}"
        )
        trial_failed = self.state is CircuitState.HALF_OPEN
        if trial_failed or self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            self.opened_at = time.monotonic()
            logger.warning(
                f"Circuit '{self.name}' open for {self.recovery_time}s"
            )

    def _record_success(self):
        if self.state is not CircuitState.CLOSED or self.failure_count:
            logger.info(f"Circuit '{self.name}' recovered")
        self.reset()

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        self._before_call()
        try:
            result = await func(*args, **kwargs)
        except Exception as exc:
            self._record_failure(exc)
            raise
        self._record_success()
        return result


email_breaker = CircuitBreaker(name="smtp", failure_threshold=3, base_recovery_time=10)
