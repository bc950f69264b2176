"""
Circuit breaker for calls leaving the service (payment gateway).

After `failure_threshold` consecutive failures the breaker opens and fails
fast for `reset_timeout` seconds. The next call is a trial: success closes
the breaker, failure reopens it immediately.
"""

import logging
import time
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger("parcel_backend.reliability")

T = TypeVar("T")


class CircuitOpenError(Exception):
    def __init__(self, name: str, retry_after: float):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit '{name}' is OPEN, retry in {retry_after:.0f}s")


class CircuitBreaker:
    def __init__(self, failure_threshold: int = 5, reset_timeout: int = 60, name: str = "default"):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.last_failure_time = 0.0
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

    def _seconds_until_trial(self) -> float:
        return self.reset_timeout - (time.monotonic() - self.last_failure_time)

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        if self.state == "OPEN":
            remaining = self._seconds_until_trial()
            if remaining >= 0:
                raise CircuitOpenError(self.name, remaining)
            self.state = "HALF_OPEN"
            logger.info("Circuit '%s' half-open, allowing trial call", self.name)

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self.record_failure()
            raise

        if self.state != "CLOSED" or self.failures:
            self.reset_state()
        return result

    def record_failure(self):
        self.failures += 1
        self.last_failure_time = time.monotonic()
        if self.state == "HALF_OPEN" or self.failures >= self.failure_threshold:
            if self.state != "OPEN":
                logger.warning(
                    "Circuit '%s' opened after %d failure(s)", self.name, self.failures
                )
            self.state = "OPEN"

    def reset_state(self):
        if self.state != "CLOSED":
            logger.info("Circuit '%s' closed", self.name)
        self.failures = 0
        self.state = "CLOSED"


payment_circuit_breaker = CircuitBreaker(failure_threshold=3, reset_timeout=30, name="payment_gateway")
