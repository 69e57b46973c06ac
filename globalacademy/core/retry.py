"""
Retry mechanisms and circuit breakers for external service calls
"""
import asyncio
import time
from typing import Callable, Optional
from functools import wraps
from enum import Enum
import random
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log
)
import structlog

import logging as py_logging
from globalacademy.core.exceptions import CircuitOpenError
from globalacademy.config import settings

logger = structlog.get_logger(__name__)
py_logger = py_logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states"""
    CLOSED = "closed"  # Normal operation
    OPEN = "open"      # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """Circuit breaker for external service calls"""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: float = 60,
        expected_exception: type = Exception,
        clock: Callable[[], float] = time.time
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED
        self._clock = clock

    def __call__(self, func: Callable) -> Callable:
        """Decorator for circuit breaker"""

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            if self.state == CircuitState.OPEN:
                if self._should_attempt_reset():
                    self.state = CircuitState.HALF_OPEN
                else:
                    raise CircuitOpenError(
                        f"Circuit breaker is OPEN for {self.name}",
                        {"state": self.state.value, "failures": self.failure_count}
                    )

            try:
                result = await func(*args, **kwargs)
                self._on_success()
                return result
            except self.expected_exception:
                self._on_failure()
                raise

        return async_wrapper

    def _should_attempt_reset(self) -> bool:
        """Check if we should try to reset the circuit"""
        return (
            self.last_failure_time is not None and
            self._clock() - self.last_failure_time >= self.recovery_timeout
        )

    def _on_success(self):
        """Handle successful call"""
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def _on_failure(self):
        """Handle failed call"""
        self.failure_count += 1
        self.last_failure_time = self._clock()

        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            self.state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                breaker=self.name,
                failures=self.failure_count,
                threshold=self.failure_threshold
            )


def get_retry_decorator(
    max_attempts: int = 3,
    exceptions: tuple = (Exception,),
    max_wait: float = 30
):
    """Get configured retry decorator with exponential backoff"""
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=1, min=1, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=before_sleep_log(py_logger, py_logging.WARNING),
        after=after_log(py_logger, py_logging.INFO),
        reraise=True
    )


llm_retry = get_retry_decorator(
    max_attempts=settings.llm_max_retries,
    exceptions=(Exception,)
)


class RetryWithBackoff:
    """Retry with exponential backoff and jitter"""

    def __init__(
        self,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 60.0,
        exponential_base: float = 2.0,
        jitter: bool = True
    ):
        self.max_attempts = max(1, max_attempts)
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter

    def __call__(self, func: Callable) -> Callable:
        """Decorator for retry with backoff"""

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            for attempt in range(self.max_attempts):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if attempt == self.max_attempts - 1:
                        logger.error(
                            "Max retry attempts reached",
                            function=func.__name__,
                            attempts=self.max_attempts,
                            error=str(e)
                        )
                        raise

                    delay = min(
                        self.initial_delay * (self.exponential_base ** attempt),
                        self.max_delay
                    )

                    if self.jitter:
                        delay = delay * (0.5 + random.random())

                    logger.warning(
                        "Retrying after error",
                        function=func.__name__,
                        attempt=attempt + 1,
                        delay=delay,
                        error=str(e)
                    )

                    await asyncio.sleep(delay)

        return async_wrapper
