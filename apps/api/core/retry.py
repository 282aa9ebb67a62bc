"""
Retry policy for persistence operations.

One policy object is shared by every store call (workout_days reads and
writes, catalog snapshot loads) so attempts and delay are configured in a
single place.

Usage:
    policy = RetryPolicy(max_attempts=3, delay_s=0.5)
    row = policy.call(lambda: _load(session, key), operation="workout_days.get")
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Tuple, Type, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

from core.config import settings
from services.workout_errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connection-level failures; anything else is a real error and is not retried.
TRANSIENT_STORE_ERRORS: Tuple[Type[BaseException], ...] = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    ConnectionError,
)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay_s: float = 0.5
    retry_on: Tuple[Type[BaseException], ...] = field(default=TRANSIENT_STORE_ERRORS)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.STORE_RETRY_ATTEMPTS,
            delay_s=settings.STORE_RETRY_DELAY_S,
        )

    def call(self, fn: Callable[[], T], operation: str = "store") -> T:
        """
        Run fn, retrying transient failures with a fixed delay.

        Raises StoreUnavailableError once every attempt has failed.
        """
        last_error: BaseException = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return fn()
            except self.retry_on as e:
                last_error = e
                if attempt == self.max_attempts:
                    break
                logger.warning(
                    f"{operation} attempt {attempt}/{self.max_attempts} failed, retrying in {self.delay_s}s: {e}"
                )
                self.sleep(self.delay_s)

        logger.error(f"{operation} failed after {self.max_attempts} attempts: {last_error}")
        raise StoreUnavailableError(operation, last_error)
