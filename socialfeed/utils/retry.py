"""
Bounded retry with exponential backoff.

Shared by every blob store operation so the attempt budget and the delays
are configured in one place.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.1
    multiplier: float = 2.0

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-based)."""
        return self.base_delay * (self.multiplier ** attempt)

    @classmethod
    def from_config(cls, config) -> "RetryPolicy":
        return cls(
            max_attempts=max(int(config.get("STORAGE_RETRY_ATTEMPTS", 3)), 1),
            base_delay=max(float(config.get("STORAGE_RETRY_BASE_DELAY", 0.1)), 0.0),
            multiplier=max(float(config.get("STORAGE_RETRY_MULTIPLIER", 2.0)), 1.0),
        )


def retry(
    func: Callable,
    policy: RetryPolicy,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    description: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Call func until it succeeds or the policy's attempts are used up.

    The last exception is re-raised once the budget is exhausted.

    Example:
        retry(lambda: write_file(path, data), RetryPolicy(max_attempts=5))
    """

    last_exception = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return func()
        except exceptions as exc:
            last_exception = exc
            logger.warning(
                "%s failed (attempt %d/%d): %s",
                description,
                attempt,
                policy.max_attempts,
                exc,
            )
            if attempt < policy.max_attempts:
                sleep(policy.delay_for(attempt))

    raise last_exception
