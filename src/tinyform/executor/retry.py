"""Bounded retry with exponential backoff for provider calls."""

import time
from typing import Callable, Optional, TypeVar
from ..config.settings import RetrySection
from ..utils.errors import ProviderTransientError
from ..utils.logging import get_logger

logger = get_logger("executor.retry")

T = TypeVar("T")


def backoff_delay(attempt: int, policy: RetrySection) -> float:
    """Delay after the given (1-based) failed attempt."""
    return min(policy.base_delay_seconds * (2 ** (attempt - 1)), policy.max_delay_seconds)


def call_with_retry(
    operation: Callable[[], T],
    policy: RetrySection,
    description: str,
    on_attempt: Optional[Callable[[int], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Run a provider operation, retrying transient failures.
    
    Timeouts raised by the provider count as transient. Any other exception
    propagates on the first attempt.
    
    Args:
        operation: Zero-argument callable performing the provider call
        policy: Attempt count and backoff bounds
        description: Used in log messages
        on_attempt: Called with the attempt number before each try
        sleep: Injected for tests
        
    Raises:
        ProviderTransientError: When every attempt failed transiently
    """
    for attempt in range(1, policy.attempts + 1):
        if on_attempt:
            on_attempt(attempt)
        try:
            return operation()
        except TimeoutError as e:
            error = ProviderTransientError(f"Timed out: {e}")
        except ProviderTransientError as e:
            error = e
        
        if attempt == policy.attempts:
            logger.error(f"{description}: giving up after {attempt} attempts: {error}")
            raise error
        
        delay = backoff_delay(attempt, policy)
        logger.warning(f"{description}: transient error on attempt {attempt}, retrying in {delay:.1f}s: {error}")
        sleep(delay)
    
    raise ProviderTransientError(f"{description}: no attempts configured")
