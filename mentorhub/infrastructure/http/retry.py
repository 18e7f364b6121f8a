"""
Retry policy for outbound HTTP calls.
Classifies failures and computes exponential backoff between attempts.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from ...constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_DELAY_SECONDS,
    RATE_LIMITED_STATUS_CODE,
    SERVER_ERROR_MIN_STATUS_CODE,
)

ShouldRetry = Callable[[Exception], bool]


def response_status(error: Exception) -> Optional[int]:
    """Return the HTTP status carried by ``error``, or ``None`` if it has no response."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def is_transient(error: Exception) -> bool:
    """Default classifier.

    Retries response-less failures (connection errors, timeouts), server
    errors and 429. Other 4xx responses are never retried.
    """
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= SERVER_ERROR_MIN_STATUS_CODE or status == RATE_LIMITED_STATUS_CODE
    return isinstance(error, httpx.TransportError)


@dataclass(frozen=True)
class RetryDecision:
    """Whether to try again and how long to wait first (seconds)."""

    retry: bool
    delay: float = 0.0


class RetryPolicy:
    """Exponential backoff retry policy without jitter."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_RETRY_BASE_DELAY_SECONDS,
        should_retry: Optional[ShouldRetry] = None,
    ):
        """
        Initialize retry policy.

        Args:
            max_retries: Maximum number of retries after the initial attempt
            base_delay: Delay in seconds before the first retry
            should_retry: Optional classifier replacing :func:`is_transient`
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {max_retries}")
        if base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {base_delay}")

        self.max_retries = max_retries
        self.base_delay = base_delay
        self._classifier: ShouldRetry = should_retry or is_transient

    def delay_for(self, attempt: int) -> float:
        """
        Backoff before the next attempt.

        Args:
            attempt: Number of failed attempts so far minus one (0-based)

        Returns:
            ``base_delay * 2 ** attempt`` seconds
        """
        return self.base_delay * (2**attempt)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        return attempt < self.max_retries and self._classifier(error)

    def decide(self, error: Exception, attempt: int) -> RetryDecision:
        if not self.should_retry(error, attempt):
            return RetryDecision(retry=False)
        return RetryDecision(retry=True, delay=self.delay_for(attempt))

    def with_overrides(
        self,
        max_retries: Optional[int] = None,
        base_delay: Optional[float] = None,
        should_retry: Optional[ShouldRetry] = None,
    ) -> "RetryPolicy":
        """Return a copy with the given fields replaced."""
        return RetryPolicy(
            max_retries=self.max_retries if max_retries is None else max_retries,
            base_delay=self.base_delay if base_delay is None else base_delay,
            should_retry=should_retry or self._classifier,
        )
