"""
Exponential-backoff retry execution for OPS requests.

`RetryPolicy` is a plain value object; each call may carry its own policy or
share the client's default. `RetryExecutor` drives a tenacity `AsyncRetrying`
loop configured from the policy, so backoff waits are `asyncio.sleep`
suspensions and never block other in-flight calls.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from patent_ops.core.config import OPSConfig
from patent_ops.core.errors import NetworkError, RateLimitError

logger = logging.getLogger("RetryExecutor")

T = TypeVar("T")


def retry_on_rate_limit(error: BaseException) -> bool:
    """Default predicate: only rate-limit errors are worth another attempt."""
    return isinstance(error, RateLimitError)


def retry_on_rate_limit_or_network(error: BaseException) -> bool:
    """Retry rate-limit errors and transport failures with no response."""
    return isinstance(error, (RateLimitError, NetworkError))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry settings for one call.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = n + 1).
        initial_delay_ms: Wait before the first retry.
        max_delay_ms: Upper bound for any single wait.
        backoff_factor: Multiplier applied to the wait after each retry.
        is_retryable: Predicate deciding whether an error may be retried.
    """

    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_factor: float = 2.0
    is_retryable: Callable[[BaseException], bool] = field(default=retry_on_rate_limit)

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("retry delays must be >= 0")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")

    @classmethod
    def from_config(cls, config: OPSConfig) -> "RetryPolicy":
        """Build the default policy from client configuration."""
        predicate = (
            retry_on_rate_limit_or_network
            if config.retry_network_errors
            else retry_on_rate_limit
        )
        return cls(
            max_retries=config.max_retry_attempts,
            initial_delay_ms=config.retry_initial_delay_ms,
            max_delay_ms=config.retry_max_delay_ms,
            backoff_factor=config.retry_backoff_factor,
            is_retryable=predicate,
        )

    def delay_for_retry(self, retry_number: int) -> float:
        """Return the wait in seconds before retry number `retry_number` (1-based)."""
        delay_ms = self.initial_delay_ms * (self.backoff_factor ** (retry_number - 1))
        return min(delay_ms, self.max_delay_ms) / 1000.0


def _log_before_sleep(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Retryable error on attempt %s (%s), retrying in %.2fs",
        retry_state.attempt_number,
        type(error).__name__,
        delay,
    )


class RetryExecutor:
    """
    Runs an async operation under a `RetryPolicy`.

    The last error is re-raised unchanged once retries are exhausted or a
    non-retryable error occurs.
    """

    def __init__(
        self,
        default_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.default_policy = default_policy or RetryPolicy()
        self._sleep = sleep

    def _build_retrying(self, policy: RetryPolicy) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(policy.max_retries + 1),
            wait=wait_exponential(
                multiplier=policy.initial_delay_ms / 1000.0,
                exp_base=policy.backoff_factor,
                min=0,
                max=policy.max_delay_ms / 1000.0,
            ),
            retry=retry_if_exception(policy.is_retryable),
            before_sleep=_log_before_sleep,
            sleep=self._sleep,
            reraise=True,
        )

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        """
        Invoke `operation`, retrying per `policy` (or the default policy).

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            policy: Optional per-call override of the default policy.

        Returns:
            The operation's result.

        Raises:
            Exception: The last error raised by `operation`, unwrapped.
        """
        retrying = self._build_retrying(policy or self.default_policy)
        return await retrying(operation)
