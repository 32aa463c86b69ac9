"""Bounded exponential backoff for provider calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.sitegen.core.config import Settings
from src.sitegen.core.exceptions import OrchestrationError
from src.sitegen.core.logging import get_logger

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, OrchestrationError) and exc.retryable


def _log_backoff(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retryable error, backing off",
        error_code=getattr(error, "code", None),
        error=getattr(error, "message", str(error)),
        attempt=retry_state.attempt_number,
        delay_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
    )


@dataclass(frozen=True)
class BackoffPolicy:
    """Retry retryable errors with delay ``base_delay * multiplier ** attempt``.

    ``max_retries`` is the total number of attempts, so the default of 3
    means one call plus two retries.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "BackoffPolicy":
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay_seconds,
            multiplier=settings.retry_backoff_multiplier,
            max_delay=settings.retry_max_delay_seconds,
        )

    def retrying(self, *, sleep: Sleep = asyncio.sleep) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(max(self.max_retries, 1)),
            wait=wait_exponential(
                multiplier=self.base_delay, exp_base=self.multiplier, max=self.max_delay
            ),
            retry=retry_if_exception(_is_retryable),
            sleep=sleep,
            before_sleep=_log_backoff,
            reraise=True,
        )

    async def call[T](self, fn: Callable[[], Awaitable[T]], *, sleep: Sleep = asyncio.sleep) -> T:
        """Await ``fn()``, retrying while the error is retryable and attempts remain."""
        return await self.retrying(sleep=sleep)(fn)
