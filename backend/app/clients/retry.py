"""Caller-side retry wrapper for review service operations.

Only transient (injected server) failures are retried. Offline, permission,
validation, not-found and conflict errors surface on first occurrence because
repeating the same request cannot change their outcome.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from app.core.config import Settings
from app.services.errors import CaseServiceError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and exponential backoff schedule.

    Attempts are counted from 0; the wait after failed attempt ``n`` is
    ``base_delay * 2 ** n`` seconds, so with the defaults a call is tried three
    times with 1s and 2s pauses in between.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(max_attempts=settings.retry_attempts, base_delay=settings.retry_base_delay_seconds)

    def backoff(self, attempt: int) -> float:
        return self.base_delay * 2 ** attempt

    def schedule(self) -> List[float]:
        return [self.backoff(attempt) for attempt in range(self.max_attempts - 1)]

    @staticmethod
    def is_retryable(exc: BaseException) -> bool:
        return isinstance(exc, CaseServiceError) and exc.kind is ErrorKind.TRANSIENT


def _log_retry_attempt(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Retrying after transient failure",
        extra={
            "operation": getattr(retry_state.fn, "__name__", repr(retry_state.fn)),
            "attempt": retry_state.attempt_number,
            "wait_seconds": wait,
            "error": str(exc) if exc else None,
        },
    )


class RetryClient:
    """Invokes an async operation with the same arguments until it succeeds or the budget runs out."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.policy.backoff(retry_state.attempt_number - 1)

    async def call(self, operation: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.policy.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(self.policy.is_retryable),
            before_sleep=_log_retry_attempt,
            sleep=self._sleep,
            reraise=True,
        )
        return await retrying(operation, *args, **kwargs)
