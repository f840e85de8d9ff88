"""Retry transient API failures with capped exponential backoff.

Retryable: HTTP 429 and 5xx gateway/availability codes, any status listed in
``--retryOn`` / the config ``retry_on``, 403 responses that complain about a
quota or rate limit, and transient transport errors. Everything else is
re-raised immediately.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from gworkspace_admin.errors import RemoteError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
_QUOTA_WORDS = ("quota", "rate", "limit")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings.

    Attributes:
        max_attempts: Total number of attempts including the first one.
        base: Wait before the second attempt, in seconds. Doubles per attempt.
        cap: Upper bound for the exponential part of the wait.
        jitter: Upper bound of the uniform random delay added to every wait.
        retry_on: Extra HTTP status codes to treat as retryable.
    """

    max_attempts: int = 4
    base: float = 1.0
    cap: float = 20.0
    jitter: float = 1.0
    retry_on: frozenset[int] = frozenset()

    @classmethod
    def with_codes(cls, codes: Iterable[int], **kwargs: float) -> "RetryPolicy":
        return cls(retry_on=frozenset(int(c) for c in codes), **kwargs)  # type: ignore[arg-type]


def is_retryable(error: BaseException, retry_on: Iterable[int] = ()) -> bool:
    """Classify an error as retryable or terminal."""
    if isinstance(error, TransportError):
        return error.transient
    if not isinstance(error, RemoteError):
        return False
    if error.status in RETRYABLE_STATUSES or error.status in set(retry_on):
        return True
    if error.status == 403:
        text = f"{error.reason or ''} {error.message}".lower()
        return any(word in text for word in _QUOTA_WORDS)
    return False


class Retrier:
    """Runs an async callable under a RetryPolicy.

    The instance is stateless and shared by all workers.

    Example:
        ```python
        retrier = Retrier(RetryPolicy(retry_on=frozenset({409})))
        result = await retrier.call(lambda: api.get_file(file_id), key=file_id)
        ```
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    def _retrying(self, key: str) -> AsyncRetrying:
        policy = self.policy

        def log_retry(state: RetryCallState) -> None:
            error = state.outcome.exception() if state.outcome else None
            wait = state.next_action.sleep if state.next_action else 0
            logger.warning(
                f"{key or 'request'}: {error} "
                f"(attempt {state.attempt_number}/{policy.max_attempts}, retrying in {wait:.2f}s)"
            )

        return AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_exponential(multiplier=policy.base, max=policy.cap)
            + wait_random(0, policy.jitter),
            retry=retry_if_exception(lambda e: is_retryable(e, policy.retry_on)),
            before_sleep=log_retry,
            reraise=True,
        )

    async def call(self, func: Callable[[], Awaitable[T]], key: str = "") -> T:
        """Invoke ``func`` until it succeeds, fails terminally or attempts run out.

        Args:
            func: Zero-argument coroutine function issuing one request.
            key: Identifier used as a prefix in retry log messages.

        Returns:
            Whatever ``func`` returns.

        Raises:
            The last error raised by ``func``.
        """
        async def attempt() -> T:
            return await func()

        return await self._retrying(key)(attempt)
