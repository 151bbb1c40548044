"""
Bounded retry with non-decreasing backoff.

State machine: ATTEMPTING -> SUCCEEDED on success, ATTEMPTING -> WAITING on a
recoverable failure with attempts left, WAITING -> ATTEMPTING after the delay,
ATTEMPTING -> EXHAUSTED on a recoverable failure with no attempts left.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

import structlog

from healwright.config import RetryPolicy
from healwright.runtime.errors import RecoverableError, RetryExhaustedError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


class RetryPhase(StrEnum):
    """Phase of a retry loop."""

    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass
class RetryState:
    """Mutable state of one retry loop."""

    max_attempts: int
    attempt_number: int = 1
    delay_ms: int = 0
    last_error: BaseException | None = None
    phase: RetryPhase = RetryPhase.ATTEMPTING

    @property
    def attempts_left(self) -> int:
        return self.max_attempts - self.attempt_number

    def record_failure(self, error: BaseException, policy: RetryPolicy) -> None:
        """Move to WAITING or EXHAUSTED after a failed attempt."""
        self.last_error = error
        if self.attempts_left > 0:
            self.delay_ms = policy.delay_for(self.attempt_number)
            self.phase = RetryPhase.WAITING
        else:
            self.phase = RetryPhase.EXHAUSTED

    def advance(self) -> None:
        """Move from WAITING back to ATTEMPTING with the next attempt number."""
        if self.phase != RetryPhase.WAITING:
            raise RuntimeError(f"Cannot advance retry state from {self.phase}")
        self.attempt_number += 1
        self.phase = RetryPhase.ATTEMPTING


async def with_retry(
    action: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    description: str = "perform action",
    sleep: SleepFn = asyncio.sleep,
    retry_on: tuple[type[BaseException], ...] = (RecoverableError,),
) -> T:
    """
    Run an idempotent async action with bounded retries.

    Args:
        action: Zero-argument coroutine function to invoke
        policy: Attempt budget and backoff policy
        description: Human readable action, used in logs and the final error
        sleep: Awaitable sleep taking seconds, injectable for tests
        retry_on: Exception types that trigger a retry; others propagate at once

    Returns:
        Whatever the action returned on its successful attempt

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error
    """
    state = RetryState(max_attempts=policy.max_attempts)
    log = logger.bind(component="retry", action=description)

    while True:
        try:
            result = await action()
        except retry_on as e:
            state.record_failure(e, policy)
            log.info(
                "Attempt failed",
                attempt=state.attempt_number,
                max_attempts=state.max_attempts,
                error=str(e).splitlines()[0] if str(e) else type(e).__name__,
            )

            if state.phase == RetryPhase.EXHAUSTED:
                log.warning("Retries exhausted", attempts=state.attempt_number)
                raise RetryExhaustedError(description, state.attempt_number, e) from e

            log.debug("Backing off", delay_ms=state.delay_ms)
            await sleep(state.delay_ms / 1000)
            state.advance()
        else:
            state.phase = RetryPhase.SUCCEEDED
            if state.attempt_number > 1:
                log.info("Succeeded after retry", attempt=state.attempt_number)
            return result
