"""
Delivery retry state machine.

Each HTTP attempt is reduced to a typed AttemptOutcome (succeeded,
retryable, terminal). `deliver_with_retry` drives the attempts through
tenacity, backing off exponentially between retryable failures, and raises
the last TransportError once the attempt ceiling is reached or a terminal
failure is seen.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from multinotifier.errors import TransportError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
TERMINAL_STATUSES = frozenset({400, 401})


class AttemptStatus(str, Enum):
    SUCCEEDED = "succeeded"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class AttemptOutcome:
    status: AttemptStatus
    error: Optional[TransportError] = None

    @property
    def succeeded(self) -> bool:
        return self.status == AttemptStatus.SUCCEEDED


def classify_response(response: httpx.Response, label: str = "HTTP") -> AttemptOutcome:
    """Map an HTTP response onto an attempt outcome."""
    status = response.status_code
    if 200 <= status < 300:
        return AttemptOutcome(AttemptStatus.SUCCEEDED)

    body = response.text
    error = TransportError(status, f"{label} request failed: {status} {body}".rstrip(), body)
    if status in TERMINAL_STATUSES:
        return AttemptOutcome(AttemptStatus.TERMINAL, error)
    if 500 <= status < 600:
        return AttemptOutcome(AttemptStatus.RETRYABLE, error)
    # Anything else (403, 404, 429, 3xx...) is treated as a client error.
    return AttemptOutcome(AttemptStatus.TERMINAL, error)


def classify_exception(exc: httpx.HTTPError, label: str = "HTTP") -> AttemptOutcome:
    """Network-level failures are always worth another attempt."""
    error = TransportError(None, f"{label} request failed: {exc!r}")
    return AttemptOutcome(AttemptStatus.RETRYABLE, error)


def _is_retryable(outcome: AttemptOutcome) -> bool:
    return outcome.status == AttemptStatus.RETRYABLE


def _log_retry(label: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def log(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome.result()
        logger.warning(
            "%s attempt %d/%d failed (%s); retrying in %.1fs",
            label,
            retry_state.attempt_number,
            max_attempts,
            outcome.error,
            retry_state.next_action.sleep,
        )

    return log


async def deliver_with_retry(
    attempt: Callable[[], Awaitable[AttemptOutcome]],
    *,
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = 1.0,
    label: str = "delivery",
) -> int:
    """
    Run `attempt` until it succeeds, fails terminally, or runs out of tries.

    Waits 2s then 4s (scaled by `base_delay`) between retryable failures.
    Returns the number of attempts made on success; raises the last
    TransportError otherwise.
    """
    attempts = 0

    async def counted() -> AttemptOutcome:
        nonlocal attempts
        attempts += 1
        return await attempt()

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=2 * base_delay, exp_base=2),
        retry=retry_if_result(_is_retryable),
        before_sleep=_log_retry(label, max_attempts),
        # Hand back the last outcome instead of tenacity's RetryError
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        sleep=asyncio.sleep,
    )
    outcome = await retrying(counted)

    if outcome.succeeded:
        return attempts
    raise outcome.error or TransportError(None, f"{label} failed")
