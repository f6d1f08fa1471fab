"""Bounded retry for endpoints that answer "accepted, try later"."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import httpx

from . import config

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to ask again, how long to wait, and which statuses mean "not yet"."""

    max_attempts: int = config.STATS_MAX_ATTEMPTS
    delay: float = config.STATS_RETRY_DELAY
    retry_on: frozenset[int] = field(
        default_factory=lambda: frozenset({config.STATS_PENDING_STATUS})
    )

    def is_retryable(self, status_code: int) -> bool:
        return status_code in self.retry_on

    def should_retry(self, status_code: int, attempt: int) -> bool:
        """attempt is 1-based: the number of requests already sent."""
        return self.is_retryable(status_code) and attempt < self.max_attempts


async def request_with_retry(
    send: Callable[[], Coroutine[Any, Any, httpx.Response]],
    policy: RetryPolicy,
    sleep: SleepFn = asyncio.sleep,
    label: str = "request",
) -> tuple[httpx.Response, int]:
    """Call send() until it returns a settled status or the attempts run out.

    Returns the last response along with the number of attempts made. The
    caller decides what a still-retryable final status means.
    """
    attempt = 0
    while True:
        attempt += 1
        response = await send()
        if not policy.should_retry(response.status_code, attempt):
            return response, attempt
        logger.debug(
            "%s returned %s, retrying in %.1fs (attempt %d/%d)",
            label,
            response.status_code,
            policy.delay,
            attempt,
            policy.max_attempts,
        )
        await sleep(policy.delay)
