"""Retry transport with exponential backoff for transient HTTP failures.

Every request sent through :class:`RetryTransport` is retried when the
connection fails before a response arrives, or when the response status is
one of the policy's retryable statuses (rate limiting and 5xx gateway
errors by default). Delays grow exponentially with random jitter, and a
``Retry-After`` header sent by the server takes precedence over the
computed delay.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger("atlassian_cli")

DEFAULT_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

# Connection failures that never produced a response, with the reason code
# reported in log messages. Timeouts are listed first since ConnectTimeout
# is not a ConnectError.
_NO_RESPONSE_REASONS: tuple[tuple[type[httpx.TransportError], str], ...] = (
    (httpx.TimeoutException, "ETIMEDOUT"),
    (httpx.ConnectError, "ECONNREFUSED"),
    (httpx.ReadError, "ECONNRESET"),
    (httpx.RemoteProtocolError, "ECONNRESET"),
    (httpx.WriteError, "EPIPE"),
)

_DNS_FAILURE_HINTS = ("name or service not known", "nodename nor servname", "getaddrinfo")

SendFn = Callable[[httpx.Request], Awaitable[httpx.Response]]
SleepFn = Callable[[float], Awaitable[None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how long to back off before giving up on a request.

    Args:
        max_retries: Retries allowed after the initial attempt.
        base_delay: Backoff unit in seconds, doubled on each retry.
        max_delay: Upper bound in seconds for any single delay.
        retryable_statuses: Response statuses that trigger a retry.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    retryable_statuses: frozenset[int] = DEFAULT_RETRYABLE_STATUSES

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("base_delay and max_delay must be >= 0")
        object.__setattr__(self, "retryable_statuses", frozenset(self.retryable_statuses))

    def compute_delay(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        """Delay before retry number ``attempt + 1`` (``attempt`` is 0-indexed)."""
        exponential = self.base_delay * (2**attempt)
        jitter = rng() * self.base_delay
        return min(exponential + jitter, self.max_delay)


@dataclass(frozen=True)
class RetryState:
    """Retries already performed for one logical request."""

    attempt: int = 0

    def next(self) -> RetryState:
        return RetryState(attempt=self.attempt + 1)


def failure_reason(exc: BaseException) -> str | None:
    """Return the reason code for a retryable connection failure, else None."""
    for exc_type, reason in _NO_RESPONSE_REASONS:
        if isinstance(exc, exc_type):
            if reason == "ECONNREFUSED" and any(
                hint in str(exc).lower() for hint in _DNS_FAILURE_HINTS
            ):
                return "ENOTFOUND"
            return reason
    return None


def is_retryable_error(exc: BaseException) -> bool:
    return failure_reason(exc) is not None


def parse_retry_after(value: str | None, now: datetime) -> float | None:
    """Convert a Retry-After header to a delay in seconds.

    The header is either a number of seconds or an HTTP date. Returns None
    when the header is absent or unparseable. The result is never negative.
    """
    if not value or not value.strip():
        return None
    value = value.strip()
    try:
        seconds = int(value)
    except ValueError:
        pass
    else:
        return float(max(0, seconds))

    try:
        target = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if target.tzinfo is None:
        target = target.replace(tzinfo=timezone.utc)
    return max(0.0, (target - now).total_seconds())


async def send_with_retry(
    send: SendFn,
    request: httpx.Request,
    policy: RetryPolicy,
    *,
    sleep: SleepFn = asyncio.sleep,
    rng: Callable[[], float] = random.random,
    now: Callable[[], datetime] = _utcnow,
) -> httpx.Response:
    """Send ``request`` and retry transient failures according to ``policy``.

    Non-retryable responses are returned untouched. When the budget is
    exhausted the last retryable response is returned, or the last
    connection error is re-raised as-is.
    """
    state = RetryState()
    while True:
        try:
            response = await send(request)
        except httpx.TransportError as exc:
            reason = failure_reason(exc)
            if reason is None or state.attempt >= policy.max_retries:
                raise
            delay = policy.compute_delay(state.attempt, rng)
            cause = f"{reason} ({exc})"
        else:
            if (
                response.status_code not in policy.retryable_statuses
                or state.attempt >= policy.max_retries
            ):
                return response
            delay = policy.compute_delay(state.attempt, rng)
            retry_after = parse_retry_after(response.headers.get("Retry-After"), now())
            if retry_after is not None:
                delay = min(retry_after, policy.max_delay)
            cause = f"HTTP {response.status_code}"
            await response.aclose()

        logger.warning(
            "Retrying %s %s (attempt %d/%d) after %.2fs: %s",
            request.method,
            request.url,
            state.attempt + 1,
            policy.max_retries,
            delay,
            cause,
        )
        await sleep(delay)
        state = state.next()


class RetryTransport(httpx.AsyncBaseTransport):
    """Async transport that retries requests of the wrapped transport."""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        policy: RetryPolicy | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
        rng: Callable[[], float] = random.random,
        now: Callable[[], datetime] = _utcnow,
    ):
        self._transport = transport or httpx.AsyncHTTPTransport()
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng
        self._now = now

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await send_with_retry(
            self._transport.handle_async_request,
            request,
            self.policy,
            sleep=self._sleep,
            rng=self._rng,
            now=self._now,
        )

    async def aclose(self) -> None:
        await self._transport.aclose()
