"""Tests for the retry policy, Retry-After parsing and the retrying send loop."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest

from atlassian_cli.http.retry import (
    RetryPolicy,
    RetryState,
    RetryTransport,
    failure_reason,
    parse_retry_after,
    send_with_retry,
)
from helpers import SleepRecorder

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
REQUEST = httpx.Request("GET", "https://acme.atlassian.net/rest/api/3/myself")


class ScriptedSend:
    """Returns (or raises) the scripted outcomes in order, repeating the last one."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self, request):
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return httpx.Response(outcome, request=request)
        return outcome


def _send(sender, policy=None, sleep=None, rng=lambda: 0.0):
    return send_with_retry(
        sender,
        REQUEST,
        policy or RetryPolicy(),
        sleep=sleep or SleepRecorder(),
        rng=rng,
        now=lambda: NOW,
    )


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_retries == 3
        assert policy.base_delay == 1.0
        assert policy.max_delay == 30.0
        assert policy.retryable_statuses == {429, 500, 502, 503, 504}

    @pytest.mark.parametrize("attempt", range(7))
    def test_delay_bounds(self, attempt):
        policy = RetryPolicy(base_delay=1.0, max_delay=30.0)
        low = policy.compute_delay(attempt, rng=lambda: 0.0)
        high = policy.compute_delay(attempt, rng=lambda: 0.999999)
        assert low == min(2**attempt, 30.0)
        assert min(2**attempt, 30.0) <= high <= min(2**attempt + 1, 30.0)

    def test_delay_is_capped(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=30.0)
        assert policy.compute_delay(10, rng=lambda: 0.5) == 30.0

    def test_jitter_scales_with_base_delay(self):
        policy = RetryPolicy(base_delay=2.0, max_delay=100.0)
        assert policy.compute_delay(1, rng=lambda: 0.5) == pytest.approx(5.0)

    def test_rejects_negative_values(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)
        with pytest.raises(ValueError):
            RetryPolicy(base_delay=-1)

    def test_statuses_are_frozen(self):
        policy = RetryPolicy(retryable_statuses={503})
        assert isinstance(policy.retryable_statuses, frozenset)


def test_retry_state_is_immutable():
    first = RetryState()
    second = first.next()
    assert first.attempt == 0
    assert second.attempt == 1
    with pytest.raises(AttributeError):
        first.attempt = 5  # type: ignore[misc]


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after("5", NOW) == 5.0

    def test_zero(self):
        assert parse_retry_after("0", NOW) == 0.0

    def test_negative_seconds_clamped(self):
        assert parse_retry_after("-3", NOW) == 0.0

    def test_http_date_in_future(self):
        value = format_datetime(NOW + timedelta(seconds=12), usegmt=True)
        assert parse_retry_after(value, NOW) == pytest.approx(12.0)

    def test_http_date_in_past(self):
        value = format_datetime(NOW - timedelta(minutes=5), usegmt=True)
        assert parse_retry_after(value, NOW) == 0.0

    @pytest.mark.parametrize("value", [None, "", "   ", "soon"])
    def test_missing_or_garbage(self, value):
        assert parse_retry_after(value, NOW) is None


class TestFailureReason:
    @pytest.mark.parametrize(
        "exc, reason",
        [
            (httpx.ConnectError("Connection refused"), "ECONNREFUSED"),
            (httpx.ConnectError("[Errno -2] Name or service not known"), "ENOTFOUND"),
            (httpx.ConnectTimeout("timed out"), "ETIMEDOUT"),
            (httpx.ReadTimeout("timed out"), "ETIMEDOUT"),
            (httpx.PoolTimeout("timed out"), "ETIMEDOUT"),
            (httpx.ReadError("Connection reset by peer"), "ECONNRESET"),
            (httpx.RemoteProtocolError("Server disconnected"), "ECONNRESET"),
            (httpx.WriteError("Broken pipe"), "EPIPE"),
        ],
    )
    def test_connection_failures(self, exc, reason):
        assert failure_reason(exc) == reason

    def test_other_transport_errors_are_not_retryable(self):
        assert failure_reason(httpx.UnsupportedProtocol("ftp")) is None
        assert failure_reason(httpx.LocalProtocolError("bad header")) is None


class TestSendWithRetry:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    async def test_retryable_status_exhausts_budget(self, status):
        sender = ScriptedSend(status)
        sleep = SleepRecorder()
        response = await _send(sender, RetryPolicy(max_retries=3), sleep)
        assert response.status_code == status
        assert sender.calls == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422])
    async def test_client_errors_fail_fast(self, status):
        sender = ScriptedSend(status)
        sleep = SleepRecorder()
        response = await _send(sender, sleep=sleep)
        assert response.status_code == status
        assert sender.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        sender = ScriptedSend(503, 502, 200)
        response = await _send(sender)
        assert response.status_code == 200
        assert sender.calls == 3

    @pytest.mark.asyncio
    async def test_custom_retryable_statuses(self):
        sender = ScriptedSend(409, 200)
        response = await _send(sender, RetryPolicy(retryable_statuses={409}))
        assert response.status_code == 200
        assert sender.calls == 2

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        sender = ScriptedSend(503)
        response = await _send(sender, RetryPolicy(max_retries=0))
        assert response.status_code == 503
        assert sender.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc",
        [
            httpx.ConnectError("Connection refused"),
            httpx.ConnectTimeout("timed out"),
            httpx.ReadTimeout("timed out"),
            httpx.ReadError("Connection reset by peer"),
            httpx.WriteError("Broken pipe"),
            httpx.RemoteProtocolError("Server disconnected without sending a response."),
        ],
    )
    async def test_connection_failures_are_retried(self, exc):
        sender = ScriptedSend(exc, 200)
        response = await _send(sender)
        assert response.status_code == 200
        assert sender.calls == 2

    @pytest.mark.asyncio
    async def test_exhausted_connection_error_is_reraised_unwrapped(self):
        error = httpx.ConnectError("Connection refused")
        sender = ScriptedSend(error)
        with pytest.raises(httpx.ConnectError) as excinfo:
            await _send(sender, RetryPolicy(max_retries=2))
        assert excinfo.value is error
        assert sender.calls == 3

    @pytest.mark.asyncio
    async def test_non_retryable_transport_error_raises_immediately(self):
        sender = ScriptedSend(httpx.UnsupportedProtocol("Request URL has an unsupported protocol"))
        with pytest.raises(httpx.UnsupportedProtocol):
            await _send(sender)
        assert sender.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [1, 2, 3])
    async def test_retry_after_overrides_backoff(self, failures):
        limited = httpx.Response(429, headers={"Retry-After": "5"}, request=REQUEST)
        sender = ScriptedSend(*([limited] * failures), 200)
        sleep = SleepRecorder()
        await _send(sender, sleep=sleep, rng=lambda: 0.9)
        assert sleep.delays == [5.0] * failures

    @pytest.mark.asyncio
    async def test_retry_after_is_capped(self):
        limited = httpx.Response(503, headers={"Retry-After": "120"}, request=REQUEST)
        sleep = SleepRecorder()
        await _send(ScriptedSend(limited, 200), RetryPolicy(max_delay=30.0), sleep)
        assert sleep.delays == [30.0]

    @pytest.mark.asyncio
    async def test_retry_after_zero(self):
        limited = httpx.Response(429, headers={"Retry-After": "0"}, request=REQUEST)
        sleep = SleepRecorder()
        await _send(ScriptedSend(limited, 200), sleep=sleep, rng=lambda: 0.5)
        assert sleep.delays == [0.0]

    @pytest.mark.asyncio
    async def test_retry_after_http_date(self):
        when = format_datetime(NOW + timedelta(seconds=7), usegmt=True)
        limited = httpx.Response(503, headers={"Retry-After": when}, request=REQUEST)
        sleep = SleepRecorder()
        await _send(ScriptedSend(limited, 200), sleep=sleep)
        assert sleep.delays == [pytest.approx(7.0)]

    @pytest.mark.asyncio
    async def test_unparseable_retry_after_falls_back_to_backoff(self):
        limited = httpx.Response(503, headers={"Retry-After": "later"}, request=REQUEST)
        sleep = SleepRecorder()
        await _send(ScriptedSend(limited, 200), sleep=sleep)
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_failed_responses_are_closed(self):
        first = httpx.Response(503, request=REQUEST)
        await _send(ScriptedSend(first, 200))
        assert first.is_closed

    @pytest.mark.asyncio
    async def test_concurrent_requests_keep_separate_budgets(self):
        policy = RetryPolicy(max_retries=3)
        flaky = ScriptedSend(503, 503, 200)
        broken = ScriptedSend(httpx.ConnectError("Connection refused"))

        async def yielding_sleep(delay):
            await asyncio.sleep(0)

        results = await asyncio.gather(
            _send(flaky, policy, yielding_sleep),
            _send(broken, policy, yielding_sleep),
            return_exceptions=True,
        )

        assert results[0].status_code == 200
        assert flaky.calls == 3
        assert isinstance(results[1], httpx.ConnectError)
        assert broken.calls == 4


class TestRetryTransport:
    @pytest.mark.asyncio
    async def test_retries_through_async_client(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            if len(calls) < 3:
                return httpx.Response(503)
            return httpx.Response(200, json={"ok": True})

        sleep = SleepRecorder()
        transport = RetryTransport(httpx.MockTransport(handler), RetryPolicy(), sleep=sleep, rng=lambda: 0.0)
        async with httpx.AsyncClient(transport=transport, base_url="https://example.test") as client:
            response = await client.get("/thing")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert calls == ["/thing"] * 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_resends_identical_body(self):
        bodies = []

        def handler(request):
            bodies.append(request.content)
            return httpx.Response(502 if len(bodies) == 1 else 201)

        transport = RetryTransport(httpx.MockTransport(handler), sleep=SleepRecorder())
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post("https://example.test/issue", json={"a": 1})

        assert response.status_code == 201
        assert bodies[0] and bodies[0] == bodies[1]

    @pytest.mark.asyncio
    async def test_shared_transport_counts_per_request(self):
        seen: dict[str, int] = {}

        def handler(request):
            path = request.url.path
            seen[path] = seen.get(path, 0) + 1
            if path == "/always-down":
                return httpx.Response(503)
            if seen[path] == 1:
                return httpx.Response(500)
            return httpx.Response(200)

        async def yielding_sleep(delay):
            await asyncio.sleep(0)

        transport = RetryTransport(
            httpx.MockTransport(handler), RetryPolicy(max_retries=2), sleep=yielding_sleep
        )
        async with httpx.AsyncClient(transport=transport, base_url="https://example.test") as client:
            down, up = await asyncio.gather(client.get("/always-down"), client.get("/flaky"))

        assert down.status_code == 503
        assert up.status_code == 200
        assert seen == {"/always-down": 3, "/flaky": 2}
