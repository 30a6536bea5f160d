"""Tests for the async circuit breaker."""

from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock

import pytest

from account_enricher.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState


async def _fail():
    raise RuntimeError("boom")


class TestCircuitBreaker:

    @pytest.mark.asyncio
    async def test_passes_results_through(self):
        cb = CircuitBreaker("svc")
        assert await cb.call(AsyncMock(return_value=5)) == 5
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self):
        cb = CircuitBreaker("svc", failure_threshold=2)
        for _ in range(2):
            with pytest.raises(RuntimeError):
                await cb.call(_fail)
        assert cb.state == CircuitState.OPEN
        with pytest.raises(CircuitOpenError):
            await cb.call(AsyncMock(return_value=1))
        assert cb.stats.rejected_calls == 1

    @pytest.mark.asyncio
    async def test_success_resets_failure_streak(self):
        cb = CircuitBreaker("svc", failure_threshold=2)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        await cb.call(AsyncMock(return_value=None))
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_success_closes(self):
        cb = CircuitBreaker("svc", failure_threshold=1, recovery_timeout=10)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        cb._opened_at = time.monotonic() - 11
        assert await cb.call(AsyncMock(return_value="ok")) == "ok"
        assert cb.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self):
        cb = CircuitBreaker("svc", failure_threshold=1, recovery_timeout=10)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        cb._opened_at = time.monotonic() - 11
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        assert cb.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_half_open_admits_one_call_at_a_time(self):
        cb = CircuitBreaker("svc", failure_threshold=1, recovery_timeout=10)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        cb._opened_at = time.monotonic() - 11

        release = asyncio.Event()

        async def _slow():
            await release.wait()
            return "ok"

        trial = asyncio.create_task(cb.call(_slow))
        await asyncio.sleep(0)
        assert cb.state == CircuitState.HALF_OPEN
        with pytest.raises(CircuitOpenError):
            await cb.call(AsyncMock(return_value=1))

        release.set()
        assert await trial == "ok"
        assert cb.state == CircuitState.CLOSED
        assert await cb.call(AsyncMock(return_value=2)) == 2

    @pytest.mark.asyncio
    async def test_cancelled_trial_call_frees_half_open(self):
        cb = CircuitBreaker("svc", failure_threshold=1, recovery_timeout=10)
        with pytest.raises(RuntimeError):
            await cb.call(_fail)
        cb._opened_at = time.monotonic() - 11

        trial = asyncio.create_task(cb.call(asyncio.Event().wait))
        await asyncio.sleep(0)
        trial.cancel()
        with pytest.raises(asyncio.CancelledError):
            await trial
        assert await cb.call(AsyncMock(return_value="ok")) == "ok"
