"""
Async circuit breaker for the external lookups (account RPC, metadata).

States
------
CLOSED    — Lookups pass through. Consecutive failures are counted.
OPEN      — Tripped. Lookups fail fast without touching the service, so
            the remaining batches of a large tree degrade immediately
            instead of each waiting out its retries.
HALF_OPEN — After ``recovery_timeout`` a single probe is let through at a
            time while concurrent callers are rejected; success closes
            the circuit, failure re-opens it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(Exception):
    """Raised when a call is attempted against an open circuit."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Circuit '{name}' is OPEN – lookup skipped")
        self.circuit_name = name


@dataclass
class CircuitBreakerStats:
    total_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0


class CircuitBreaker:
    """Trip after *failure_threshold* consecutive failures.

    Parameters
    ----------
    name:
        Service name used in log lines.
    failure_threshold:
        Consecutive failures before the circuit opens.
    recovery_timeout:
        Seconds spent OPEN before a probe is allowed.
    success_threshold:
        Consecutive HALF_OPEN successes needed to close again.
    """

    def __init__(
        self,
        name: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout: float = 30.0,
        success_threshold: int = 1,
    ) -> None:
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.success_threshold = success_threshold

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._opened_at: Optional[float] = None
        self._probe_in_flight = False
        self._lock = asyncio.Lock()
        self.stats = CircuitBreakerStats()

    @property
    def state(self) -> CircuitState:
        return self._state

    async def call(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Await *func* through the breaker; raise ``CircuitOpenError`` when OPEN."""
        async with self._lock:
            if (
                self._state == CircuitState.OPEN
                and time.monotonic() - (self._opened_at or 0) >= self.recovery_timeout
            ):
                self._transition(CircuitState.HALF_OPEN)
            state = self._state
            rejected = state == CircuitState.OPEN or (
                state == CircuitState.HALF_OPEN and self._probe_in_flight
            )
            if state == CircuitState.HALF_OPEN and not rejected:
                self._probe_in_flight = True

        if rejected:
            self.stats.rejected_calls += 1
            raise CircuitOpenError(self.name)

        self.stats.total_calls += 1
        try:
            result = await func(*args, **kwargs)
        except Exception:
            await self._record_failure()
            raise
        except BaseException:
            self._probe_in_flight = False
            raise
        await self._record_success()
        return result

    async def _record_success(self) -> None:
        async with self._lock:
            self._probe_in_flight = False
            if self._state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count < self.success_threshold:
                    return
                self._transition(CircuitState.CLOSED)
            self._failure_count = 0
            self._success_count = 0

    async def _record_failure(self) -> None:
        async with self._lock:
            self._probe_in_flight = False
            self.stats.failed_calls += 1
            self._failure_count += 1
            self._success_count = 0
            if (
                self._state == CircuitState.HALF_OPEN
                or self._failure_count >= self.failure_threshold
            ):
                self._opened_at = time.monotonic()
                self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state != self._state:
            logger.warning(
                "CircuitBreaker '%s': %s → %s (failures=%d)",
                self.name,
                self._state.value,
                new_state.value,
                self._failure_count,
            )
            self._state = new_state
