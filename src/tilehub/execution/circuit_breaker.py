"""Circuit breakers for provider calls and tile synthesis.

A breaker fails fast once its dependency has failed ``failure_threshold``
times in a row, then lets one trial through after ``cooldown_seconds``.
Two tiers use it:

    source:{source}:{tile}   around one provider call for one tile
    tile:{tile}              around the whole synthesis of a tile

Only the counter of *consecutive* failures matters; a success anywhere
in between resets it.

States::

    CLOSED ──(threshold consecutive failures)──▶ OPEN
      ▲                                           │ cooldown elapsed
      │ trial succeeded                           ▼
      └────────────────────────────────────── HALF_OPEN ──(trial failed)──▶ OPEN

All state lives on one event loop and no method awaits while mutating
it, so no lock is taken.

Example:
    >>> breaker = CircuitBreaker("source:serper:market_size", failure_threshold=5)
    >>> response = await breaker.execute(
    ...     lambda: client.fetch(query),
    ...     lambda exc: SourceResponse.unavailable("serper", SourceKind.SEARCH, str(exc)),
    ... )
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, TypeVar

from tilehub.core.errors import CircuitOpenError
from tilehub.core.logging import get_logger
from tilehub.core.timestamps import to_iso8601, utc_now

logger = get_logger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]
Fallback = Callable[[BaseException], Any]


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitStats:
    """Lifetime counters, exposed on ``GET /breakers``."""

    calls: int = 0
    successes: int = 0
    failures: int = 0
    rejections: int = 0
    transitions: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class CircuitBreakerState:
    key: str
    state: CircuitState
    consecutive_failures: int
    last_failure_at: datetime | None
    next_retry_at: datetime | None
    stats: CircuitStats = field(default_factory=CircuitStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "state": self.state.value,
            "consecutive_failures": self.consecutive_failures,
            "last_failure_at": to_iso8601(self.last_failure_at),
            "next_retry_at": to_iso8601(self.next_retry_at),
            "stats": self.stats.to_dict(),
        }


class CircuitBreaker:
    """One breaker.

    Args:
        name: Registry key, also used in log events.
        failure_threshold: Consecutive failures that open the circuit.
        cooldown_seconds: Time from the last failure until a trial is admitted.
        clock: Returns the current aware datetime; tests pass a fake.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        cooldown_seconds: float = 30.0,
        clock: Clock = utc_now,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self.stats = CircuitStats()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_at: datetime | None = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self._cooldown_elapsed():
            self._move_to(CircuitState.HALF_OPEN)
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._failures

    @property
    def next_retry_at(self) -> datetime | None:
        if self._last_failure_at is None:
            return None
        return self._last_failure_at + timedelta(seconds=self.cooldown_seconds)

    def _cooldown_elapsed(self) -> bool:
        retry_at = self.next_retry_at
        return retry_at is None or self.clock() >= retry_at

    def _move_to(self, state: CircuitState) -> None:
        previous, self._state = self._state, state
        self.stats.transitions += 1
        self._trial_in_flight = False
        if state is CircuitState.CLOSED:
            self._failures = 0
        log = logger.warning if state is CircuitState.OPEN else logger.info
        log(
            "circuit_state_changed",
            breaker=self.name,
            old_state=previous.value,
            new_state=state.value,
            consecutive_failures=self._failures,
        )

    def allow_request(self) -> bool:
        """Admit or reject one call. A half-open circuit admits a single trial."""
        state = self.state
        if state is CircuitState.CLOSED:
            self.stats.calls += 1
            return True
        if state is CircuitState.HALF_OPEN and not self._trial_in_flight:
            self._trial_in_flight = True
            self.stats.calls += 1
            return True
        self.stats.rejections += 1
        return False

    def record_success(self) -> None:
        self.stats.successes += 1
        self._failures = 0
        if self._state is not CircuitState.CLOSED:
            self._move_to(CircuitState.CLOSED)

    def record_failure(self, error: BaseException | None = None) -> None:
        self.stats.failures += 1
        self._failures += 1
        self._last_failure_at = self.clock()
        if self._state is CircuitState.HALF_OPEN:
            self._move_to(CircuitState.OPEN)
        elif self._state is CircuitState.CLOSED and self._failures >= self.failure_threshold:
            self._move_to(CircuitState.OPEN)
        if error is not None:
            logger.debug("circuit_failure", breaker=self.name, failures=self._failures, error=str(error))

    def reset(self) -> None:
        self._last_failure_at = None
        self._move_to(CircuitState.CLOSED)

    def force_open(self) -> None:
        """Open now; the cooldown runs from this moment."""
        self._last_failure_at = self.clock()
        self._move_to(CircuitState.OPEN)

    def snapshot(self) -> CircuitBreakerState:
        state = self.state
        return CircuitBreakerState(
            key=self.name,
            state=state,
            consecutive_failures=self._failures,
            last_failure_at=self._last_failure_at,
            next_retry_at=None if state is CircuitState.CLOSED else self.next_retry_at,
            stats=CircuitStats(**self.stats.to_dict()),
        )

    async def execute(
        self,
        primary: Callable[[], Awaitable[T]],
        fallback: Fallback | None = None,
    ) -> T:
        """Run ``primary`` through the breaker.

        A rejected call never reaches ``primary``: ``fallback`` gets a
        :class:`CircuitOpenError` (or it is raised when there is no
        fallback). A raising ``primary`` counts as a failure and its
        exception goes to ``fallback``, which may return a substitute or
        raise.
        """
        if not self.allow_request():
            rejected = CircuitOpenError(
                f"Circuit '{self.name}' is open until {to_iso8601(self.next_retry_at)}"
            )
            if fallback is None:
                raise rejected
            return await _call_fallback(fallback, rejected)

        try:
            result = await primary()
        except Exception as e:
            self.record_failure(e)
            if fallback is None:
                raise
            return await _call_fallback(fallback, e)
        except BaseException:
            # Cancelled: neither outcome is known, so free the half-open trial slot.
            self._trial_in_flight = False
            raise

        self.record_success()
        return result


async def _call_fallback(fallback: Fallback, error: BaseException) -> Any:
    result = fallback(error)
    return await result if inspect.isawaitable(result) else result


def source_breaker_key(source: str, tile: str) -> str:
    return f"source:{source}:{tile}"


def tile_breaker_key(tile: str) -> str:
    return f"tile:{tile}"


class CircuitBreakerRegistry:
    """Breakers by key, created on first use with the registry defaults.

    Each hub owns one registry; nothing is shared between registries.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        cooldown_seconds: float = 30.0,
        clock: Clock = utc_now,
    ):
        self.failure_threshold = failure_threshold
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self._breakers: dict[str, CircuitBreaker] = {}

    def get(self, name: str) -> CircuitBreaker | None:
        return self._breakers.get(name)

    def get_or_create(
        self,
        name: str,
        failure_threshold: int | None = None,
        cooldown_seconds: float | None = None,
    ) -> CircuitBreaker:
        """Existing breaker for ``name``; overrides only apply on creation."""
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = self._breakers[name] = CircuitBreaker(
                name,
                failure_threshold=failure_threshold or self.failure_threshold,
                cooldown_seconds=self.cooldown_seconds if cooldown_seconds is None else cooldown_seconds,
                clock=self.clock,
            )
        return breaker

    def snapshots(self) -> list[CircuitBreakerState]:
        return [self._breakers[name].snapshot() for name in sorted(self._breakers)]


__all__ = [
    "CircuitState",
    "CircuitStats",
    "CircuitBreakerState",
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "source_breaker_key",
    "tile_breaker_key",
]
