"""FakeTimeAuthority - controllable clock for deterministic tests.

Wall clock and monotonic clock advance together, so retry backoff,
breaker timeouts and queue schedules can all be driven from one object.

    >>> fake_time = FakeTimeAuthority()
    >>> fake_time.advance(seconds=60)       # breaker timeout elapses
    >>> fake_time.advance(delta=timedelta(minutes=10))  # queue backoff elapses

Use the `fake_time_authority` fixture from conftest.py in most tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)

DEFAULT_START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Controllable time authority.

    Attributes:
        sleeps: Every duration passed to sleep(), in call order.
    """

    def __init__(
        self,
        frozen_at: datetime | None = None,
        *,
        start_monotonic: float = 1000.0,
    ) -> None:
        """Initialize the fake clock.

        Args:
            frozen_at: Starting wall-clock time (naive values are UTC).
            start_monotonic: Starting monotonic value.
        """
        frozen_at = frozen_at or DEFAULT_START
        if frozen_at.tzinfo is None:
            frozen_at = frozen_at.replace(tzinfo=timezone.utc)
        self._current_time = frozen_at
        self._monotonic = start_monotonic
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self._current_time

    def monotonic(self) -> float:
        return self._monotonic

    def advance(
        self,
        seconds: float | int | None = None,
        delta: timedelta | None = None,
    ) -> None:
        """Advance both clocks.

        Raises:
            ValueError: Neither argument given, or a negative amount.
        """
        if delta is not None:
            amount = delta.total_seconds()
        elif seconds is not None:
            amount = float(seconds)
        else:
            raise ValueError("Must provide either 'seconds' or 'delta' argument")
        if amount < 0:
            raise ValueError(f"Cannot advance time backwards. Got {amount} seconds.")
        self._current_time += timedelta(seconds=amount)
        self._monotonic += amount

    def set_time(self, dt: datetime) -> None:
        """Jump the wall clock without touching the monotonic clock."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        self._current_time = dt

    async def sleep(self, seconds: float) -> None:
        """Drop-in for asyncio.sleep that advances time instead of waiting."""
        self.sleeps.append(seconds)
        self.advance(seconds=seconds)

    def __repr__(self) -> str:
        return (
            f"FakeTimeAuthority(current_time={self._current_time.isoformat()}, "
            f"monotonic={self._monotonic:.3f})"
        )
