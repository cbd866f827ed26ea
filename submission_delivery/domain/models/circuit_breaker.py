"""Circuit breaker state and retry policy models.

Circuit state is held in memory per operation name and rebuilds to
CLOSED on restart.

State transitions:
    CLOSED --(failure_threshold consecutive failures)--> OPEN
    OPEN --(timeout elapsed)--> HALF_OPEN
    HALF_OPEN --(success_threshold successes)--> CLOSED
    HALF_OPEN --(any failure)--> OPEN
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class CircuitState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff curve for one call site.

    Attributes:
        max_retries: Retries after the first attempt.
        initial_delay_seconds: Delay before the first retry.
        max_delay_seconds: Upper bound on any single delay.
        backoff_multiplier: Growth factor per retry.
        jitter: Whether to randomise each delay by +/-25%.
        timeout_seconds: Optional per-attempt timeout.
    """

    max_retries: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 30.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.initial_delay_seconds < 0:
            raise ValueError(
                f"initial_delay_seconds must be non-negative, "
                f"got {self.initial_delay_seconds}"
            )
        if self.max_delay_seconds < self.initial_delay_seconds:
            raise ValueError("max_delay_seconds must be >= initial_delay_seconds")
        if self.backoff_multiplier < 1:
            raise ValueError(
                f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}"
            )
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass(frozen=True)
class CircuitPolicy:
    """Trip and recovery thresholds for one circuit.

    Attributes:
        failure_threshold: Failures in CLOSED before opening.
        success_threshold: Successes in HALF_OPEN before closing.
        timeout_seconds: Time spent OPEN before a trial call.
        monitoring_period_seconds: Quiet period after which the CLOSED
            failure count is forgotten.
    """

    failure_threshold: int = 5
    success_threshold: int = 2
    timeout_seconds: float = 60.0
    monitoring_period_seconds: float = 300.0

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.failure_threshold < 1:
            raise ValueError(
                f"failure_threshold must be positive, got {self.failure_threshold}"
            )
        if self.success_threshold < 1:
            raise ValueError(
                f"success_threshold must be positive, got {self.success_threshold}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass
class CircuitBreakerState:
    """Mutable breaker state for one operation name.

    Times are monotonic-clock seconds.

    Attributes:
        operation_name: Guarded dependency name.
        state: Current circuit state.
        failure_count: Failures counted while CLOSED.
        success_count: Successes counted while HALF_OPEN.
        last_failure_time: Monotonic time of the last failure.
        next_attempt_time: Monotonic time a trial call becomes allowed.
    """

    operation_name: str
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    last_failure_time: float | None = None
    next_attempt_time: float | None = None

    def to_dict(self, now: float) -> dict[str, Any]:
        """Serialize for monitoring, with seconds until the next trial."""
        retry_after = None
        if self.state == CircuitState.OPEN and self.next_attempt_time is not None:
            retry_after = max(0.0, self.next_attempt_time - now)
        return {
            "operation_name": self.operation_name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "retry_after_seconds": retry_after,
        }
