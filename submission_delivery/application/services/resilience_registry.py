"""Resilience registry: retry with backoff behind per-operation circuit breakers.

Every call to an unreliable dependency (text generation providers, the
document service, the mail transport) goes through
ResilienceRegistry.execute_with_retry(). The registry owns one circuit
breaker per operation name; it is created once by the container and
passed by reference to every service that needs it.

Call flow:
1. Consult the breaker. OPEN and still cooling down -> CircuitOpenError
   without invoking the operation. OPEN and timeout elapsed -> HALF_OPEN,
   one trial call at a time.
2. Invoke the operation (optionally bounded by a per-attempt timeout).
3. Success: feed the breaker and return.
4. Failure: feed the breaker; if the error is not retriable or the retry
   budget is spent, re-raise it. Otherwise sleep for the backoff delay
   and go back to step 1, so a breaker that opened mid-loop fails fast.

Breaker state is in memory only and rebuilds to CLOSED on restart.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, NoReturn, TypeVar

import structlog

from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.domain.models.circuit_breaker import (
    CircuitBreakerState,
    CircuitPolicy,
    CircuitState,
    RetryPolicy,
)
from submission_delivery.infrastructure.monitoring.metrics import PipelineMetrics
from submission_delivery.workers.error_handler import is_retriable_error

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]

# Relative jitter applied to each backoff delay
JITTER_RATIO = 0.25


@dataclass
class OperationStats:
    """Call counters for one operation name."""

    calls: int = 0
    successes: int = 0
    failures: int = 0
    retries: int = 0
    rejections: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "calls": self.calls,
            "successes": self.successes,
            "failures": self.failures,
            "retries": self.retries,
            "rejections": self.rejections,
        }


class ResilienceRegistry:
    """Retry executor with per-operation circuit breakers.

    Example:
        registry = ResilienceRegistry(time_authority)
        message_id = await registry.execute_with_retry(
            lambda: transport.send(message),
            operation_name="mail_transport",
        )
    """

    def __init__(
        self,
        time_authority: TimeAuthorityProtocol,
        *,
        default_retry_policy: RetryPolicy | None = None,
        default_circuit_policy: CircuitPolicy | None = None,
        sleep: SleepFunc = asyncio.sleep,
        random_source: Callable[[], float] = random.random,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            time_authority: Clock used for breaker timeouts (monotonic).
            default_retry_policy: Retry policy when a call passes none.
            default_circuit_policy: Breaker policy when none is configured.
            sleep: Awaitable sleep used between attempts.
            random_source: Returns floats in [0, 1) for jitter.
            metrics: Optional Prometheus collector.
        """
        self._time = time_authority
        self._default_retry = default_retry_policy or RetryPolicy()
        self._default_circuit = default_circuit_policy or CircuitPolicy()
        self._sleep = sleep
        self._random = random_source
        self._metrics = metrics
        self._circuits: dict[str, CircuitBreakerState] = {}
        self._circuit_policies: dict[str, CircuitPolicy] = {}
        self._stats: dict[str, OperationStats] = {}
        self._trial_in_flight: set[str] = set()

    def configure_circuit(self, operation_name: str, policy: CircuitPolicy) -> None:
        """Set the breaker policy used for an operation name."""
        self._circuit_policies[operation_name] = policy

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        operation_name: str,
        retry_policy: RetryPolicy | None = None,
        circuit_policy: CircuitPolicy | None = None,
        submission_id: Any = None,
    ) -> T:
        """Run an operation with retries behind its circuit breaker.

        Args:
            operation: Zero-argument callable returning an awaitable.
            operation_name: Breaker key (one breaker per dependency).
            retry_policy: Overrides the default retry policy.
            circuit_policy: Overrides the configured breaker policy.
            submission_id: Included in log context.

        Returns:
            The operation's result.

        Raises:
            CircuitOpenError: The breaker refused the call.
            Exception: The last error from the operation when it is not
                retriable or the retry budget is spent.
        """
        retry = retry_policy or self._default_retry
        circuit = circuit_policy or self._circuit_policies.get(
            operation_name, self._default_circuit
        )
        stats = self._stats.setdefault(operation_name, OperationStats())
        log = logger.bind(
            operation=operation_name,
            submission_id=str(submission_id) if submission_id else None,
        )

        attempt = 0
        while True:
            self._before_attempt(operation_name, circuit, log)
            stats.calls += 1
            try:
                result = await self._invoke(operation, retry.timeout_seconds)
            except Exception as error:
                stats.failures += 1
                self._record_failure(operation_name, circuit, log)
                retriable = is_retriable_error(error)
                if self._metrics is not None:
                    self._metrics.record_external_failure(operation_name, retriable)

                if not retriable or attempt >= retry.max_retries:
                    log.warning(
                        "resilience_call_failed",
                        attempts=attempt + 1,
                        retriable=retriable,
                        error=str(error),
                        error_class=type(error).__name__,
                    )
                    raise

                delay = self.calculate_delay(attempt, retry)
                stats.retries += 1
                log.info(
                    "resilience_retry_scheduled",
                    attempt=attempt + 1,
                    max_attempts=retry.max_retries + 1,
                    delay_seconds=round(delay, 3),
                    error=str(error),
                )
                await self._sleep(delay)
                attempt += 1
                continue
            except BaseException:
                # Cancelled or interrupted: not a failure of the dependency,
                # but a half-open trial slot must not stay taken.
                self._trial_in_flight.discard(operation_name)
                raise

            stats.successes += 1
            self._record_success(operation_name, circuit, log)
            if attempt > 0:
                log.info("resilience_succeeded_after_retry", attempts=attempt + 1)
            return result

    def calculate_delay(self, attempt_index: int, policy: RetryPolicy) -> float:
        """Backoff delay before retry number attempt_index + 1.

        delay = min(initial * multiplier^attempt_index, max_delay), then
        +/-25% jitter when enabled. Never negative.
        """
        delay = policy.initial_delay_seconds * (
            policy.backoff_multiplier**attempt_index
        )
        delay = min(delay, policy.max_delay_seconds)
        if policy.jitter:
            delay += delay * JITTER_RATIO * (self._random() * 2 - 1)
        return max(0.0, delay)

    def get_circuit_state(self, operation_name: str) -> CircuitBreakerState:
        """Return the breaker state for an operation (CLOSED if never used)."""
        return self._circuit(operation_name)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Breaker states and call counters keyed by operation name."""
        now = self._time.monotonic()
        names = sorted(set(self._circuits) | set(self._stats))
        result: dict[str, dict[str, Any]] = {}
        for name in names:
            entry = self._circuit(name).to_dict(now)
            entry["stats"] = self._stats.get(name, OperationStats()).to_dict()
            result[name] = entry
        return result

    def reset(self, operation_name: str | None = None) -> None:
        """Reset one breaker (or all) to CLOSED."""
        names = [operation_name] if operation_name else list(self._circuits)
        for name in names:
            self._circuits[name] = CircuitBreakerState(operation_name=name)
            self._trial_in_flight.discard(name)
            self._publish_state(name)
        logger.info("circuit_reset", operations=names)

    async def _invoke(
        self, operation: Callable[[], Awaitable[T]], timeout_seconds: float | None
    ) -> T:
        if timeout_seconds is None:
            return await operation()
        return await asyncio.wait_for(operation(), timeout=timeout_seconds)

    def _circuit(self, operation_name: str) -> CircuitBreakerState:
        state = self._circuits.get(operation_name)
        if state is None:
            state = CircuitBreakerState(operation_name=operation_name)
            self._circuits[operation_name] = state
        return state

    def _before_attempt(
        self, operation_name: str, policy: CircuitPolicy, log: Any
    ) -> None:
        state = self._circuit(operation_name)
        now = self._time.monotonic()

        if state.state == CircuitState.OPEN:
            next_attempt = state.next_attempt_time or now
            if now < next_attempt:
                self._reject(operation_name, next_attempt - now, log)
            state.state = CircuitState.HALF_OPEN
            state.success_count = 0
            self._publish_state(operation_name)
            log.info("circuit_half_open")

        if state.state == CircuitState.HALF_OPEN:
            # One trial call at a time while half-open
            if operation_name in self._trial_in_flight:
                self._reject(operation_name, 0.0, log)
            self._trial_in_flight.add(operation_name)

    def _reject(self, operation_name: str, retry_after: float, log: Any) -> NoReturn:
        self._stats.setdefault(operation_name, OperationStats()).rejections += 1
        log.warning("circuit_rejected_call", retry_after_seconds=round(retry_after, 3))
        raise CircuitOpenError(operation_name, retry_after)

    def _record_success(
        self, operation_name: str, policy: CircuitPolicy, log: Any
    ) -> None:
        state = self._circuit(operation_name)
        self._trial_in_flight.discard(operation_name)
        now = self._time.monotonic()

        if state.state == CircuitState.HALF_OPEN:
            state.success_count += 1
            if state.success_count >= policy.success_threshold:
                state.state = CircuitState.CLOSED
                state.failure_count = 0
                state.success_count = 0
                state.next_attempt_time = None
                self._publish_state(operation_name)
                log.info("circuit_closed")
        elif (
            state.failure_count > 0
            and state.last_failure_time is not None
            and now - state.last_failure_time > policy.monitoring_period_seconds
        ):
            state.failure_count = 0

    def _record_failure(
        self, operation_name: str, policy: CircuitPolicy, log: Any
    ) -> None:
        state = self._circuit(operation_name)
        self._trial_in_flight.discard(operation_name)
        now = self._time.monotonic()
        state.last_failure_time = now

        if state.state == CircuitState.HALF_OPEN:
            state.state = CircuitState.OPEN
            state.success_count = 0
            state.next_attempt_time = now + policy.timeout_seconds
            self._publish_state(operation_name)
            log.warning("circuit_reopened", timeout_seconds=policy.timeout_seconds)
            return

        state.failure_count += 1
        if (
            state.state == CircuitState.CLOSED
            and state.failure_count >= policy.failure_threshold
        ):
            state.state = CircuitState.OPEN
            state.next_attempt_time = now + policy.timeout_seconds
            self._publish_state(operation_name)
            log.warning(
                "circuit_opened",
                failure_count=state.failure_count,
                timeout_seconds=policy.timeout_seconds,
            )

    def _publish_state(self, operation_name: str) -> None:
        if self._metrics is not None:
            self._metrics.set_circuit_state(
                operation_name, self._circuit(operation_name).state.value
            )
