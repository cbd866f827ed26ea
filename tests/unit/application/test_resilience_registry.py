"""Unit tests for ResilienceRegistry.

Retries sleep on the fake clock, so every backoff delay also advances
the monotonic time the circuit breakers are measured against.
"""

from __future__ import annotations

import asyncio

import pytest
from prometheus_client import CollectorRegistry

from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)
from submission_delivery.domain.errors.resilience import CircuitOpenError
from submission_delivery.domain.models.circuit_breaker import (
    CircuitPolicy,
    CircuitState,
    RetryPolicy,
)
from submission_delivery.infrastructure.monitoring.metrics import PipelineMetrics
from tests.helpers import FakeTimeAuthority

NO_JITTER = RetryPolicy(
    max_retries=3, initial_delay_seconds=1.0, max_delay_seconds=30.0, jitter=False
)
SINGLE_ATTEMPT = RetryPolicy(max_retries=0, jitter=False)


class FlakyOperation:
    """Fails a scripted number of times, then returns a value."""

    def __init__(self, failures: int, error: BaseException | None = None) -> None:
        self.failures = failures
        self.error = error or ConnectionError("connection reset by peer")
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


@pytest.fixture
def registry(fake_time_authority: FakeTimeAuthority) -> ResilienceRegistry:
    return ResilienceRegistry(
        fake_time_authority,
        default_retry_policy=NO_JITTER,
        sleep=fake_time_authority.sleep,
    )


# =============================================================================
# Retry behaviour
# =============================================================================


class TestExecuteWithRetry:
    """Tests for the retry loop."""

    @pytest.mark.asyncio
    async def test_returns_result_on_first_success(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        operation = FlakyOperation(failures=0)

        result = await registry.execute_with_retry(operation, operation_name="svc")

        assert result == "ok"
        assert operation.calls == 1
        assert fake_time_authority.sleeps == []

    @pytest.mark.asyncio
    async def test_retries_transient_failures_with_backoff(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        """Test that delays follow initial * multiplier^attempt."""
        operation = FlakyOperation(failures=3)

        result = await registry.execute_with_retry(operation, operation_name="svc")

        assert result == "ok"
        assert operation.calls == 4
        assert fake_time_authority.sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_raises_last_error_when_budget_spent(
        self, registry: ResilienceRegistry
    ) -> None:
        operation = FlakyOperation(failures=10)

        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                operation,
                operation_name="svc",
                retry_policy=RetryPolicy(max_retries=2, jitter=False),
            )

        assert operation.calls == 3

    @pytest.mark.asyncio
    async def test_non_retriable_error_fails_immediately(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        operation = FlakyOperation(failures=1, error=ValueError("malformed payload"))

        with pytest.raises(ValueError):
            await registry.execute_with_retry(operation, operation_name="svc")

        assert operation.calls == 1
        assert fake_time_authority.sleeps == []

    @pytest.mark.asyncio
    async def test_per_attempt_timeout(self, registry: ResilienceRegistry) -> None:
        """Test that a slow attempt is cut off and surfaces as a timeout."""

        async def slow() -> str:
            await asyncio.sleep(1)
            return "late"

        with pytest.raises(asyncio.TimeoutError):
            await registry.execute_with_retry(
                slow,
                operation_name="slow",
                retry_policy=RetryPolicy(max_retries=0, timeout_seconds=0.01),
            )


class TestCalculateDelay:
    """Tests for the backoff curve."""

    def test_exponential_growth_and_cap(self, registry: ResilienceRegistry) -> None:
        policy = RetryPolicy(
            initial_delay_seconds=1.0, max_delay_seconds=10.0, jitter=False
        )

        delays = [registry.calculate_delay(i, policy) for i in range(6)]

        assert delays == [1.0, 2.0, 4.0, 8.0, 10.0, 10.0]

    def test_jitter_stays_within_quarter(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        policy = RetryPolicy(initial_delay_seconds=4.0, max_delay_seconds=4.0)
        low = ResilienceRegistry(fake_time_authority, random_source=lambda: 0.0)
        mid = ResilienceRegistry(fake_time_authority, random_source=lambda: 0.5)

        assert low.calculate_delay(0, policy) == pytest.approx(3.0)
        assert mid.calculate_delay(0, policy) == pytest.approx(4.0)

    def test_delay_never_negative(self, registry: ResilienceRegistry) -> None:
        policy = RetryPolicy(initial_delay_seconds=0.0, max_delay_seconds=0.0)

        assert registry.calculate_delay(3, policy) == 0.0


# =============================================================================
# Circuit breaker
# =============================================================================


class TestCircuitBreaker:
    """Tests for per-operation breaker transitions."""

    @pytest.mark.asyncio
    async def test_opens_after_failure_threshold(
        self, registry: ResilienceRegistry
    ) -> None:
        """Test that the breaker rejects without invoking once open."""
        circuit = CircuitPolicy(failure_threshold=3, timeout_seconds=60.0)
        operation = FlakyOperation(failures=100)

        for _ in range(3):
            with pytest.raises(ConnectionError):
                await registry.execute_with_retry(
                    operation,
                    operation_name="mail",
                    retry_policy=SINGLE_ATTEMPT,
                    circuit_policy=circuit,
                )

        with pytest.raises(CircuitOpenError) as exc_info:
            await registry.execute_with_retry(
                operation,
                operation_name="mail",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )

        assert operation.calls == 3
        assert exc_info.value.operation_name == "mail"
        assert exc_info.value.retry_after_seconds == pytest.approx(60.0)
        assert registry.get_circuit_state("mail").state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_breakers_are_independent(self, registry: ResilienceRegistry) -> None:
        circuit = CircuitPolicy(failure_threshold=1)

        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="llm:openai",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )

        result = await registry.execute_with_retry(
            FlakyOperation(failures=0),
            operation_name="llm:anthropic",
            circuit_policy=circuit,
        )

        assert result == "ok"
        assert registry.get_circuit_state("llm:anthropic").state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_closes_after_success_threshold(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        circuit = CircuitPolicy(
            failure_threshold=1, success_threshold=2, timeout_seconds=30.0
        )
        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="docs",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )

        fake_time_authority.advance(seconds=31)
        await registry.execute_with_retry(
            FlakyOperation(failures=0), operation_name="docs", circuit_policy=circuit
        )
        assert registry.get_circuit_state("docs").state == CircuitState.HALF_OPEN

        await registry.execute_with_retry(
            FlakyOperation(failures=0), operation_name="docs", circuit_policy=circuit
        )
        state = registry.get_circuit_state("docs")
        assert state.state == CircuitState.CLOSED
        assert state.failure_count == 0

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        circuit = CircuitPolicy(failure_threshold=1, timeout_seconds=30.0)
        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="docs",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )

        fake_time_authority.advance(seconds=31)
        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="docs",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )

        state = registry.get_circuit_state("docs")
        assert state.state == CircuitState.OPEN
        assert state.next_attempt_time == pytest.approx(
            fake_time_authority.monotonic() + 30.0
        )

    @pytest.mark.asyncio
    async def test_cancelled_trial_frees_half_open_slot(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        """Test that a cancelled half-open trial does not block later calls."""
        circuit = CircuitPolicy(failure_threshold=1, timeout_seconds=30.0)
        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="mail",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )
        fake_time_authority.advance(seconds=31)

        with pytest.raises(asyncio.CancelledError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1, error=asyncio.CancelledError()),
                operation_name="mail",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=circuit,
            )
        fake_time_authority.advance(seconds=3600)

        results = [
            await registry.execute_with_retry(
                FlakyOperation(failures=0), operation_name="mail", circuit_policy=circuit
            )
            for _ in range(2)
        ]

        assert results == ["ok", "ok"]
        assert registry.get_circuit_state("mail").state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_breaker_opening_mid_loop_stops_retries(
        self, registry: ResilienceRegistry
    ) -> None:
        """Test that the retry loop re-checks the breaker before each attempt."""
        circuit = CircuitPolicy(failure_threshold=2, timeout_seconds=60.0)
        operation = FlakyOperation(failures=100)

        with pytest.raises(CircuitOpenError):
            await registry.execute_with_retry(
                operation,
                operation_name="mail",
                retry_policy=RetryPolicy(max_retries=5, jitter=False),
                circuit_policy=circuit,
            )

        assert operation.calls == 2

    @pytest.mark.asyncio
    async def test_old_failures_forgotten_after_monitoring_period(
        self, registry: ResilienceRegistry, fake_time_authority: FakeTimeAuthority
    ) -> None:
        circuit = CircuitPolicy(failure_threshold=3, monitoring_period_seconds=300.0)
        for _ in range(2):
            with pytest.raises(ConnectionError):
                await registry.execute_with_retry(
                    FlakyOperation(failures=1),
                    operation_name="mail",
                    retry_policy=SINGLE_ATTEMPT,
                    circuit_policy=circuit,
                )

        fake_time_authority.advance(seconds=301)
        await registry.execute_with_retry(
            FlakyOperation(failures=0), operation_name="mail", circuit_policy=circuit
        )

        assert registry.get_circuit_state("mail").failure_count == 0

    @pytest.mark.asyncio
    async def test_configured_policy_applies_by_name(
        self, registry: ResilienceRegistry
    ) -> None:
        registry.configure_circuit("mail", CircuitPolicy(failure_threshold=1))

        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="mail",
                retry_policy=SINGLE_ATTEMPT,
            )

        assert registry.get_circuit_state("mail").state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_reset_closes_breaker(self, registry: ResilienceRegistry) -> None:
        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="mail",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=CircuitPolicy(failure_threshold=1),
            )

        registry.reset("mail")

        assert registry.get_circuit_state("mail").state == CircuitState.CLOSED


class TestSnapshotAndMetrics:
    """Tests for monitoring output."""

    @pytest.mark.asyncio
    async def test_snapshot_includes_stats(self, registry: ResilienceRegistry) -> None:
        await registry.execute_with_retry(FlakyOperation(failures=1), operation_name="svc")

        snapshot = registry.snapshot()

        assert snapshot["svc"]["state"] == "CLOSED"
        assert snapshot["svc"]["stats"] == {
            "calls": 2,
            "successes": 1,
            "failures": 1,
            "retries": 1,
            "rejections": 0,
        }

    @pytest.mark.asyncio
    async def test_circuit_state_published_to_metrics(
        self,
        fake_time_authority: FakeTimeAuthority,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "test")
        metrics = PipelineMetrics(registry=CollectorRegistry())
        registry = ResilienceRegistry(
            fake_time_authority, sleep=fake_time_authority.sleep, metrics=metrics
        )

        with pytest.raises(ConnectionError):
            await registry.execute_with_retry(
                FlakyOperation(failures=1),
                operation_name="mail",
                retry_policy=SINGLE_ATTEMPT,
                circuit_policy=CircuitPolicy(failure_threshold=1),
            )

        registry_values = metrics.get_registry()
        assert (
            registry_values.get_sample_value(
                "circuit_breaker_state", {"environment": "test", "operation": "mail"}
            )
            == 2.0
        )
        assert (
            registry_values.get_sample_value(
                "external_call_failures_total",
                {"environment": "test", "operation": "mail", "retriable": "true"},
            )
            == 1.0
        )
