"""Unit tests for PipelineMetrics."""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from submission_delivery.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
    reset_pipeline_metrics,
)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry, monkeypatch: pytest.MonkeyPatch) -> PipelineMetrics:
    monkeypatch.setenv("ENVIRONMENT", "test")
    return PipelineMetrics(registry=registry)


class TestDeliveryMetrics:
    """Tests for delivery outcome counters."""

    def test_retry_counts_outcome_and_retry(
        self, metrics: PipelineMetrics, registry: CollectorRegistry
    ) -> None:
        metrics.record_delivery("council_submission", "retry")
        metrics.record_delivery("council_submission", "dead_letter")

        labels = {"environment": "test", "job_type": "council_submission"}
        assert registry.get_sample_value(
            "delivery_jobs_total", {**labels, "outcome": "retry"}
        ) == 1.0
        assert registry.get_sample_value("delivery_retries_total", labels) == 1.0
        assert registry.get_sample_value("delivery_dead_letters_total", labels) == 1.0

    def test_queue_depth(
        self, metrics: PipelineMetrics, registry: CollectorRegistry
    ) -> None:
        metrics.set_queue_depth(7)

        assert registry.get_sample_value(
            "delivery_queue_depth", {"environment": "test"}
        ) == 7.0


class TestCircuitMetrics:
    """Tests for circuit state encoding."""

    @pytest.mark.parametrize(
        ("state", "value"), [("CLOSED", 0.0), ("HALF_OPEN", 1.0), ("OPEN", 2.0)]
    )
    def test_state_encoding(
        self,
        metrics: PipelineMetrics,
        registry: CollectorRegistry,
        state: str,
        value: float,
    ) -> None:
        metrics.set_circuit_state("mail_transport", state)

        assert registry.get_sample_value(
            "circuit_breaker_state",
            {"environment": "test", "operation": "mail_transport"},
        ) == value


class TestSingleton:
    """Tests for the process-wide collector."""

    def test_reset_creates_new_instance(self) -> None:
        first = get_pipeline_metrics()
        reset_pipeline_metrics()

        assert get_pipeline_metrics() is not first
        reset_pipeline_metrics()
