"""Prometheus metrics for the delivery pipeline.

Operational metrics only: delivery outcomes, retries, dead letters,
circuit breaker state and external call failures. Each collector owns
its registry so tests can create isolated instances.
"""

import os
import threading

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

# Content type for Prometheus metrics endpoint
METRICS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_collector_lock = threading.Lock()

# Gauge encoding of circuit states
CIRCUIT_STATE_VALUES = {"CLOSED": 0, "HALF_OPEN": 1, "OPEN": 2}


class PipelineMetrics:
    """Collects delivery pipeline metrics.

    Attributes:
        deliveries_total: Delivery attempts by job type and outcome.
        delivery_retries_total: Jobs rescheduled after a failed send.
        dead_letters_total: Jobs dead-lettered after exhausting retries.
        queue_depth: Pending jobs observed at the last drain.
        circuit_state: Circuit state per operation (0 closed, 1 half-open, 2 open).
        external_call_failures_total: Failed attempts per guarded operation.
        submissions_processed_total: Pathway runs by outcome.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics.

        Args:
            registry: Optional custom registry for testing isolation.
        """
        self._registry = registry or CollectorRegistry()
        self._environment = os.environ.get("ENVIRONMENT", "development")

        self.deliveries_total = Counter(
            name="delivery_jobs_total",
            documentation="Delivery job send attempts by outcome",
            labelnames=["environment", "job_type", "outcome"],
            registry=self._registry,
        )
        self.delivery_retries_total = Counter(
            name="delivery_retries_total",
            documentation="Delivery jobs rescheduled after a failed send",
            labelnames=["environment", "job_type"],
            registry=self._registry,
        )
        self.dead_letters_total = Counter(
            name="delivery_dead_letters_total",
            documentation="Delivery jobs dead-lettered after exhausting retries",
            labelnames=["environment", "job_type"],
            registry=self._registry,
        )
        self.queue_depth = Gauge(
            name="delivery_queue_depth",
            documentation="Pending delivery jobs at the last drain",
            labelnames=["environment"],
            registry=self._registry,
        )
        self.circuit_state = Gauge(
            name="circuit_breaker_state",
            documentation="Circuit state (0 closed, 1 half-open, 2 open)",
            labelnames=["environment", "operation"],
            registry=self._registry,
        )
        self.external_call_failures_total = Counter(
            name="external_call_failures_total",
            documentation="Failed attempts against guarded dependencies",
            labelnames=["environment", "operation", "retriable"],
            registry=self._registry,
        )
        self.submissions_processed_total = Counter(
            name="submissions_processed_total",
            documentation="Pathway runs by outcome",
            labelnames=["environment", "pathway", "outcome"],
            registry=self._registry,
        )

    def record_delivery(self, job_type: str, outcome: str) -> None:
        """Count a send attempt outcome (sent, retry, dead_letter)."""
        self.deliveries_total.labels(
            environment=self._environment, job_type=job_type, outcome=outcome
        ).inc()
        if outcome == "retry":
            self.delivery_retries_total.labels(
                environment=self._environment, job_type=job_type
            ).inc()
        elif outcome == "dead_letter":
            self.dead_letters_total.labels(
                environment=self._environment, job_type=job_type
            ).inc()

    def set_queue_depth(self, depth: int) -> None:
        """Record pending queue depth."""
        self.queue_depth.labels(environment=self._environment).set(depth)

    def set_circuit_state(self, operation: str, state: str) -> None:
        """Record a circuit state change."""
        self.circuit_state.labels(
            environment=self._environment, operation=operation
        ).set(CIRCUIT_STATE_VALUES.get(state, 0))

    def record_external_failure(self, operation: str, retriable: bool) -> None:
        """Count a failed attempt against a guarded dependency."""
        self.external_call_failures_total.labels(
            environment=self._environment,
            operation=operation,
            retriable=str(retriable).lower(),
        ).inc()

    def record_submission(self, pathway: str, outcome: str) -> None:
        """Count a pathway outcome (success, submitted, error)."""
        self.submissions_processed_total.labels(
            environment=self._environment, pathway=pathway, outcome=outcome
        ).inc()

    def get_registry(self) -> CollectorRegistry:
        """Get the collector registry."""
        return self._registry


_pipeline_metrics: PipelineMetrics | None = None


def get_pipeline_metrics() -> PipelineMetrics:
    """Get the singleton PipelineMetrics instance (thread-safe)."""
    global _pipeline_metrics
    if _pipeline_metrics is None:
        with _collector_lock:
            if _pipeline_metrics is None:
                _pipeline_metrics = PipelineMetrics()
    return _pipeline_metrics


def generate_metrics() -> bytes:
    """Generate Prometheus metrics in exposition format."""
    return generate_latest(get_pipeline_metrics().get_registry())


def reset_pipeline_metrics() -> None:
    """Reset the singleton collector (for testing only)."""
    global _pipeline_metrics
    with _collector_lock:
        _pipeline_metrics = None
