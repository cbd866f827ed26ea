"""FastAPI dependency providers.

Every provider reads from the process-wide PipelineContainer, so tests
swap the whole wiring with set_container().
"""

from __future__ import annotations

from submission_delivery.application.services.delivery_queue_service import (
    DeliveryQueueService,
)
from submission_delivery.application.services.progress_tracker_service import (
    ProgressTrackerService,
)
from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)
from submission_delivery.application.services.submission_orchestrator import (
    SubmissionOrchestrator,
)
from submission_delivery.bootstrap.container import PipelineContainer, get_container
from submission_delivery.workers.delivery_worker import DeliveryQueueWorker
from submission_delivery.workers.error_handler import PipelineErrorHandler


def get_pipeline_container() -> PipelineContainer:
    return get_container()


def get_orchestrator() -> SubmissionOrchestrator:
    return get_container().orchestrator


def get_delivery_queue() -> DeliveryQueueService:
    return get_container().delivery_queue


def get_delivery_worker() -> DeliveryQueueWorker:
    return get_container().worker


def get_progress_tracker() -> ProgressTrackerService:
    return get_container().progress


def get_resilience_registry() -> ResilienceRegistry:
    return get_container().resilience


def get_error_handler() -> PipelineErrorHandler:
    return get_container().error_handler


__all__ = [
    "get_delivery_queue",
    "get_delivery_worker",
    "get_error_handler",
    "get_orchestrator",
    "get_pipeline_container",
    "get_progress_tracker",
    "get_resilience_registry",
]
