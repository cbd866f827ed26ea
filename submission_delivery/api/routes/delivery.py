"""Delivery queue operator routes.

Dead-letter inspection and manual retry, plus an on-demand drain for
deployments that trigger the queue from cron instead of the worker.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from submission_delivery.api.dependencies import (
    get_delivery_queue,
    get_delivery_worker,
    get_error_handler,
    get_orchestrator,
)
from submission_delivery.api.models.delivery import (
    DeadLetterListResponse,
    DeliveryJobResponse,
    DrainResponse,
    QueueStatusResponse,
    RemindersResponse,
    RetryJobRequest,
)
from submission_delivery.api.problem_details import problem_exception
from submission_delivery.application.services.delivery_queue_service import (
    DeliveryQueueService,
)
from submission_delivery.application.services.submission_orchestrator import (
    SubmissionOrchestrator,
)
from submission_delivery.domain.errors.base import DeliveryPipelineError
from submission_delivery.workers.delivery_worker import DeliveryQueueWorker
from submission_delivery.workers.error_handler import PipelineErrorHandler

router = APIRouter(prefix="/v1/delivery", tags=["delivery"])


@router.get(
    "/queue",
    response_model=QueueStatusResponse,
    summary="Number of pending delivery jobs",
)
async def get_queue_status(
    queue: DeliveryQueueService = Depends(get_delivery_queue),
) -> QueueStatusResponse:
    return QueueStatusResponse(pending=await queue.queue_depth())


@router.get(
    "/dead-letters",
    response_model=DeadLetterListResponse,
    summary="List dead-lettered jobs, most recent first",
)
async def list_dead_letters(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    queue: DeliveryQueueService = Depends(get_delivery_queue),
) -> DeadLetterListResponse:
    jobs, total = await queue.list_dead_letters(limit=limit, offset=offset)
    return DeadLetterListResponse(
        jobs=[DeliveryJobResponse.from_domain(job) for job in jobs],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/jobs/{job_id}",
    response_model=DeliveryJobResponse,
    summary="Get one delivery job",
)
async def get_job(
    job_id: UUID,
    request: Request,
    queue: DeliveryQueueService = Depends(get_delivery_queue),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> DeliveryJobResponse:
    try:
        job = await queue.get_job(job_id)
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return DeliveryJobResponse.from_domain(job)


@router.post(
    "/jobs/{job_id}/retry",
    response_model=DeliveryJobResponse,
    summary="Re-queue a dead-lettered job",
)
async def retry_job(
    job_id: UUID,
    request: Request,
    body: RetryJobRequest | None = None,
    queue: DeliveryQueueService = Depends(get_delivery_queue),
    error_handler: PipelineErrorHandler = Depends(get_error_handler),
) -> DeliveryJobResponse:
    actor = body.actor if body else "operator"
    try:
        job = await queue.retry_dead_letter(job_id, actor=actor)
    except DeliveryPipelineError as e:
        raise problem_exception(e, request, error_handler) from None
    return DeliveryJobResponse.from_domain(job)


@router.post(
    "/drain",
    response_model=DrainResponse,
    summary="Run one delivery cycle now",
)
async def drain_queue(
    worker: DeliveryQueueWorker = Depends(get_delivery_worker),
) -> DrainResponse:
    result = await worker.run_once()
    return DrainResponse.from_result(result)


@router.post(
    "/reminders",
    response_model=RemindersResponse,
    summary="Queue reminders for reviews nearing their deadline",
)
async def send_reminders(
    orchestrator: SubmissionOrchestrator = Depends(get_orchestrator),
) -> RemindersResponse:
    return RemindersResponse(queued=await orchestrator.send_review_reminders())
