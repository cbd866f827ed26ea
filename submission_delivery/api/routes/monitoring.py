"""Progress and resilience monitoring routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from submission_delivery.api.dependencies import (
    get_progress_tracker,
    get_resilience_registry,
)
from submission_delivery.api.models.monitoring import (
    CircuitsResponse,
    OverviewResponse,
    StaleSubmissionResponse,
    StaleSubmissionsResponse,
    TimelineResponse,
)
from submission_delivery.application.services.progress_tracker_service import (
    ProgressTrackerService,
)
from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)

router = APIRouter(prefix="/v1/monitoring", tags=["monitoring"])


@router.get(
    "/submissions/{submission_id}/timeline",
    response_model=TimelineResponse,
    summary="Ordered progress events of a submission",
)
async def get_timeline(
    submission_id: UUID,
    progress: ProgressTrackerService = Depends(get_progress_tracker),
) -> TimelineResponse:
    timeline = await progress.get_timeline(submission_id)
    return TimelineResponse.from_domain(timeline)


@router.get(
    "/submissions/{submission_id}/overview",
    response_model=OverviewResponse,
    summary="Latest progress event per stage",
)
async def get_overview(
    submission_id: UUID,
    progress: ProgressTrackerService = Depends(get_progress_tracker),
) -> OverviewResponse:
    stages = await progress.get_overview(submission_id)
    return OverviewResponse(submission_id=submission_id, stages=stages)


@router.get(
    "/stale",
    response_model=StaleSubmissionsResponse,
    summary="Non-terminal submissions without recent progress",
)
async def get_stale_submissions(
    minutes: int = Query(default=30, ge=1, le=60 * 24 * 30),
    progress: ProgressTrackerService = Depends(get_progress_tracker),
) -> StaleSubmissionsResponse:
    stale = await progress.find_stale(minutes)
    return StaleSubmissionsResponse(
        inactivity_minutes=minutes,
        submissions=[StaleSubmissionResponse.from_domain(s) for s in stale],
    )


@router.get(
    "/circuits",
    response_model=CircuitsResponse,
    summary="Circuit breaker states and call counters",
)
async def get_circuits(
    resilience: ResilienceRegistry = Depends(get_resilience_registry),
) -> CircuitsResponse:
    return CircuitsResponse(circuits=resilience.snapshot())


@router.post(
    "/circuits/{operation_name}/reset",
    response_model=CircuitsResponse,
    summary="Force a circuit breaker back to CLOSED",
)
async def reset_circuit(
    operation_name: str,
    request: Request,
    resilience: ResilienceRegistry = Depends(get_resilience_registry),
) -> CircuitsResponse:
    circuits = resilience.snapshot()
    if operation_name not in circuits:
        raise HTTPException(
            status_code=404,
            detail={
                "type": "urn:submission-delivery:error:not-found",
                "title": "Unknown Operation",
                "status": 404,
                "detail": f"No circuit registered for {operation_name}",
                "instance": str(request.url),
            },
        )
    resilience.reset(operation_name)
    return CircuitsResponse(circuits=resilience.snapshot())
