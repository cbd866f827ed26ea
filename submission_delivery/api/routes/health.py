"""Health check endpoint."""

from fastapi import APIRouter, Depends

from submission_delivery.api.dependencies import get_pipeline_container
from submission_delivery.api.models.health import HealthResponse
from submission_delivery.bootstrap.container import PipelineContainer

router = APIRouter(prefix="/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    container: PipelineContainer = Depends(get_pipeline_container),
) -> HealthResponse:
    """Return health status.

    Reports "degraded" while any circuit breaker is open.
    """
    open_circuits = [
        name
        for name, entry in container.resilience.snapshot().items()
        if entry["state"] == "OPEN"
    ]
    return HealthResponse(
        status="degraded" if open_circuits else "healthy",
        environment=container.config.environment,
        open_circuits=open_circuits,
    )
