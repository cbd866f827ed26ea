"""Metrics endpoint for Prometheus scraping."""

from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest

from submission_delivery.api.dependencies import get_pipeline_container
from submission_delivery.bootstrap.container import PipelineContainer
from submission_delivery.infrastructure.monitoring.metrics import METRICS_CONTENT_TYPE

router = APIRouter(prefix="/v1", tags=["metrics"])


@router.get(
    "/metrics",
    summary="Prometheus metrics endpoint",
    response_class=Response,
    responses={
        200: {
            "description": "Metrics in Prometheus format",
            "content": {"text/plain": {}},
        }
    },
)
async def get_metrics(
    container: PipelineContainer = Depends(get_pipeline_container),
) -> Response:
    """Delivery, circuit and submission metrics in exposition format."""
    output = generate_latest(container.metrics.get_registry())
    return Response(content=output, media_type=METRICS_CONTENT_TYPE)
