"""Operational monitoring: Prometheus metrics and operator alerts."""

from submission_delivery.infrastructure.monitoring.admin_alert_client import (
    WebhookAdminNotifier,
)
from submission_delivery.infrastructure.monitoring.metrics import (
    METRICS_CONTENT_TYPE,
    PipelineMetrics,
    generate_metrics,
    get_pipeline_metrics,
    reset_pipeline_metrics,
)

__all__ = [
    "METRICS_CONTENT_TYPE",
    "PipelineMetrics",
    "WebhookAdminNotifier",
    "generate_metrics",
    "get_pipeline_metrics",
    "reset_pipeline_metrics",
]
