"""Configuration for the submission delivery pipeline."""

from submission_delivery.config.pipeline_config import (
    DeliveryQueueConfig,
    DocumentServiceConfig,
    LLMProviderConfig,
    MailConfig,
    PipelineConfig,
    ProgressConfig,
    ReviewConfig,
)

__all__ = [
    "DeliveryQueueConfig",
    "DocumentServiceConfig",
    "LLMProviderConfig",
    "MailConfig",
    "PipelineConfig",
    "ProgressConfig",
    "ReviewConfig",
]
