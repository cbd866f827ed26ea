"""PostgreSQL adapters (SQLAlchemy async)."""

from submission_delivery.infrastructure.persistence.delivery_job_repository import (
    PostgresDeliveryJobRepository,
)
from submission_delivery.infrastructure.persistence.document_repository import (
    PostgresDocumentRepository,
)
from submission_delivery.infrastructure.persistence.progress_event_repository import (
    PostgresProgressEventRepository,
)
from submission_delivery.infrastructure.persistence.submission_repository import (
    PostgresProjectRepository,
    PostgresSubmissionRepository,
)
from submission_delivery.infrastructure.persistence.template_resolver import (
    PostgresTemplateResolver,
)

__all__ = [
    "PostgresDeliveryJobRepository",
    "PostgresDocumentRepository",
    "PostgresProgressEventRepository",
    "PostgresProjectRepository",
    "PostgresSubmissionRepository",
    "PostgresTemplateResolver",
]
