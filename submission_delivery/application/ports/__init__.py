"""Application ports: contracts for every external collaborator."""

from submission_delivery.application.ports.admin_notifier import (
    AdminAlert,
    AdminNotifierPort,
    AlertSeverity,
)
from submission_delivery.application.ports.delivery_job_repository import (
    DeliveryJobRepositoryPort,
)
from submission_delivery.application.ports.document_generator import (
    DocumentGeneratorPort,
)
from submission_delivery.application.ports.document_repository import (
    DocumentRepositoryPort,
)
from submission_delivery.application.ports.mail_transport import (
    MailTransportPort,
    SendResult,
)
from submission_delivery.application.ports.progress_event_repository import (
    ProgressEventRepositoryPort,
)
from submission_delivery.application.ports.submission_repository import (
    ProjectRepositoryPort,
    SubmissionRepositoryPort,
)
from submission_delivery.application.ports.template_resolver import (
    TemplateResolverPort,
)
from submission_delivery.application.ports.text_generation_provider import (
    GenerationRequest,
    TextGenerationProviderPort,
)
from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)

__all__ = [
    "AdminAlert",
    "AdminNotifierPort",
    "AlertSeverity",
    "DeliveryJobRepositoryPort",
    "DocumentGeneratorPort",
    "DocumentRepositoryPort",
    "GenerationRequest",
    "MailTransportPort",
    "ProgressEventRepositoryPort",
    "ProjectRepositoryPort",
    "SendResult",
    "SubmissionRepositoryPort",
    "TemplateResolverPort",
    "TextGenerationProviderPort",
    "TimeAuthorityProtocol",
]
