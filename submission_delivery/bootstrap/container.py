"""Dependency wiring for the delivery pipeline.

build_container() assembles every service from a PipelineConfig. With
DATABASE_URL set, PostgreSQL repositories and the real SMTP, document
service and provider adapters are wired; without it, in-memory stubs
stand in so the API and worker run locally (data will not persist).

Any adapter can be overridden by keyword, which is how tests inject
stubs with scripted failures.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import structlog

from submission_delivery.application.ports.admin_notifier import AdminNotifierPort
from submission_delivery.application.ports.delivery_job_repository import (
    DeliveryJobRepositoryPort,
)
from submission_delivery.application.ports.document_generator import (
    DocumentGeneratorPort,
)
from submission_delivery.application.ports.document_repository import (
    DocumentRepositoryPort,
)
from submission_delivery.application.ports.mail_transport import MailTransportPort
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
    TextGenerationProviderPort,
)
from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)
from submission_delivery.application.services.delivery_queue_service import (
    DeliveryQueueService,
)
from submission_delivery.application.services.progress_tracker_service import (
    ProgressTrackerService,
)
from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
    SleepFunc,
)
from submission_delivery.application.services.submission_orchestrator import (
    SubmissionOrchestrator,
)
from submission_delivery.application.services.text_generation_service import (
    TextGenerationService,
)
from submission_delivery.config.pipeline_config import (
    LLMProviderConfig,
    PipelineConfig,
)
from submission_delivery.infrastructure.monitoring.metrics import (
    PipelineMetrics,
    get_pipeline_metrics,
)
from submission_delivery.infrastructure.time_authority import SystemTimeAuthority
from submission_delivery.workers.delivery_worker import DeliveryQueueWorker
from submission_delivery.workers.error_handler import PipelineErrorHandler

logger = structlog.get_logger(__name__)


@dataclass
class PipelineContainer:
    """Every wired component, for the API and the worker."""

    config: PipelineConfig
    time_authority: TimeAuthorityProtocol
    metrics: PipelineMetrics
    submissions: SubmissionRepositoryPort
    projects: ProjectRepositoryPort
    documents: DocumentRepositoryPort
    jobs: DeliveryJobRepositoryPort
    events: ProgressEventRepositoryPort
    templates: TemplateResolverPort
    document_generator: DocumentGeneratorPort
    transport: MailTransportPort
    admin_notifier: AdminNotifierPort
    resilience: ResilienceRegistry
    progress: ProgressTrackerService
    error_handler: PipelineErrorHandler
    text_generation: TextGenerationService
    delivery_queue: DeliveryQueueService
    orchestrator: SubmissionOrchestrator
    worker: DeliveryQueueWorker


def build_providers(config: LLMProviderConfig) -> list[TextGenerationProviderPort]:
    """Build provider adapters in configured order, skipping keyless ones."""
    from submission_delivery.infrastructure.llm import (
        AnthropicProvider,
        OpenAIProvider,
    )

    providers: list[TextGenerationProviderPort] = []
    for name in config.provider_order:
        if name == "openai" and config.openai_api_key:
            providers.append(
                OpenAIProvider(
                    api_key=config.openai_api_key,
                    model=config.openai_model,
                    timeout_seconds=config.timeout_seconds,
                )
            )
        elif name == "anthropic" and config.anthropic_api_key:
            providers.append(
                AnthropicProvider(
                    api_key=config.anthropic_api_key,
                    model=config.anthropic_model,
                    timeout_seconds=config.timeout_seconds,
                )
            )
        else:
            logger.warning("text_provider_not_configured", provider=name)
    return providers


def build_container(
    config: PipelineConfig | None = None,
    *,
    time_authority: TimeAuthorityProtocol | None = None,
    metrics: PipelineMetrics | None = None,
    submissions: SubmissionRepositoryPort | None = None,
    projects: ProjectRepositoryPort | None = None,
    documents: DocumentRepositoryPort | None = None,
    jobs: DeliveryJobRepositoryPort | None = None,
    events: ProgressEventRepositoryPort | None = None,
    templates: TemplateResolverPort | None = None,
    document_generator: DocumentGeneratorPort | None = None,
    transport: MailTransportPort | None = None,
    admin_notifier: AdminNotifierPort | None = None,
    providers: list[TextGenerationProviderPort] | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> PipelineContainer:
    """Wire the pipeline.

    Args:
        config: Pipeline configuration (read from the environment when None).
        time_authority: Clock (system clock when None).
        metrics: Prometheus collector (process-wide collector when None).
        sleep: Awaitable sleep used between in-process retries.
        Remaining keywords override the corresponding adapter.

    Returns:
        A fully wired PipelineContainer.
    """
    config = config or PipelineConfig.from_environment()
    clock = time_authority or SystemTimeAuthority()
    metrics = metrics or get_pipeline_metrics()

    if config.database_url:
        from submission_delivery.bootstrap.database import get_session_factory
        from submission_delivery.infrastructure.documents import HttpDocumentGenerator
        from submission_delivery.infrastructure.mail import SmtpMailTransport
        from submission_delivery.infrastructure.persistence import (
            PostgresDeliveryJobRepository,
            PostgresDocumentRepository,
            PostgresProgressEventRepository,
            PostgresProjectRepository,
            PostgresSubmissionRepository,
            PostgresTemplateResolver,
        )

        session_factory = get_session_factory(config.database_url)
        submissions = submissions or PostgresSubmissionRepository(session_factory)
        projects = projects or PostgresProjectRepository(session_factory)
        documents = documents or PostgresDocumentRepository(session_factory)
        jobs = jobs or PostgresDeliveryJobRepository(session_factory)
        events = events or PostgresProgressEventRepository(session_factory)
        templates = templates or PostgresTemplateResolver(session_factory)
        document_generator = document_generator or HttpDocumentGenerator(
            config.documents
        )
        transport = transport or SmtpMailTransport(config.mail)
        logger.info("pipeline_adapters_initialized", adapter_type="PostgreSQL")
    else:
        from submission_delivery.infrastructure.stubs import (
            DeliveryJobRepositoryStub,
            DocumentGeneratorStub,
            DocumentRepositoryStub,
            MailTransportStub,
            ProgressEventRepositoryStub,
            ProjectRepositoryStub,
            SubmissionRepositoryStub,
            TemplateResolverStub,
        )

        submissions = submissions or SubmissionRepositoryStub()
        projects = projects or ProjectRepositoryStub()
        documents = documents or DocumentRepositoryStub()
        jobs = jobs or DeliveryJobRepositoryStub()
        events = events or ProgressEventRepositoryStub()
        templates = templates or TemplateResolverStub()
        document_generator = document_generator or DocumentGeneratorStub()
        transport = transport or MailTransportStub()
        logger.warning(
            "pipeline_adapters_initialized",
            adapter_type="InMemoryStub",
            message="DATABASE_URL not set - using in-memory stubs (data will not persist)",
        )

    if admin_notifier is None:
        from submission_delivery.infrastructure.monitoring.admin_alert_client import (
            WebhookAdminNotifier,
        )

        admin_notifier = WebhookAdminNotifier(config.admin_alert_webhook_url)

    if providers is None:
        providers = build_providers(config.llm)

    resilience = ResilienceRegistry(
        clock,
        default_retry_policy=config.retry,
        default_circuit_policy=config.circuit,
        sleep=sleep,
        metrics=metrics,
    )
    progress = ProgressTrackerService(
        events,
        submissions,
        clock,
        cache_ttl_seconds=config.progress.cache_ttl_seconds,
    )
    error_handler = PipelineErrorHandler(admin_notifier, clock)
    text_generation = TextGenerationService(
        providers, resilience, content_rules=config.content
    )
    delivery_queue = DeliveryQueueService(
        jobs,
        transport,
        resilience,
        progress,
        clock,
        config=config.queue,
        admin_notifier=admin_notifier,
        metrics=metrics,
    )
    orchestrator = SubmissionOrchestrator(
        submissions=submissions,
        projects=projects,
        documents=documents,
        document_generator=document_generator,
        template_resolver=templates,
        text_generation=text_generation,
        delivery_queue=delivery_queue,
        progress=progress,
        resilience=resilience,
        error_handler=error_handler,
        time_authority=clock,
        content_rules=config.content,
        review_config=config.review,
        queue_config=config.queue,
        metrics=metrics,
    )
    delivery_queue.add_outcome_listener(orchestrator.handle_delivery_outcome)

    worker = DeliveryQueueWorker(
        delivery_queue,
        poll_interval_seconds=config.queue.poll_interval_seconds,
        batch_size=config.queue.batch_size,
        reminder_sender=(
            orchestrator.send_review_reminders if config.review.deadline_days else None
        ),
    )

    return PipelineContainer(
        config=config,
        time_authority=clock,
        metrics=metrics,
        submissions=submissions,
        projects=projects,
        documents=documents,
        jobs=jobs,
        events=events,
        templates=templates,
        document_generator=document_generator,
        transport=transport,
        admin_notifier=admin_notifier,
        resilience=resilience,
        progress=progress,
        error_handler=error_handler,
        text_generation=text_generation,
        delivery_queue=delivery_queue,
        orchestrator=orchestrator,
        worker=worker,
    )


_container: PipelineContainer | None = None


def get_container() -> PipelineContainer:
    """Get the process-wide container, building it on first use."""
    global _container
    if _container is None:
        _container = build_container()
    return _container


def set_container(container: PipelineContainer) -> None:
    """Install a container (tests, custom wiring)."""
    global _container
    _container = container


def reset_container() -> None:
    """Reset container singleton for testing."""
    global _container
    _container = None
