"""Pathway orchestrator.

Drives one submission from intake to its pathway outcome:

    direct  generate text -> cover + grounds documents -> PDFs ->
            council email queued (status stays PROCESSING until the
            delivery queue reports the email sent -> SUBMITTED)
    review  generate text -> one editable document -> review link queued
            -> AWAITING_REVIEW; finalize_and_submit() later re-validates
            the edited text and queues the council email
    draft   generate text -> one editable document -> draft pack queued
            -> DRAFT_SENT

Steps for one submission run strictly in order. Every external call goes
through the resilience registry; the orchestrator itself never retries.
Any failure after the submission entered PROCESSING moves it to ERROR,
records a failed progress event, is classified by the error handler and
is re-raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

import structlog

from submission_delivery.application.ports.document_generator import (
    DocumentGeneratorPort,
)
from submission_delivery.application.ports.document_repository import (
    DocumentRepositoryPort,
)
from submission_delivery.application.ports.submission_repository import (
    ProjectRepositoryPort,
    SubmissionRepositoryPort,
)
from submission_delivery.application.ports.template_resolver import (
    TemplateResolverPort,
)
from submission_delivery.application.ports.time_authority import (
    TimeAuthorityProtocol,
)
from submission_delivery.application.services.delivery_queue_service import (
    DeliveryQueueService,
)
from submission_delivery.application.services.email_templates import (
    APPLICANT_COPY_BODY,
    APPLICANT_COPY_SUBJECT,
    COUNCIL_EMAIL_BODY,
    DEFAULT_INFO_PACK,
    DEFAULT_SENDER_NAME,
    DRAFT_EMAIL_BODY,
    DRAFT_SUBJECT,
    REMINDER_EMAIL_BODY,
    REMINDER_SUBJECT,
    REVIEW_EMAIL_BODY,
    REVIEW_SUBJECT,
    render_template,
    safe_filename_part,
    submission_placeholders,
)
from submission_delivery.application.services.progress_tracker_service import (
    ProgressTrackerService,
)
from submission_delivery.application.services.resilience_registry import (
    ResilienceRegistry,
)
from submission_delivery.application.services.text_generation_service import (
    GenerationContext,
    TextGenerationService,
)
from submission_delivery.config.pipeline_config import (
    DeliveryQueueConfig,
    ReviewConfig,
)
from submission_delivery.domain.errors.content import (
    ContentRejectedError,
    MissingSubmissionTextError,
)
from submission_delivery.domain.errors.submission import (
    DocumentNotFoundError,
    DuplicateProcessingError,
    InvalidDocumentStatusError,
    InvalidSubmissionTransitionError,
    ProjectNotFoundError,
    ReviewAlreadyFinalizedError,
    SubmissionNotFoundError,
    TemplateNotConfiguredError,
)
from submission_delivery.domain.models.delivery_job import (
    Attachment,
    DeliveryJob,
    DeliveryJobType,
    EmailPayload,
    JobFailed,
    JobSent,
)
from submission_delivery.domain.models.document import (
    ActiveTemplate,
    Document,
    DocumentReviewSummary,
    DocumentStatus,
    DocumentType,
    GeneratedDocument,
)
from submission_delivery.domain.models.progress import ProgressStage, ProgressStatus
from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import (
    Pathway,
    Submission,
    SubmissionStatus,
    can_transition,
)
from submission_delivery.domain.services.content_validator import (
    ContentRules,
    sanitize_and_validate,
)
from submission_delivery.infrastructure.monitoring.metrics import PipelineMetrics
from submission_delivery.workers.error_handler import PipelineErrorHandler

logger = structlog.get_logger(__name__)

DOCUMENT_SERVICE = "document_service"
SINGLE_DOCUMENT_TEMPLATE = "grounds"

# Forward-only document lifecycle; FINALIZED and APPROVED share a rank.
_DOCUMENT_STATUS_RANK: dict[DocumentStatus, int] = {
    DocumentStatus.CREATED: 0,
    DocumentStatus.USER_EDITING: 1,
    DocumentStatus.FINALIZED: 2,
    DocumentStatus.APPROVED: 2,
    DocumentStatus.SUBMITTED: 3,
}


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of processing or finalising a submission.

    Attributes:
        submission_id: The submission.
        pathway: Its pathway.
        status: Status after the call.
        documents: Documents created or updated.
        job_id: Delivery job queued by the call, if any.
        edit_url: Link the citizen edits the document at (review/draft).
        ai_provider: Provider that generated the text, if any.
    """

    submission_id: UUID
    pathway: Pathway
    status: SubmissionStatus
    documents: tuple[Document, ...] = field(default_factory=tuple)
    job_id: UUID | None = None
    edit_url: str | None = None
    ai_provider: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "submission_id": str(self.submission_id),
            "pathway": self.pathway.value,
            "status": self.status.value,
            "documents": [d.to_dict() for d in self.documents],
            "job_id": str(self.job_id) if self.job_id else None,
            "edit_url": self.edit_url,
            "ai_provider": self.ai_provider,
        }


class SubmissionOrchestrator:
    """Runs submissions through their pathway."""

    def __init__(
        self,
        submissions: SubmissionRepositoryPort,
        projects: ProjectRepositoryPort,
        documents: DocumentRepositoryPort,
        document_generator: DocumentGeneratorPort,
        template_resolver: TemplateResolverPort,
        text_generation: TextGenerationService,
        delivery_queue: DeliveryQueueService,
        progress: ProgressTrackerService,
        resilience: ResilienceRegistry,
        error_handler: PipelineErrorHandler,
        time_authority: TimeAuthorityProtocol,
        content_rules: ContentRules | None = None,
        review_config: ReviewConfig | None = None,
        queue_config: DeliveryQueueConfig | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self._submissions = submissions
        self._projects = projects
        self._documents = documents
        self._generator = document_generator
        self._templates = template_resolver
        self._text = text_generation
        self._queue = delivery_queue
        self._progress = progress
        self._resilience = resilience
        self._errors = error_handler
        self._time = time_authority
        self._rules = content_rules or ContentRules()
        self._review = review_config or ReviewConfig()
        self._queue_config = queue_config or DeliveryQueueConfig()
        self._metrics = metrics
        self._log = logger.bind(component="submission_orchestrator")

    # =========================================================================
    # Processing
    # =========================================================================

    async def process_submission(
        self,
        submission_id: UUID,
        *,
        text: str | None = None,
        concerns: tuple[str, ...] = (),
        custom_grounds: str | None = None,
        allow_redo: bool = False,
    ) -> WorkflowResult:
        """Run a submission through its pathway.

        Args:
            submission_id: Submission to process.
            text: Citizen-supplied text; validated, skips generation.
            concerns: Selected concerns used to prompt generation.
            custom_grounds: Extra grounds the citizen wrote.
            allow_redo: Operator override to process a submission that
                already has documents (or reset one in ERROR).

        Returns:
            WorkflowResult describing the pathway outcome.

        Raises:
            SubmissionNotFoundError: Unknown submission.
            ProjectNotFoundError: Submission references an unknown project.
            DuplicateProcessingError: Documents exist and allow_redo is False.
            InvalidSubmissionTransitionError: Submission is not NEW.
            Exception: Any failure of a pathway step (submission -> ERROR).
        """
        submission, project = await self._load(submission_id)
        log = self._log.bind(submission_id=str(submission_id), pathway=submission.pathway.value)

        existing = await self._documents.list_for_submission(submission_id)
        if existing and not allow_redo:
            raise DuplicateProcessingError(submission_id, len(existing))

        now = self._time.now()
        if allow_redo:
            log.warning("submission_redo_requested", existing_documents=len(existing))
            if submission.status == SubmissionStatus.ERROR:
                submission = submission.reset_for_reprocessing(now)

        submission = submission.with_status(SubmissionStatus.PROCESSING, now)
        await self._submissions.save(submission)
        await self._progress.record_event(
            submission_id,
            ProgressStage.SUBMISSION_CREATED,
            ProgressStatus.IN_PROGRESS,
            metadata={"pathway": submission.pathway.value, "redo": allow_redo},
        )
        log.info("submission_processing_started")

        stage = ProgressStage.AI_GENERATION
        try:
            body, provider = await self._resolve_text(
                submission, project, text, concerns, custom_grounds
            )
            submission = submission.with_changes(
                self._time.now(),
                generated_text=body,
                ai_provider=provider or submission.ai_provider,
            )
            await self._submissions.save(submission)

            stage = ProgressStage.DOCUMENT_GENERATION
            if submission.pathway == Pathway.DIRECT:
                result = await self._process_direct(submission, project)
            elif submission.pathway == Pathway.REVIEW:
                result = await self._process_review(submission, project)
            else:
                result = await self._process_draft(submission, project)
        except Exception as error:
            await self._fail(submission, error, stage, operation="process_submission")
            raise

        self._record_submission_metric(result.pathway, "success")
        log.info("submission_processed", status=result.status.value)
        return result

    async def _resolve_text(
        self,
        submission: Submission,
        project: Project,
        text: str | None,
        concerns: tuple[str, ...],
        custom_grounds: str | None,
    ) -> tuple[str, str | None]:
        """Pick the submission body and validate it.

        Order: caller text, text already on the submission, generation
        (when the project enables it), then the citizen's own concerns.
        """
        if text is not None:
            return sanitize_and_validate(text, self._rules), None
        if submission.generated_text:
            return sanitize_and_validate(submission.generated_text, self._rules), None

        if project.enable_ai_generation:
            await self._progress.record_event(
                submission.id, ProgressStage.AI_GENERATION, ProgressStatus.IN_PROGRESS
            )
            generated = await self._text.generate(
                GenerationContext(
                    council_name=project.council_name,
                    site_address=submission.site_address,
                    application_number=(
                        submission.application_number
                        or project.default_application_number
                    ),
                    concerns=tuple(concerns),
                    custom_grounds=custom_grounds,
                ),
                submission_id=submission.id,
            )
            await self._progress.record_event(
                submission.id,
                ProgressStage.AI_GENERATION,
                ProgressStatus.COMPLETED,
                metadata={"provider": generated.provider},
            )
            return generated.text, generated.provider

        parts = [c.strip() for c in concerns if c.strip()]
        if custom_grounds and custom_grounds.strip():
            parts.append(custom_grounds.strip())
        if not parts:
            raise MissingSubmissionTextError()
        return sanitize_and_validate("\n\n".join(parts), self._rules), None

    async def _process_direct(
        self, submission: Submission, project: Project
    ) -> WorkflowResult:
        await self._progress.record_event(
            submission.id, ProgressStage.DOCUMENT_GENERATION, ProgressStatus.IN_PROGRESS
        )
        # Resolve both templates before creating anything
        cover_template = await self._resolve_template(project, DocumentType.COVER.value)
        grounds_template = await self._resolve_template(project, DocumentType.GROUNDS.value)

        placeholders = self._placeholders(submission, project)
        site = safe_filename_part(submission.site_address)
        cover = await self._create_document(
            submission, cover_template, placeholders, f"DA Cover - {submission.site_address}"
        )
        grounds = await self._create_document(
            submission, grounds_template, placeholders, f"DA Grounds - {submission.site_address}"
        )
        cover_pdf = await self._export_pdf(submission, cover.document_id)
        grounds_pdf = await self._export_pdf(submission, grounds.document_id)

        documents = [
            self._document_record(
                submission, cover, cover_template, DocumentType.COVER,
                DocumentStatus.FINALIZED,
            ),
            self._document_record(
                submission, grounds, grounds_template, DocumentType.GROUNDS,
                DocumentStatus.FINALIZED,
            ),
        ]
        await self._documents.save_many(documents)
        await self._progress.record_event(
            submission.id,
            ProgressStage.DOCUMENT_GENERATION,
            ProgressStatus.COMPLETED,
            metadata={"document_count": len(documents)},
        )

        submission, job = await self._queue_council_email(
            submission,
            project,
            placeholders,
            (
                Attachment(filename=f"DA_Cover_{site}.pdf", content=cover_pdf),
                Attachment(filename=f"DA_Grounds_{site}.pdf", content=grounds_pdf),
            ),
        )

        return WorkflowResult(
            submission_id=submission.id,
            pathway=submission.pathway,
            status=submission.status,
            documents=tuple(documents),
            job_id=job.id,
            ai_provider=submission.ai_provider,
        )

    async def _process_review(
        self, submission: Submission, project: Project
    ) -> WorkflowResult:
        document, generated = await self._create_single_document(
            submission, project, DocumentStatus.USER_EDITING
        )

        now = self._time.now()
        deadline = (
            now + timedelta(days=self._review.deadline_days)
            if self._review.deadline_days > 0
            else None
        )
        values = self._placeholders(submission, project)
        values["edit_url"] = generated.edit_url
        values["deadline_line"] = (
            f"\nPlease finalise your submission before {deadline:%d %B %Y}.\n"
            if deadline
            else ""
        )
        # Saved before the link is queued so a dead-lettered link can still
        # move the submission to ERROR
        submission = submission.with_status(
            SubmissionStatus.AWAITING_REVIEW,
            now,
            review_started_at=now,
            review_deadline=deadline,
        )
        await self._submissions.save(submission)
        job = await self._queue.enqueue(
            DeliveryJobType.REVIEW_LINK,
            self._applicant_payload(submission, project, REVIEW_SUBJECT, REVIEW_EMAIL_BODY, values),
            submission_id=submission.id,
        )
        await self._progress.record_event(
            submission.id,
            ProgressStage.REVIEW_PREPARATION,
            ProgressStatus.COMPLETED,
            metadata={"job_id": str(job.id)},
        )
        await self._progress.record_event(
            submission.id,
            ProgressStage.USER_REVIEW,
            ProgressStatus.IN_PROGRESS,
            metadata={"deadline": deadline.isoformat() if deadline else None},
        )

        return WorkflowResult(
            submission_id=submission.id,
            pathway=submission.pathway,
            status=submission.status,
            documents=(document,),
            job_id=job.id,
            edit_url=generated.edit_url,
            ai_provider=submission.ai_provider,
        )

    async def _process_draft(
        self, submission: Submission, project: Project
    ) -> WorkflowResult:
        document, generated = await self._create_single_document(
            submission, project, DocumentStatus.CREATED
        )

        values = self._placeholders(submission, project)
        values["edit_url"] = generated.edit_url
        values["info_pack"] = project.info_pack or DEFAULT_INFO_PACK
        job = await self._queue.enqueue(
            DeliveryJobType.DRAFT_PACK,
            self._applicant_payload(submission, project, DRAFT_SUBJECT, DRAFT_EMAIL_BODY, values),
            submission_id=submission.id,
        )

        submission = submission.with_status(SubmissionStatus.DRAFT_SENT, self._time.now())
        await self._submissions.save(submission)

        return WorkflowResult(
            submission_id=submission.id,
            pathway=submission.pathway,
            status=submission.status,
            documents=(document,),
            job_id=job.id,
            edit_url=generated.edit_url,
            ai_provider=submission.ai_provider,
        )

    # =========================================================================
    # Review pathway
    # =========================================================================

    async def finalize_and_submit(
        self, submission_id: UUID, notify_applicant: bool = False
    ) -> WorkflowResult:
        """Validate the citizen's edited document and queue it for the council.

        The submission stays AWAITING_REVIEW until the council email is
        delivered; the delivery outcome hook then marks it SUBMITTED.

        Raises:
            InvalidSubmissionTransitionError: Not a review submission
                awaiting review.
            ReviewAlreadyFinalizedError: The council email is already queued.
            DocumentNotFoundError: No document exists for the submission.
            ContentRejectedError: The edited text fails validation; the
                submission stays AWAITING_REVIEW so the citizen can fix it.
        """
        submission, project = await self._load(submission_id)
        if (
            submission.pathway != Pathway.REVIEW
            or submission.status != SubmissionStatus.AWAITING_REVIEW
        ):
            raise InvalidSubmissionTransitionError(
                submission_id=submission_id,
                pathway=submission.pathway.value,
                current=submission.status.value,
                target=SubmissionStatus.SUBMITTED.value,
            )
        if submission.council_job_id is not None:
            raise ReviewAlreadyFinalizedError(submission_id)

        document = await self._editable_document(submission_id)
        log = self._log.bind(submission_id=str(submission_id))

        stage = ProgressStage.USER_REVIEW
        try:
            edited = await self._resilience.execute_with_retry(
                lambda: self._generator.get_document_text(document.external_document_id),
                operation_name=DOCUMENT_SERVICE,
                submission_id=submission_id,
            )
            try:
                body = sanitize_and_validate(edited, self._rules)
            except ContentRejectedError as rejection:
                await self._progress.record_event(
                    submission_id,
                    ProgressStage.USER_REVIEW,
                    ProgressStatus.FAILED,
                    metadata={"reason": rejection.reason, "detail": str(rejection)},
                )
                log.info("finalize_rejected_content", reason=rejection.reason)
                raise

            pdf = await self._export_pdf(submission, document.external_document_id)
            now = self._time.now()
            document = document.with_status(DocumentStatus.FINALIZED, now)
            await self._documents.save_many([document])
            submission = submission.with_changes(
                now, generated_text=body, review_completed_at=now
            )
            await self._submissions.save(submission)
            await self._progress.record_event(
                submission_id, ProgressStage.USER_REVIEW, ProgressStatus.COMPLETED
            )

            stage = ProgressStage.COUNCIL_EMAIL
            values = self._placeholders(submission, project, body)
            attachment = Attachment(
                filename=f"DA_Submission_{safe_filename_part(submission.site_address)}.pdf",
                content=pdf,
            )
            submission, job = await self._queue_council_email(
                submission, project, values, (attachment,)
            )

            if notify_applicant:
                await self._queue.enqueue(
                    DeliveryJobType.APPLICANT_COPY,
                    self._applicant_payload(
                        submission,
                        project,
                        APPLICANT_COPY_SUBJECT,
                        APPLICANT_COPY_BODY,
                        values,
                        attachments=(attachment,),
                    ),
                    submission_id=submission_id,
                )
        except ContentRejectedError:
            raise
        except Exception as error:
            await self._fail(submission, error, stage, operation="finalize_and_submit")
            raise

        log.info("submission_finalized", job_id=str(job.id))
        return WorkflowResult(
            submission_id=submission_id,
            pathway=submission.pathway,
            status=submission.status,
            documents=(document,),
            job_id=job.id,
            edit_url=document.edit_url,
            ai_provider=submission.ai_provider,
        )

    async def send_review_reminders(self) -> int:
        """Queue reminders for reviews whose deadline is near.

        A submission is reminded at most once. A failure for one
        submission is logged and does not stop the others.

        Returns:
            Number of reminders queued.
        """
        now = self._time.now()
        lead = timedelta(hours=self._review.reminder_lead_hours)
        candidates = await self._submissions.list_by_status(
            (SubmissionStatus.AWAITING_REVIEW,)
        )

        sent = 0
        for submission in candidates:
            if not submission.review_due_within(now, lead):
                continue
            try:
                project = await self._projects.get(submission.project_id)
                if project is None:
                    raise ProjectNotFoundError(submission.project_id)
                document = await self._editable_document(submission.id)
                values = self._placeholders(submission, project)
                values["edit_url"] = document.edit_url or ""
                values["review_deadline"] = f"{submission.review_deadline:%d %B %Y}"
                await self._queue.enqueue(
                    DeliveryJobType.REVIEW_REMINDER,
                    self._applicant_payload(
                        submission, project, REMINDER_SUBJECT, REMINDER_EMAIL_BODY, values
                    ),
                    submission_id=submission.id,
                )
                await self._submissions.save(
                    submission.with_changes(now, review_reminder_sent_at=now)
                )
                sent += 1
            except Exception as error:
                await self._errors.handle(
                    error, operation="send_review_reminder", submission_id=submission.id
                )

        if sent:
            self._log.info("review_reminders_queued", count=sent)
        return sent

    # =========================================================================
    # Documents
    # =========================================================================

    async def get_document_status(self, submission_id: UUID) -> DocumentReviewSummary:
        """Submission status together with its documents."""
        submission = await self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        documents = await self._documents.list_for_submission(submission_id)
        return DocumentReviewSummary(
            submission_id=submission_id,
            submission_status=submission.status.value,
            pathway=submission.pathway.value,
            documents=tuple(documents),
            review_started_at=submission.review_started_at,
            review_completed_at=submission.review_completed_at,
            review_deadline=submission.review_deadline,
        )

    async def update_document_status(
        self, submission_id: UUID, status: DocumentStatus
    ) -> list[Document]:
        """Move a submission's documents forward in their lifecycle.

        Documents already at the target status are left as they are.
        Review timestamps are stamped on the submission as well.

        Raises:
            SubmissionNotFoundError: Unknown submission.
            DocumentNotFoundError: The submission has no documents.
            InvalidDocumentStatusError: A document would move backwards.
        """
        submission = await self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        documents = await self._documents.list_for_submission(submission_id)
        if not documents:
            raise DocumentNotFoundError(submission_id)

        target_rank = _DOCUMENT_STATUS_RANK[status]
        for document in documents:
            if _DOCUMENT_STATUS_RANK[document.status] > target_rank:
                raise InvalidDocumentStatusError(
                    submission_id, document.status.value, status.value
                )

        now = self._time.now()
        updated = [
            d if d.status == status else d.with_status(status, now) for d in documents
        ]
        await self._documents.save_many(updated)

        changes: dict[str, Any] = {}
        if status == DocumentStatus.USER_EDITING and submission.review_started_at is None:
            changes["review_started_at"] = now
        if status in (DocumentStatus.FINALIZED, DocumentStatus.APPROVED):
            changes["review_completed_at"] = submission.review_completed_at or now
        if changes:
            await self._submissions.save(submission.with_changes(now, **changes))

        if status == DocumentStatus.USER_EDITING:
            await self._progress.record_event(
                submission_id, ProgressStage.USER_REVIEW, ProgressStatus.IN_PROGRESS
            )
        elif status in (DocumentStatus.FINALIZED, DocumentStatus.APPROVED):
            await self._progress.record_event(
                submission_id,
                ProgressStage.USER_REVIEW,
                ProgressStatus.COMPLETED,
                metadata={"document_status": status.value},
            )
        return updated

    async def validate_document_for_submission(
        self, submission_id: UUID
    ) -> tuple[bool, list[str]]:
        """Check whether the edited document would pass finalisation.

        Returns:
            Tuple of (is_valid, issues).
        """
        submission = await self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)

        issues: list[str] = []
        if submission.status != SubmissionStatus.AWAITING_REVIEW:
            issues.append(f"Submission is {submission.status.value}, not awaiting review")

        documents = await self._documents.list_for_submission(submission_id)
        if not documents:
            issues.append("No document found for submission")
            return False, issues

        document = next((d for d in documents if d.doc_type is None), documents[-1])
        text = await self._resilience.execute_with_retry(
            lambda: self._generator.get_document_text(document.external_document_id),
            operation_name=DOCUMENT_SERVICE,
            submission_id=submission_id,
        )
        if not text.strip():
            issues.append("Document is empty")
        else:
            try:
                sanitize_and_validate(text, self._rules)
            except ContentRejectedError as rejection:
                issues.append(str(rejection))

        return not issues, issues

    # =========================================================================
    # Delivery outcomes
    # =========================================================================

    async def handle_delivery_outcome(self, job: DeliveryJob) -> None:
        """React to a delivery job reaching Sent or Failed.

        Council email sent -> SUBMITTED with confirmation id and documents
        marked submitted. Council email or review link dead-lettered ->
        ERROR. Every other outcome is informational only.
        """
        if job.submission_id is None:
            return
        submission = await self._submissions.get(job.submission_id)
        if submission is None:
            self._log.warning("delivery_outcome_unknown_submission", job_id=str(job.id))
            return
        log = self._log.bind(
            submission_id=str(submission.id),
            job_id=str(job.id),
            job_type=job.job_type.value,
        )
        now = self._time.now()

        if isinstance(job.state, JobSent) and job.job_type.is_council_bound:
            if not can_transition(
                submission.pathway, submission.status, SubmissionStatus.SUBMITTED
            ):
                log.info("delivery_outcome_ignored", status=submission.status.value)
                return
            submission = submission.with_status(
                SubmissionStatus.SUBMITTED,
                now,
                submitted_to_council_at=job.state.sent_at,
                confirmation_id=job.state.message_id,
            )
            await self._submissions.save(submission)
            documents = await self._documents.list_for_submission(submission.id)
            await self._documents.save_many(
                [d.with_status(DocumentStatus.SUBMITTED, now) for d in documents]
            )
            self._record_submission_metric(submission.pathway, "submitted")
            log.info("submission_delivered_to_council", message_id=job.state.message_id)
            return

        if isinstance(job.state, JobFailed) and (
            job.job_type.is_council_bound or job.job_type == DeliveryJobType.REVIEW_LINK
        ):
            if not can_transition(
                submission.pathway, submission.status, SubmissionStatus.ERROR
            ):
                log.info("delivery_outcome_ignored", status=submission.status.value)
                return
            await self._submissions.save(
                submission.with_status(SubmissionStatus.ERROR, now)
            )
            self._record_submission_metric(submission.pathway, "error")
            log.error("submission_delivery_failed", reason=job.state.reason)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load(self, submission_id: UUID) -> tuple[Submission, Project]:
        submission = await self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        project = await self._projects.get(submission.project_id)
        if project is None:
            raise ProjectNotFoundError(submission.project_id)
        return submission, project

    async def _fail(
        self,
        submission: Submission,
        error: BaseException,
        stage: ProgressStage,
        operation: str,
    ) -> None:
        """Move a submission to ERROR and report the failure."""
        latest = await self._submissions.get(submission.id) or submission
        if can_transition(latest.pathway, latest.status, SubmissionStatus.ERROR):
            await self._submissions.save(
                latest.with_status(SubmissionStatus.ERROR, self._time.now())
            )
        await self._progress.record_event(
            submission.id,
            stage,
            ProgressStatus.FAILED,
            metadata={"error": str(error) or type(error).__name__},
        )
        await self._errors.handle(
            error,
            operation=operation,
            submission_id=submission.id,
            metadata={"pathway": submission.pathway.value, "stage": stage.value},
        )
        self._record_submission_metric(submission.pathway, "error")

    async def _resolve_template(self, project: Project, template_type: str) -> ActiveTemplate:
        template = await self._templates.resolve_active_template(project.id, template_type)
        if template is None:
            raise TemplateNotConfiguredError(project.id, template_type)
        return template

    async def _create_document(
        self,
        submission: Submission,
        template: ActiveTemplate,
        placeholders: dict[str, str],
        title: str,
    ) -> GeneratedDocument:
        return await self._resilience.execute_with_retry(
            lambda: self._generator.create_submission_document(
                template.storage_path, placeholders, title
            ),
            operation_name=DOCUMENT_SERVICE,
            submission_id=submission.id,
        )

    async def _export_pdf(self, submission: Submission, document_id: str) -> bytes:
        return await self._resilience.execute_with_retry(
            lambda: self._generator.export_to_pdf(document_id),
            operation_name=DOCUMENT_SERVICE,
            submission_id=submission.id,
        )

    async def _create_single_document(
        self, submission: Submission, project: Project, status: DocumentStatus
    ) -> tuple[Document, GeneratedDocument]:
        await self._progress.record_event(
            submission.id, ProgressStage.DOCUMENT_GENERATION, ProgressStatus.IN_PROGRESS
        )
        template = await self._resolve_template(project, SINGLE_DOCUMENT_TEMPLATE)
        generated = await self._create_document(
            submission,
            template,
            self._placeholders(submission, project),
            f"DA Submission - {submission.site_address}",
        )
        document = self._document_record(submission, generated, template, None, status)
        await self._documents.save_many([document])
        await self._progress.record_event(
            submission.id,
            ProgressStage.DOCUMENT_GENERATION,
            ProgressStatus.COMPLETED,
            metadata={"document_count": 1},
        )
        return document, generated

    def _document_record(
        self,
        submission: Submission,
        generated: GeneratedDocument,
        template: ActiveTemplate,
        doc_type: DocumentType | None,
        status: DocumentStatus,
    ) -> Document:
        now = self._time.now()
        return Document(
            id=uuid4(),
            submission_id=submission.id,
            external_document_id=generated.document_id,
            template_ref=template.storage_path,
            doc_type=doc_type,
            status=status,
            edit_url=generated.edit_url,
            view_url=generated.view_url,
            pdf_url=generated.pdf_url,
            review_started_at=now if status == DocumentStatus.USER_EDITING else None,
            review_completed_at=now if status == DocumentStatus.FINALIZED else None,
            last_modified_at=now,
            created_at=now,
        )

    async def _editable_document(self, submission_id: UUID) -> Document:
        documents = await self._documents.list_for_submission(submission_id)
        if not documents:
            raise DocumentNotFoundError(submission_id)
        for document in documents:
            if document.doc_type is None:
                return document
        return documents[-1]

    async def _queue_council_email(
        self,
        submission: Submission,
        project: Project,
        values: dict[str, str],
        attachments: tuple[Attachment, ...],
    ) -> tuple[Submission, DeliveryJob]:
        """Link a council job to the submission, then enqueue it.

        The submission records the job id before the job exists, so a
        drain that delivers it straight away finds the link in place and
        no later save here can overwrite the SUBMITTED status.

        Returns:
            The latest stored submission and the queued job.
        """
        payload = EmailPayload(
            to=project.council_recipient(submission.pathway),
            from_address=project.from_email,
            from_name=project.from_name or DEFAULT_SENDER_NAME,
            subject=render_template(project.council_subject, values),
            text=render_template(COUNCIL_EMAIL_BODY, values),
            attachments=attachments,
            reply_to=submission.applicant_email,
        )
        job_id = uuid4()
        await self._submissions.save(
            submission.with_changes(self._time.now(), council_job_id=job_id)
        )
        job = await self._queue.enqueue(
            DeliveryJobType.COUNCIL_SUBMISSION,
            payload,
            submission_id=submission.id,
            priority=self._queue_config.council_priority,
            job_id=job_id,
        )
        latest = await self._submissions.get(submission.id)
        return latest or submission, job

    def _applicant_payload(
        self,
        submission: Submission,
        project: Project,
        subject_template: str,
        body_template: str,
        values: dict[str, str],
        attachments: tuple[Attachment, ...] = (),
    ) -> EmailPayload:
        return EmailPayload(
            to=submission.applicant_email,
            from_address=project.from_email,
            from_name=project.from_name or DEFAULT_SENDER_NAME,
            subject=render_template(subject_template, values),
            text=render_template(body_template, values),
            attachments=attachments,
        )

    def _placeholders(
        self, submission: Submission, project: Project, body: str | None = None
    ) -> dict[str, str]:
        return submission_placeholders(
            submission, project, f"{self._time.now():%d %B %Y}", body
        )

    def _record_submission_metric(self, pathway: Pathway, outcome: str) -> None:
        if self._metrics is not None:
            self._metrics.record_submission(pathway.value, outcome)
