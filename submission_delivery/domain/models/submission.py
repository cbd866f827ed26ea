"""Submission domain model and pathway state machine.

A submission is one citizen's objection, routed to the council through
one of three pathways:

    direct: documents generated and emailed straight to the council
    review: an editable document is sent to the citizen, who finalises it
    draft:  an editable document is sent to the citizen, nothing more

Status transitions (per pathway):

    direct: NEW -> PROCESSING -> SUBMITTED | ERROR
    review: NEW -> PROCESSING -> AWAITING_REVIEW | ERROR
                  AWAITING_REVIEW -> SUBMITTED | ERROR
    draft:  NEW -> PROCESSING -> DRAFT_SENT | ERROR

SUBMITTED, DRAFT_SENT and ERROR are terminal. The only way out of ERROR
is an explicit operator redo (reset_for_reprocessing).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from submission_delivery.domain.errors.submission import (
    InvalidSubmissionTransitionError,
)


class Pathway(str, Enum):
    """Delivery pathway chosen by the citizen."""

    DIRECT = "direct"
    REVIEW = "review"
    DRAFT = "draft"


class SubmissionStatus(str, Enum):
    """Lifecycle status of a submission."""

    NEW = "NEW"
    PROCESSING = "PROCESSING"
    SUBMITTED = "SUBMITTED"
    AWAITING_REVIEW = "AWAITING_REVIEW"
    DRAFT_SENT = "DRAFT_SENT"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        """Check whether no further automatic transition is possible."""
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {SubmissionStatus.SUBMITTED, SubmissionStatus.DRAFT_SENT, SubmissionStatus.ERROR}
)

_TRANSITIONS: dict[Pathway, dict[SubmissionStatus, frozenset[SubmissionStatus]]] = {
    Pathway.DIRECT: {
        SubmissionStatus.NEW: frozenset({SubmissionStatus.PROCESSING}),
        SubmissionStatus.PROCESSING: frozenset(
            {SubmissionStatus.SUBMITTED, SubmissionStatus.ERROR}
        ),
    },
    Pathway.REVIEW: {
        SubmissionStatus.NEW: frozenset({SubmissionStatus.PROCESSING}),
        SubmissionStatus.PROCESSING: frozenset(
            {SubmissionStatus.AWAITING_REVIEW, SubmissionStatus.ERROR}
        ),
        SubmissionStatus.AWAITING_REVIEW: frozenset(
            {SubmissionStatus.SUBMITTED, SubmissionStatus.ERROR}
        ),
    },
    Pathway.DRAFT: {
        SubmissionStatus.NEW: frozenset({SubmissionStatus.PROCESSING}),
        SubmissionStatus.PROCESSING: frozenset(
            {SubmissionStatus.DRAFT_SENT, SubmissionStatus.ERROR}
        ),
    },
}


def can_transition(
    pathway: Pathway, current: SubmissionStatus, target: SubmissionStatus
) -> bool:
    """Check whether a status transition is legal for a pathway."""
    return target in _TRANSITIONS[pathway].get(current, frozenset())


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Submission:
    """A citizen objection routed through one pathway.

    Attributes:
        id: Submission identifier.
        project_id: Campaign the submission belongs to.
        pathway: Delivery pathway.
        status: Current lifecycle status.
        applicant_first_name: Citizen's given name.
        applicant_last_name: Citizen's family name.
        applicant_email: Citizen's email address.
        site_address: Address of the development site objected to.
        applicant_postal_address: Citizen's postal address (optional).
        application_number: Development application number (optional).
        generated_text: Validated submission body, once produced.
        ai_provider: Name of the provider that generated the text.
        review_started_at: When the citizen review window opened.
        review_deadline: When the citizen review window closes.
        review_reminder_sent_at: When a reminder was queued, if ever.
        review_completed_at: When the citizen finalised the document.
        submitted_to_council_at: When the council email was delivered.
        confirmation_id: Transport message id of the council email.
        council_job_id: Delivery job carrying the council email, once queued.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: UUID
    project_id: UUID
    pathway: Pathway
    applicant_first_name: str
    applicant_last_name: str
    applicant_email: str
    site_address: str
    status: SubmissionStatus = SubmissionStatus.NEW
    applicant_postal_address: str | None = None
    application_number: str | None = None
    generated_text: str | None = None
    ai_provider: str | None = None
    review_started_at: datetime | None = None
    review_deadline: datetime | None = None
    review_reminder_sent_at: datetime | None = None
    review_completed_at: datetime | None = None
    submitted_to_council_at: datetime | None = None
    confirmation_id: str | None = None
    council_job_id: UUID | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate submission fields."""
        if not self.applicant_email:
            raise ValueError("applicant_email cannot be empty")
        if not self.site_address:
            raise ValueError("site_address cannot be empty")

    @property
    def applicant_name(self) -> str:
        """Full applicant name."""
        return f"{self.applicant_first_name} {self.applicant_last_name}".strip()

    def with_status(
        self, new_status: SubmissionStatus, now: datetime, **changes: Any
    ) -> Submission:
        """Return a copy moved to a new status.

        Args:
            new_status: Target status.
            now: Timestamp recorded as updated_at.
            **changes: Further field updates applied with the transition.

        Raises:
            InvalidSubmissionTransitionError: If the pathway does not allow
                moving from the current status to new_status.
        """
        if not can_transition(self.pathway, self.status, new_status):
            raise InvalidSubmissionTransitionError(
                submission_id=self.id,
                pathway=self.pathway.value,
                current=self.status.value,
                target=new_status.value,
            )
        return replace(self, status=new_status, updated_at=now, **changes)

    def with_changes(self, now: datetime, **changes: Any) -> Submission:
        """Return a copy with non-status fields updated."""
        if "status" in changes:
            raise ValueError("use with_status() to change status")
        return replace(self, updated_at=now, **changes)

    def reset_for_reprocessing(self, now: datetime) -> Submission:
        """Return a copy moved back to NEW for an operator redo.

        Only submissions in ERROR may be reset.
        """
        if self.status != SubmissionStatus.ERROR:
            raise InvalidSubmissionTransitionError(
                submission_id=self.id,
                pathway=self.pathway.value,
                current=self.status.value,
                target=SubmissionStatus.NEW.value,
            )
        return replace(self, status=SubmissionStatus.NEW, updated_at=now)

    def review_due_within(self, now: datetime, lead: timedelta) -> bool:
        """Check whether an open review deadline falls within the lead time."""
        return (
            self.status == SubmissionStatus.AWAITING_REVIEW
            and self.review_deadline is not None
            and self.review_reminder_sent_at is None
            and self.review_deadline - lead <= now
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize submission for API responses and logs."""

        def _iso(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        return {
            "id": str(self.id),
            "project_id": str(self.project_id),
            "pathway": self.pathway.value,
            "status": self.status.value,
            "applicant_name": self.applicant_name,
            "applicant_email": self.applicant_email,
            "site_address": self.site_address,
            "application_number": self.application_number,
            "ai_provider": self.ai_provider,
            "review_started_at": _iso(self.review_started_at),
            "review_deadline": _iso(self.review_deadline),
            "review_completed_at": _iso(self.review_completed_at),
            "submitted_to_council_at": _iso(self.submitted_to_council_at),
            "confirmation_id": self.confirmation_id,
            "council_job_id": str(self.council_job_id) if self.council_job_id else None,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
