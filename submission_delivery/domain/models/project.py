"""Project (campaign) configuration model.

A project describes one objection campaign: which council receives the
submissions, which sender identity emails go out under, and the subject
templates used for council and applicant mail. The pipeline reads
projects but never writes them.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from submission_delivery.domain.models.submission import Pathway

DEFAULT_SUBJECT_TEMPLATE = "Development Application Submission - {{site_address}}"


@dataclass(frozen=True)
class Project:
    """Read-only campaign configuration.

    Attributes:
        id: Project identifier.
        name: Display name of the campaign.
        council_name: Name of the receiving council.
        council_email: Council address for formal submissions.
        from_email: Sender address for all outbound mail.
        from_name: Sender display name.
        test_submission_email: Optional override that receives direct
            submissions instead of the council (dry runs).
        subject_template: Generic subject template.
        council_subject_template: Subject template for council mail,
            takes precedence over subject_template.
        default_application_number: Application number used when the
            submission does not carry one.
        enable_ai_generation: Whether submission text is generated.
        info_pack: Optional text appended to draft-pathway emails.
    """

    id: UUID
    name: str
    council_name: str
    council_email: str
    from_email: str
    from_name: str
    test_submission_email: str | None = None
    subject_template: str | None = None
    council_subject_template: str | None = None
    default_application_number: str | None = None
    enable_ai_generation: bool = True
    info_pack: str | None = None

    def __post_init__(self) -> None:
        """Validate project fields."""
        if not self.council_email:
            raise ValueError("council_email cannot be empty")
        if not self.from_email:
            raise ValueError("from_email cannot be empty")

    def council_recipient(self, pathway: Pathway) -> str:
        """Return the address council-bound mail is sent to.

        The test override wins for the direct pathway only; finalised
        reviews always go to the council.
        """
        if pathway == Pathway.DIRECT and self.test_submission_email:
            return self.test_submission_email
        return self.council_email

    @property
    def council_subject(self) -> str:
        """Subject template for council-bound mail."""
        return (
            self.council_subject_template
            or self.subject_template
            or DEFAULT_SUBJECT_TEMPLATE
        )
