"""Email and document text templates.

Templates use ``{{key}}`` placeholders. Unknown keys render as an empty
string so a project template referencing a field the submission lacks
never blocks delivery.
"""

from __future__ import annotations

import re
from typing import Final

from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import Submission

PLACEHOLDER_PATTERN: Final[re.Pattern[str]] = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")
_UNSAFE_FILENAME_CHARS: Final[re.Pattern[str]] = re.compile(r"[^a-zA-Z0-9]")

DEFAULT_SENDER_NAME = "DA Submission Manager"

COUNCIL_EMAIL_BODY = """Dear {{council_name}},

Please find attached the development application submission for {{site_address}}.

Applicant: {{applicant_name}}
Email: {{applicant_email}}
{{application_number_line}}

Kind regards,
{{sender_name}}"""

REVIEW_EMAIL_BODY = """Dear {{applicant_name}},

Your development application submission for {{site_address}} has been prepared and is ready for your review.

You can review and edit your submission using this link:
{{edit_url}}

Please review the document carefully and make any necessary changes. Once you are satisfied, finalise it from the review page and it will be sent to {{council_name}}.
{{deadline_line}}
Best regards,
{{sender_name}}"""

DRAFT_EMAIL_BODY = """Dear {{applicant_name}},

Your development application submission draft for {{site_address}} has been prepared along with background information to help you understand the process.

Background Information:
{{info_pack}}

You can review and edit your submission draft using this link:
{{edit_url}}

Take your time to review the information and customise the submission as needed. You can submit it to council when you are ready, or contact us for assistance.

Best regards,
{{sender_name}}"""

REMINDER_EMAIL_BODY = """Dear {{applicant_name}},

This is a reminder that your development application submission for {{site_address}} has not been finalised yet.

Submissions close on {{review_deadline}}. You can review and finalise it here:
{{edit_url}}

Best regards,
{{sender_name}}"""

APPLICANT_COPY_BODY = """Dear {{applicant_name}},

Your submission for {{site_address}} has been queued for delivery to {{council_name}}. A copy of the submitted documents is attached for your records.

Best regards,
{{sender_name}}"""

DEFAULT_INFO_PACK = """Development Application Process Information

What is a Development Application?
A Development Application (DA) is a formal request to council to develop or use land in a particular way. Most building work, changes to existing buildings, and changes to land use require development consent from council.

The Assessment Process
1. Application lodgement and initial assessment
2. Public exhibition (where required)
3. Assessment against planning controls
4. Decision notification

Your Rights
- You have the right to make a submission on development applications
- Your submission will be considered as part of the assessment
- You may request to speak at a council meeting about the application

Making an Effective Submission
- Focus on planning matters relevant to the local planning scheme
- Be specific about impacts on your property or the local area
- Provide evidence where possible
- Be respectful and factual

This draft submission has been prepared to help you participate in the planning process. You can edit the document to add your own concerns and observations."""

REVIEW_SUBJECT = "Review your DA submission for {{site_address}}"
DRAFT_SUBJECT = "Your DA submission draft for {{site_address}}"
REMINDER_SUBJECT = "Reminder: your DA submission for {{site_address}} is waiting"
APPLICANT_COPY_SUBJECT = "Copy of your DA submission for {{site_address}}"


def render_template(template: str, values: dict[str, str]) -> str:
    """Replace ``{{key}}`` placeholders with values (missing keys -> "")."""
    return PLACEHOLDER_PATTERN.sub(lambda m: values.get(m.group(1), ""), template)


def safe_filename_part(value: str) -> str:
    """Replace every non-alphanumeric character with an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", value)


def submission_placeholders(
    submission: Submission,
    project: Project,
    submission_date: str,
    body: str | None = None,
) -> dict[str, str]:
    """Values shared by document templates and email templates."""
    application_number = (
        submission.application_number or project.default_application_number or ""
    )
    return {
        "applicant_name": submission.applicant_name,
        "applicant_first_name": submission.applicant_first_name,
        "applicant_last_name": submission.applicant_last_name,
        "applicant_email": submission.applicant_email,
        "applicant_postal_address": submission.applicant_postal_address or "",
        "site_address": submission.site_address,
        "application_number": application_number,
        "application_number_line": (
            f"Application Number: {application_number}" if application_number else ""
        ),
        "submission_date": submission_date,
        "council_name": project.council_name,
        "project_name": project.name,
        "submission_body": body or submission.generated_text or "",
        "sender_name": project.from_name or DEFAULT_SENDER_NAME,
    }
