"""Unit tests for email and document templates."""

from collections.abc import Callable

from submission_delivery.application.services.email_templates import (
    COUNCIL_EMAIL_BODY,
    DEFAULT_SENDER_NAME,
    render_template,
    safe_filename_part,
    submission_placeholders,
)
from submission_delivery.domain.models.project import Project
from submission_delivery.domain.models.submission import Submission


class TestRenderTemplate:
    """Tests for placeholder substitution."""

    def test_replaces_known_placeholders(self) -> None:
        assert render_template("Hi {{name}}!", {"name": "Jordan"}) == "Hi Jordan!"

    def test_tolerates_inner_whitespace(self) -> None:
        assert render_template("{{ name }}", {"name": "Jordan"}) == "Jordan"

    def test_unknown_placeholders_render_empty(self) -> None:
        assert render_template("Ref: {{missing}}.", {}) == "Ref: ."


class TestSafeFilenamePart:
    """Tests for attachment filename sanitising."""

    def test_replaces_non_alphanumerics(self) -> None:
        assert safe_filename_part("12 Park Rd, Exampleville") == "12_Park_Rd__Exampleville"


class TestSubmissionPlaceholders:
    """Tests for values shared by documents and emails."""

    def test_falls_back_to_project_application_number(
        self, make_submission: Callable[..., Submission], project: Project
    ) -> None:
        values = submission_placeholders(make_submission(), project, "02 March 2026")

        assert values["application_number"] == "DA-2026-0042"
        assert values["application_number_line"] == "Application Number: DA-2026-0042"
        assert values["submission_date"] == "02 March 2026"
        assert values["sender_name"] == "Save Example Park"

    def test_submission_application_number_wins(
        self, make_submission: Callable[..., Submission], project: Project
    ) -> None:
        submission = make_submission(application_number="DA-1")

        values = submission_placeholders(submission, project, "today")

        assert values["application_number"] == "DA-1"

    def test_explicit_body_overrides_generated_text(
        self, make_submission: Callable[..., Submission], project: Project
    ) -> None:
        submission = make_submission(generated_text="stored text")

        assert submission_placeholders(submission, project, "d")["submission_body"] == (
            "stored text"
        )
        assert (
            submission_placeholders(submission, project, "d", body="edited")[
                "submission_body"
            ]
            == "edited"
        )

    def test_council_email_renders_without_application_number(
        self, make_submission: Callable[..., Submission], project: Project
    ) -> None:
        bare = Project(
            id=project.id,
            name=project.name,
            council_name=project.council_name,
            council_email=project.council_email,
            from_email=project.from_email,
            from_name="",
        )
        values = submission_placeholders(make_submission(), bare, "d")

        body = render_template(COUNCIL_EMAIL_BODY, values)

        assert "Application Number" not in body
        assert "Applicant: Jordan Lee" in body
        assert body.endswith(DEFAULT_SENDER_NAME)
