"""Unit tests for the submission workflow routes."""

from __future__ import annotations

from collections.abc import Callable
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from submission_delivery.domain.models.submission import Pathway, Submission
from submission_delivery.infrastructure.stubs import (
    DocumentGeneratorStub,
    SubmissionRepositoryStub,
)


@pytest.fixture
def seeded(
    submission_repo: SubmissionRepositoryStub,
    make_submission: Callable[..., Submission],
) -> Callable[..., Submission]:
    def _seed(pathway: Pathway = Pathway.DIRECT) -> Submission:
        submission = make_submission(pathway)
        submission_repo.seed(submission)
        return submission

    return _seed


class TestProcessRoute:
    """Tests for POST /v1/submissions/{id}/process."""

    def test_direct_submission_processed(
        self, client: TestClient, seeded: Callable[..., Submission]
    ) -> None:
        submission = seeded()

        response = client.post(f"/v1/submissions/{submission.id}/process", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PROCESSING"
        assert data["pathway"] == "direct"
        assert len(data["documents"]) == 2
        assert data["documents"][0]["created_at"].endswith("Z")

    def test_unknown_submission_is_problem_404(self, client: TestClient) -> None:
        response = client.post(f"/v1/submissions/{uuid4()}/process", json={})

        assert response.status_code == 404
        problem = response.json()["detail"]
        assert problem["type"] == "urn:submission-delivery:error:not-found"
        assert problem["title"] == "Not Found"
        assert problem["user_message"] == "We could not find that submission."

    def test_duplicate_processing_is_conflict(
        self, client: TestClient, seeded: Callable[..., Submission]
    ) -> None:
        submission = seeded()
        client.post(f"/v1/submissions/{submission.id}/process", json={})

        response = client.post(f"/v1/submissions/{submission.id}/process", json={})

        assert response.status_code == 409

    def test_rejected_text_is_unprocessable(
        self, client: TestClient, seeded: Callable[..., Submission]
    ) -> None:
        submission = seeded()

        response = client.post(
            f"/v1/submissions/{submission.id}/process",
            json={"text": "Visit https://spam.example now"},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["retryable"] is False


class TestReviewRoutes:
    """Tests for finalisation and document routes."""

    def test_finalize_and_document_summary(
        self, client: TestClient, seeded: Callable[..., Submission]
    ) -> None:
        submission = seeded(Pathway.REVIEW)
        client.post(f"/v1/submissions/{submission.id}/process", json={})

        finalized = client.post(
            f"/v1/submissions/{submission.id}/finalize",
            json={"notify_applicant": True},
        )
        summary = client.get(f"/v1/submissions/{submission.id}/documents")

        assert finalized.status_code == 200
        assert finalized.json()["job_id"] is not None
        assert summary.json()["submission_status"] == "AWAITING_REVIEW"
        assert summary.json()["documents"][0]["status"] == "finalized"

    def test_finalize_without_body(
        self, client: TestClient, seeded: Callable[..., Submission]
    ) -> None:
        submission = seeded(Pathway.REVIEW)
        client.post(f"/v1/submissions/{submission.id}/process", json={})

        response = client.post(f"/v1/submissions/{submission.id}/finalize")

        assert response.status_code == 200

    def test_document_status_update_and_validation(
        self,
        client: TestClient,
        seeded: Callable[..., Submission],
        document_generator: DocumentGeneratorStub,
    ) -> None:
        submission = seeded(Pathway.REVIEW)
        client.post(f"/v1/submissions/{submission.id}/process", json={})
        document_generator.set_document_text(
            "doc-1", "Please refuse \u2014 it is too tall"
        )

        validation = client.get(
            f"/v1/submissions/{submission.id}/documents/validation"
        )
        updated = client.patch(
            f"/v1/submissions/{submission.id}/documents/status",
            json={"status": "finalized"},
        )
        backwards = client.patch(
            f"/v1/submissions/{submission.id}/documents/status",
            json={"status": "created"},
        )

        assert validation.json()["is_valid"] is True
        assert updated.status_code == 200
        assert updated.json()[0]["status"] == "finalized"
        assert backwards.status_code == 409

    def test_invalid_status_value_rejected(
        self, client: TestClient, seeded: Callable[..., Submission]
    ) -> None:
        submission = seeded(Pathway.REVIEW)

        response = client.patch(
            f"/v1/submissions/{submission.id}/documents/status",
            json={"status": "shredded"},
        )

        assert response.status_code == 422
