"""HTTP document service adapter.

The document service copies a template, fills ``{{key}}`` placeholders,
and serves edit/view links plus PDF exports:

    POST /documents                      -> {document_id, edit_url, view_url, pdf_url}
    GET  /documents/{id}/export?format=pdf -> application/pdf
    GET  /documents/{id}/text            -> {text}
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from submission_delivery.config.pipeline_config import DocumentServiceConfig
from submission_delivery.domain.errors.submission import DocumentGenerationError
from submission_delivery.domain.models.document import GeneratedDocument

logger = structlog.get_logger(__name__)


class HttpDocumentGenerator:
    """DocumentGeneratorPort backed by the document service HTTP API."""

    def __init__(
        self,
        config: DocumentServiceConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client

    def _headers(self) -> dict[str, str]:
        if self._config.api_token:
            return {"Authorization": f"Bearer {self._config.api_token}"}
        return {}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._config.base_url.rstrip('/')}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(
                    method,
                    url,
                    headers=self._headers(),
                    timeout=self._config.timeout_seconds,
                    **kwargs,
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(
                        method,
                        url,
                        headers=self._headers(),
                        timeout=self._config.timeout_seconds,
                        **kwargs,
                    )
        except httpx.HTTPError as error:
            raise DocumentGenerationError(
                f"document service request failed: {error}"
            ) from error

        if response.status_code >= 400:
            raise DocumentGenerationError(
                f"document service returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def create_submission_document(
        self,
        template_ref: str,
        placeholders: dict[str, str],
        title: str,
    ) -> GeneratedDocument:
        response = await self._request(
            "POST",
            "/documents",
            json={
                "template_ref": template_ref,
                "title": title,
                "placeholders": placeholders,
            },
        )
        try:
            data = response.json()
            document = GeneratedDocument(
                document_id=data["document_id"],
                edit_url=data["edit_url"],
                view_url=data["view_url"],
                pdf_url=data.get("pdf_url"),
            )
        except (ValueError, KeyError, TypeError):
            raise DocumentGenerationError(
                "document service returned an unexpected body"
            ) from None
        logger.info(
            "document_created",
            document_id=document.document_id,
            template_ref=template_ref,
        )
        return document

    async def export_to_pdf(self, document_id: str) -> bytes:
        response = await self._request(
            "GET", f"/documents/{document_id}/export", params={"format": "pdf"}
        )
        return response.content

    async def get_document_text(self, document_id: str) -> str:
        response = await self._request("GET", f"/documents/{document_id}/text")
        try:
            return str(response.json()["text"])
        except (ValueError, KeyError, TypeError):
            raise DocumentGenerationError(
                "document service returned an unexpected body"
            ) from None
