"""Document service adapters."""

from submission_delivery.infrastructure.documents.http_document_generator import (
    HttpDocumentGenerator,
)

__all__ = ["HttpDocumentGenerator"]
