"""Template version resolver port."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from submission_delivery.domain.models.document import ActiveTemplate


class TemplateResolverPort(Protocol):
    """Resolves the active template version for a project."""

    async def resolve_active_template(
        self, project_id: UUID, template_type: str
    ) -> ActiveTemplate | None:
        """Return the active template of a type, or None if not configured.

        Args:
            project_id: Campaign.
            template_type: "cover" or "grounds".
        """
        ...
