"""In-memory stub for TemplateResolverPort."""

from __future__ import annotations

from uuid import UUID

from submission_delivery.domain.models.document import ActiveTemplate


class TemplateResolverStub:
    """Active templates keyed by (project_id, template_type)."""

    def __init__(self) -> None:
        """Initialize empty stub."""
        self._templates: dict[tuple[UUID, str], ActiveTemplate] = {}

    def configure(
        self, project_id: UUID, template_type: str, storage_path: str
    ) -> None:
        """Register an active template."""
        self._templates[(project_id, template_type)] = ActiveTemplate(
            storage_path=storage_path, version=1
        )

    def configure_defaults(self, project_id: UUID) -> None:
        """Register cover and grounds templates for a project."""
        self.configure(project_id, "cover", f"templates/{project_id}/cover")
        self.configure(project_id, "grounds", f"templates/{project_id}/grounds")

    async def resolve_active_template(
        self, project_id: UUID, template_type: str
    ) -> ActiveTemplate | None:
        return self._templates.get((project_id, template_type))
