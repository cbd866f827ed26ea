"""PostgreSQL template version resolver."""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from submission_delivery.domain.models.document import ActiveTemplate

logger = structlog.get_logger(__name__)


class PostgresTemplateResolver:
    """Resolves the active template version from template_versions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def resolve_active_template(
        self, project_id: UUID, template_type: str
    ) -> ActiveTemplate | None:
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT storage_path, mimetype, version
                    FROM template_versions
                    WHERE project_id = :project_id
                      AND template_type = :template_type
                      AND is_active
                    ORDER BY version DESC
                    LIMIT 1
                """),
                {"project_id": project_id, "template_type": template_type},
            )
            row = result.mappings().first()
        if row is None:
            logger.warning(
                "active_template_missing",
                project_id=str(project_id),
                template_type=template_type,
            )
            return None
        return ActiveTemplate(
            storage_path=row["storage_path"],
            mimetype=row["mimetype"],
            version=row["version"],
        )
