"""Repositories for Project, CompanyProfile and Tenant entities."""

from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.sitegen.models import AgentExecution, CompanyProfile, Project, Tenant, WorkflowExecution
from src.sitegen.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity."""

    model = Project

    async def list_all(
        self,
        cursor: str | None = None,
        limit: int = 20,
    ) -> tuple[list[Project], str | None, bool]:
        """List the tenant's projects with cursor-based pagination."""
        return await self.paginate(self.scoped(), cursor, limit)

    async def get_by_name(self, name: str) -> Project | None:
        """Get project by name."""
        result = await self.session.execute(self.scoped().where(Project.name == name))
        return result.scalar_one_or_none()

    async def delete_cascade(self, project: Project) -> None:
        """Delete a project with its executions and profile.

        Children are removed explicitly so the cascade does not depend on
        the database enforcing foreign key actions.
        """
        for model in (AgentExecution, WorkflowExecution, CompanyProfile):
            await self.session.execute(
                delete(model).where(
                    model.tenant_id == self.tenant_id,  # type: ignore[attr-defined]
                    model.project_id == project.id,  # type: ignore[attr-defined]
                )
            )
        await self.session.delete(project)


class CompanyProfileRepository(BaseRepository[CompanyProfile]):
    """Repository for CompanyProfile entity."""

    model = CompanyProfile

    async def get_by_project(self, project_id: UUID) -> CompanyProfile | None:
        result = await self.session.execute(
            self.scoped().where(CompanyProfile.project_id == project_id)
        )
        return result.scalar_one_or_none()


class TenantRepository:
    """Tenant registry lookups. Not tenant-scoped; used by system jobs only."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, id: UUID) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.id == id))
        return result.scalar_one_or_none()

    async def list_active_ids(self) -> list[UUID]:
        result = await self.session.execute(
            select(Tenant.id).where(Tenant.is_active == True)  # noqa: E712
        )
        return list(result.scalars().all())
