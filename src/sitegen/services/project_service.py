"""Project service - tenant-scoped project lifecycle."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError

from src.sitegen.core.config import get_settings
from src.sitegen.core.exceptions import NotFoundError, PreconditionError
from src.sitegen.core.logging import get_logger
from src.sitegen.models import Project, ProjectStatus
from src.sitegen.repositories import ProjectRepository
from src.sitegen.schemas.project import ProjectCreate
from src.sitegen.services.execution_store import ExecutionStore

logger = get_logger(__name__)


class ProjectService:
    """Project CRUD - business logic only."""

    def __init__(self, store: ExecutionStore):
        self.store = store

    async def create_project(self, data: ProjectCreate) -> Project:
        """
        Create a DRAFT project.

        Raises:
            ValueError: If a project with the same name already exists in the tenant
        """
        async with self.store.session() as session:
            repo = ProjectRepository(session, self.store.tenant_id)

            # Check for duplicate name before creation
            if await repo.get_by_name(data.name) is not None:
                raise ValueError(f"Project with name '{data.name}' already exists")

            project = Project(
                tenant_id=self.store.tenant_id,
                name=data.name,
                description=data.description,
                industry=data.industry,
                brief=data.brief,
                max_iterations=data.max_iterations or get_settings().default_max_iterations,
            )
            repo.add(project)
            try:
                await session.commit()
            except IntegrityError as e:
                # Fallback in case of race condition
                await session.rollback()
                raise ValueError(f"Project with name '{data.name}' already exists") from e

        logger.info("Project created", project_id=str(project.id), industry=project.industry)
        return project

    async def list_projects(
        self, cursor: str | None, limit: int
    ) -> tuple[list[Project], str | None, bool]:
        """List the tenant's projects, newest first.

        Returns:
            Tuple of (items, next_cursor, has_more)
        """
        async with self.store.session() as session:
            return await ProjectRepository(session, self.store.tenant_id).list_all(cursor, limit)

    async def get_project(self, project_id: UUID) -> Project:
        return await self.store.get_project(project_id)

    async def delete_project(self, project_id: UUID) -> None:
        """
        Delete a project with its executions and company profile.

        Raises:
            NotFoundError: If the project does not exist in this tenant
            PreconditionError: If a workflow is still running for the project
        """
        async with self.store.session() as session:
            repo = ProjectRepository(session, self.store.tenant_id)
            project = await repo.get_by_id(project_id)
            if project is None:
                raise NotFoundError("Project", project_id)
            if project.status == ProjectStatus.IN_PROGRESS.value:
                raise PreconditionError(
                    "Cannot delete a project while a workflow is running; cancel it first",
                    details={"status": project.status},
                )
            try:
                await repo.delete_cascade(project)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Project deleted", project_id=str(project_id))
