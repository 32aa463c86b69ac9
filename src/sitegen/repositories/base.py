"""Base repository with common tenant-scoped operations."""

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from sqlalchemy import and_, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from src.sitegen.models.base import utc_now
from src.sitegen.schemas.pagination import decode_keyset_cursor, encode_keyset_cursor


class BaseRepository[ModelType: SQLModel]:
    """Base repository providing common database operations.

    Every repository is bound to one tenant and adds ``tenant_id = :tenant``
    to each query it builds. Repositories handle data access only.
    Transaction control (commit) is done in the service layer.
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession, tenant_id: UUID):
        self.session = session
        self.tenant_id = tenant_id

    def scoped(self) -> Any:
        """Base SELECT restricted to the repository's tenant."""
        return select(self.model).where(self.model.tenant_id == self.tenant_id)  # type: ignore[attr-defined]

    async def get_by_id(self, id: UUID) -> ModelType | None:
        """Get a record by primary key within the tenant."""
        result = await self.session.execute(
            self.scoped().where(self.model.id == id)  # type: ignore[attr-defined]
        )
        return result.scalar_one_or_none()

    def add(self, entity: ModelType) -> None:
        """Add entity to session (no flush/commit)."""
        self.session.add(entity)

    async def reload(self, id: UUID) -> ModelType | None:
        """Re-read a record, overwriting any stale copy held by the session."""
        result = await self.session.execute(
            self.scoped()
            .where(self.model.id == id)  # type: ignore[attr-defined]
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def compare_and_set_status(
        self,
        id: UUID,
        allowed_from: Iterable[str],
        new_status: str,
        values: dict[str, Any] | None = None,
    ) -> ModelType | None:
        """Set ``status`` (plus ``values``) only if the current status is in ``allowed_from``.

        The check and the write are one UPDATE statement, so two callers
        racing on the same record cannot both succeed.

        Returns:
            The refreshed record if the update applied, None otherwise.
        """
        model: Any = self.model
        changes = {**(values or {}), "status": new_status, "updated_at": utc_now()}
        stmt = (
            update(model)
            .where(
                model.id == id,
                model.tenant_id == self.tenant_id,
                model.status.in_(list(allowed_from)),
            )
            .values({getattr(model, key): value for key, value in changes.items()})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return None
        return await self.reload(id)

    async def paginate(
        self,
        query: Any,  # SelectOfScalar or Select - SQLModel/SQLAlchemy query
        cursor: str | None,
        limit: int,
    ) -> tuple[list[ModelType], str | None, bool]:
        """Execute keyset pagination on a query, newest first.

        Rows are ordered by ``(created_at DESC, id DESC)`` so rows sharing a
        timestamp still have a total order and pages never overlap.

        Args:
            query: The base SQLAlchemy query to paginate
            cursor: Optional cursor from previous page
            limit: Maximum number of items to return

        Returns:
            Tuple of (items, next_cursor, has_more)
            - items: List of results for this page
            - next_cursor: Opaque cursor naming the last returned row, or None
            - has_more: True iff the raw fetch returned ``limit + 1`` rows
        """
        created_at = self.model.created_at  # type: ignore[attr-defined]
        id_column = self.model.id  # type: ignore[attr-defined]

        if cursor:
            try:
                cursor_created_at, cursor_id = decode_keyset_cursor(cursor)
                query = query.where(
                    or_(
                        created_at < cursor_created_at,
                        and_(created_at == cursor_created_at, id_column < cursor_id),
                    )
                )
            except (ValueError, TypeError):
                # Invalid cursor - ignore and start from beginning
                pass

        query = query.order_by(created_at.desc(), id_column.desc()).limit(limit + 1)

        result = await self.session.execute(query)
        items = list(result.scalars().all())

        has_more = len(items) > limit
        if has_more:
            items = items[:limit]

        next_cursor = None
        if has_more and items:
            last_item = items[-1]
            next_cursor = encode_keyset_cursor(last_item.created_at, last_item.id)  # type: ignore[attr-defined]

        return items, next_cursor, has_more
