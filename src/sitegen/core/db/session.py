"""Database session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from src.sitegen.core.db.engine import get_engine


@asynccontextmanager
async def get_session(
    tenant_id: UUID | None = None,
    engine: AsyncEngine | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Create a database session, optionally bound to a tenant.

    Args:
        tenant_id: If provided, the connection's ``app.current_tenant_id`` setting
                   is set so PostgreSQL row-level security policies apply.
        engine: Optional engine override (tests, workers).

    Yields:
        AsyncSession bound to a dedicated connection.

    Note:
        Row-level security is a second line of defence. Repositories still
        filter every query by tenant id, which is what keeps SQLite-backed
        test runs isolated.
    """
    if engine is None:
        engine = get_engine()

    async with engine.connect() as connection:
        uses_rls = connection.dialect.name == "postgresql"
        try:
            if uses_rls:
                await connection.execute(
                    text("SELECT set_config('app.current_tenant_id', :tenant_id, false)"),
                    {"tenant_id": str(tenant_id) if tenant_id is not None else ""},
                )
                await connection.commit()

            session_factory = async_sessionmaker(
                bind=connection,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            async with session_factory() as session:
                yield session
        finally:
            # Always reset before returning to pool
            if uses_rls and not connection.closed:
                await connection.execute(text("RESET app.current_tenant_id"))
                await connection.commit()
