"""Database dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncEngine

from src.sitegen.core.db import get_engine


def get_db_engine() -> AsyncEngine:
    """Engine every tenant-scoped session is opened on (overridden in tests)."""
    return get_engine()


DBEngine = Annotated[AsyncEngine, Depends(get_db_engine)]
