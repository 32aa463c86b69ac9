"""Tenant model - isolation boundary for every other entity."""

from datetime import datetime
from uuid import UUID, uuid7

from sqlmodel import Field, SQLModel

from src.sitegen.models.base import utc_now


class Tenant(SQLModel, table=True):
    """Tenant registry."""

    __tablename__ = "tenants"

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    name: str = Field(max_length=100, index=True)
    slug: str = Field(max_length=56, unique=True, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
