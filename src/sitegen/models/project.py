"""Project and company profile models - tenant-scoped entities."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid7

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.sitegen.models.base import JSONType, utc_now
from src.sitegen.models.enums import ProjectStatus


class Project(SQLModel, table=True):
    """Website project.

    ``brief`` is the free-form business description handed to the first
    layer of every workflow. ``current_iteration`` counts quality refinement
    loops and never exceeds ``max_iterations``.
    """

    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_projects_tenant_name"),)

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    name: str = Field(max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    industry: str | None = Field(default=None, max_length=50)
    brief: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType)
    status: str = Field(default=ProjectStatus.DRAFT.value, max_length=20, index=True)
    current_iteration: int = Field(default=0, ge=0)
    max_iterations: int = Field(default=3, ge=1)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class CompanyProfile(SQLModel, table=True):
    """Business profile collected by the discovery chat, one per project."""

    __tablename__ = "company_profiles"

    id: UUID = Field(default_factory=uuid7, primary_key=True)
    tenant_id: UUID = Field(foreign_key="tenants.id", index=True)
    project_id: UUID = Field(foreign_key="projects.id", unique=True, ondelete="CASCADE")
    data: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType)
    completeness: int = Field(default=0, ge=0, le=100)
    completed_sections: list[str] = Field(default_factory=list, sa_type=JSONType)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
