"""Project schemas for API request/response."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

SUPPORTED_INDUSTRIES = (
    "roofing",
    "hvac",
    "solar",
    "restoration",
    "plumbing",
    "electrical",
    "auto_repair",
    "mitigation",
)


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    industry: str | None = Field(default=None, max_length=50)
    brief: dict[str, Any] = Field(default_factory=dict)
    max_iterations: int | None = Field(default=None, ge=1, le=10)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Project name cannot be empty or whitespace only")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v

    @field_validator("industry")
    @classmethod
    def validate_industry(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower().replace(" ", "_").replace("-", "_")
        return v or None


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    id: UUID
    name: str
    description: str | None
    industry: str | None
    brief: dict[str, Any]
    status: str
    current_iteration: int
    max_iterations: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DiscoveryChatRequest(BaseModel):
    """One user turn of the discovery conversation."""

    project_id: UUID
    message: str = Field(min_length=1, max_length=4000)
    history: list[dict[str, str]] = Field(default_factory=list, max_length=50)


class DiscoveryChatResponse(BaseModel):
    """Assistant reply plus the merged company profile."""

    agent_execution_id: UUID
    reply: str
    profile: dict[str, Any]
    completeness: int
    completed_sections: list[str]
    warning: str | None = None
