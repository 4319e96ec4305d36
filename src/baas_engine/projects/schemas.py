"""Pydantic schemas for project endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from baas_engine.tenantdb.identifiers import is_valid_name


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=63)
    description: str = Field(default="", max_length=2000)

    @field_validator("name")
    @classmethod
    def _valid_name(cls, value: str) -> str:
        if not is_valid_name(value):
            raise ValueError(
                "name must not start with a digit and may only contain letters, "
                "digits, underscores, spaces and hyphens"
            )
        return value.strip()


class ProjectResponse(BaseModel):
    id: int
    name: str
    description: str
    workspace_id: int
    creator_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
