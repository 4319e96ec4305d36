"""Pydantic schemas for API token endpoints."""

from datetime import datetime

from pydantic import BaseModel


class ApiTokenResponse(BaseModel):
    id: int
    project_id: int
    token: str
    read_only: bool
    generated_by_user_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
