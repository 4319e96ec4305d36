"""Pydantic schemas for table and column endpoints."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, Field

from baas_engine.tenantdb.identifiers import is_valid_name
from baas_engine.tenantdb.types import ColumnType, PostgresColumnType

_NAME_RULE = (
    "must not start with a digit and may only contain letters, digits, "
    "underscores, spaces and hyphens"
)


def _check_name(value: str) -> str:
    if not is_valid_name(value):
        raise ValueError(f"name {_NAME_RULE}")
    return value.strip()


DisplayName = Annotated[str, Field(min_length=1, max_length=63), AfterValidator(_check_name)]


class ColumnCreate(BaseModel):
    name: DisplayName
    description: str = Field(default="", max_length=2000)
    column_type: ColumnType
    required: bool = False


class AddColumnRequest(BaseModel):
    """Added columns are always nullable since the table may hold rows."""
    name: DisplayName
    description: str = Field(default="", max_length=2000)
    column_type: ColumnType


class TableCreate(BaseModel):
    name: DisplayName
    description: str = Field(default="", max_length=2000)
    columns: list[ColumnCreate] = Field(default_factory=list)


class ColumnResponse(BaseModel):
    id: int
    name: str
    description: str
    column_type: ColumnType
    pg_column_identifier: str
    required: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GeneratedColumnResponse(BaseModel):
    name: str
    pg_column_identifier: str
    column_type: ColumnType
    pg_type: PostgresColumnType
    required: bool
    primary: bool


class TableResponse(BaseModel):
    id: int
    project_id: int
    name: str
    description: str
    pg_table_identifier: str
    creator_id: int
    columns: list[ColumnResponse]
    generated_columns: list[GeneratedColumnResponse]
    created_at: datetime
    updated_at: datetime
