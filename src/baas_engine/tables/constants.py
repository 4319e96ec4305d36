"""The four generated columns every user table carries."""

from dataclasses import dataclass
from typing import Optional

from baas_engine.tenantdb.ddl import ColumnDefinition
from baas_engine.tenantdb.types import PostgresColumnType

ID_COLUMN = "id"
CREATED_AT_COLUMN = "created_at"
UPDATED_AT_COLUMN = "updated_at"
CREATOR_COLUMN = "creator"


@dataclass(frozen=True)
class GeneratedColumn:
    name: str
    pg_column_identifier: str
    pg_type: PostgresColumnType
    required: bool
    primary: bool = False
    default: Optional[str] = None

    def definition(self) -> ColumnDefinition:
        return ColumnDefinition(
            identifier=self.pg_column_identifier,
            column_type=self.pg_type,
            required=self.required,
            default=self.default,
        )


GENERATED_COLUMNS: tuple[GeneratedColumn, ...] = (
    GeneratedColumn("ID", ID_COLUMN, PostgresColumnType.SERIAL, required=True, primary=True),
    GeneratedColumn(
        "Created At", CREATED_AT_COLUMN, PostgresColumnType.TIMESTAMPTZ,
        required=False, default="now()",
    ),
    GeneratedColumn(
        "Updated At", UPDATED_AT_COLUMN, PostgresColumnType.TIMESTAMPTZ,
        required=False, default="now()",
    ),
    GeneratedColumn("Creator", CREATOR_COLUMN, PostgresColumnType.TEXT, required=True),
)

GENERATED_COLUMN_IDENTIFIERS = frozenset(c.pg_column_identifier for c in GENERATED_COLUMNS)
