"""DDL statement builders for tenant schemas, tables and columns.

Builders only take identifiers that already passed the identifier grammar,
and every statement goes through ``check_sql_safe`` before execution.
"""

from dataclasses import dataclass, field
from typing import Optional

from baas_engine.common.exceptions import UnsafeQueryError
from baas_engine.tenantdb.identifiers import MAX_IDENTIFIER_LENGTH, validate_identifier
from baas_engine.tenantdb.types import PostgresColumnType

ROW_OWNER_CLAIM = "current_setting('request.jwt.claims', true)::json->>'email'"

_SELECT_POLICY_SUFFIX = "_sel_policy"
_MODIFY_POLICY_SUFFIX = "_mod_policy"


@dataclass(frozen=True)
class ColumnDefinition:
    identifier: str
    column_type: PostgresColumnType
    required: bool = False
    default: Optional[str] = None


@dataclass(frozen=True)
class TableDefinition:
    schema: str
    identifier: str
    columns: list[ColumnDefinition] = field(default_factory=list)
    primary_key: str = "id"
    creator_column: str = "creator"


def check_sql_safe(statement: str) -> str:
    if ";" in statement:
        raise UnsafeQueryError()
    return statement


def column_sql(column: ColumnDefinition) -> str:
    parts = [validate_identifier(column.identifier), PostgresColumnType(column.column_type).value]
    if column.required:
        parts.append("NOT NULL")
    if column.default is not None:
        parts.append(f"DEFAULT {column.default}")
    return " ".join(parts)


def qualified(schema: str, table: str) -> str:
    return f"{validate_identifier(schema)}.{validate_identifier(table)}"


def policy_name(table: str, suffix: str) -> str:
    # Postgres truncates names past 63 chars, which would make both policies collide.
    return f"{table[:MAX_IDENTIFIER_LENGTH - len(suffix)]}{suffix}"


def create_schema_statements(schema: str, owner: str, password: str) -> list[str]:
    schema = validate_identifier(schema)
    owner = validate_identifier(owner)
    return [
        f"CREATE ROLE {owner} PASSWORD '{password}' LOGIN",
        f'ALTER ROLE {owner} SET search_path = "{schema}"',
        f"CREATE SCHEMA {schema} AUTHORIZATION {owner}",
    ]


def drop_schema_statements(schema: str, owner: str, cascade: bool) -> list[str]:
    drop_schema = f"DROP SCHEMA {validate_identifier(schema)}"
    if cascade:
        drop_schema += " CASCADE"
    return [drop_schema, f"DROP ROLE {validate_identifier(owner)}"]


def create_table_statements(table: TableDefinition) -> list[str]:
    """CREATE TABLE plus forced row level security and ownership policies."""
    target = qualified(table.schema, table.identifier)
    primary_key = validate_identifier(table.primary_key)
    creator = validate_identifier(table.creator_column)
    column_parts = [column_sql(c) for c in table.columns]
    column_parts.append(f"PRIMARY KEY({primary_key})")

    return [
        f"CREATE TABLE {target} ({', '.join(column_parts)})",
        f"ALTER TABLE {target} ENABLE ROW LEVEL SECURITY",
        f"ALTER TABLE {target} FORCE ROW LEVEL SECURITY",
        (
            f"CREATE POLICY {policy_name(table.identifier, _SELECT_POLICY_SUFFIX)} "
            f"ON {target} FOR SELECT USING (true)"
        ),
        (
            f"CREATE POLICY {policy_name(table.identifier, _MODIFY_POLICY_SUFFIX)} "
            f"ON {target} USING ({creator} = {ROW_OWNER_CLAIM})"
        ),
    ]


def drop_table_statement(schema: str, table: str) -> str:
    return f"DROP TABLE {qualified(schema, table)}"


def add_column_statement(schema: str, table: str, column: ColumnDefinition) -> str:
    return f"ALTER TABLE {qualified(schema, table)} ADD COLUMN {column_sql(column)}"


def drop_column_statement(schema: str, table: str, column: str) -> str:
    return f"ALTER TABLE {qualified(schema, table)} DROP COLUMN {validate_identifier(column)}"


def notify_statement(channel: str, payload: str) -> str:
    return f"NOTIFY {validate_identifier(channel)}, '{payload}'"
