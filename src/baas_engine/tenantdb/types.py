"""Column type catalog and its mapping to physical Postgres types."""

import enum

from baas_engine.common.exceptions import UnhandledTypeError


class ColumnType(str, enum.Enum):
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    DATETIME = "DATETIME"


class PostgresColumnType(str, enum.Enum):
    SERIAL = "SERIAL"
    INTEGER = "INTEGER"
    FLOAT = "FLOAT"
    TEXT = "TEXT"
    BOOLEAN = "BOOLEAN"
    TIMESTAMPTZ = "TIMESTAMPTZ"


_TO_POSTGRES = {
    ColumnType.INTEGER: PostgresColumnType.INTEGER,
    ColumnType.FLOAT: PostgresColumnType.FLOAT,
    ColumnType.TEXT: PostgresColumnType.TEXT,
    ColumnType.BOOLEAN: PostgresColumnType.BOOLEAN,
    ColumnType.DATETIME: PostgresColumnType.TIMESTAMPTZ,
}

_FROM_POSTGRES = {pg: ct for ct, pg in _TO_POSTGRES.items()}
_FROM_POSTGRES[PostgresColumnType.SERIAL] = ColumnType.INTEGER


def to_postgres_type(column_type: ColumnType | str) -> PostgresColumnType:
    try:
        return _TO_POSTGRES[ColumnType(column_type)]
    except (KeyError, ValueError):
        raise UnhandledTypeError(str(column_type)) from None


def from_postgres_type(pg_type: PostgresColumnType | str) -> ColumnType:
    try:
        return _FROM_POSTGRES[PostgresColumnType(pg_type)]
    except (KeyError, ValueError):
        raise UnhandledTypeError(str(pg_type)) from None
