"""TenantProvisioner: physical schemas, roles, tables and columns in the tenant database."""

import logging
import secrets
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from baas_engine.common.config import BaasSettings
from baas_engine.common.exceptions import DuplicateTableError
from baas_engine.tenantdb import ddl
from baas_engine.tenantdb.identifiers import validate_identifier

logger = logging.getLogger(__name__)

DRIVER = "postgresql+asyncpg"
DUPLICATE_TABLE_SQLSTATE = "42P07"
RELOAD_CONFIG = "reload config"
RELOAD_SCHEMA = "reload schema"


@dataclass(frozen=True)
class SchemaDetails:
    identifier: str
    owner: str


@dataclass(frozen=True)
class NewSchemaDetails(SchemaDetails):
    password: str


@dataclass(frozen=True)
class OwnerCredentials:
    owner: str
    password: str


@dataclass(frozen=True)
class TableDetails:
    schema: str
    identifier: str


def generate_schema_identifier(workspace_id: int) -> str:
    """Schema/role name from the workspace id and 12 random bytes."""
    return f"ws_{int(workspace_id)}_{secrets.token_hex(12)}"


def _sqlstate(exc: DBAPIError) -> str | None:
    for candidate in (exc.orig, getattr(exc.orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


class TenantProvisioner:
    """Runs tenant DDL with two privilege tiers.

    Schema/role management, drops, column changes and gateway notifications
    go through a pooled admin engine. Table creation runs on a short-lived
    connection authenticated as the tenant owner so the owner owns the table.
    """

    def __init__(self, settings: BaasSettings, engine: AsyncEngine | None = None):
        self.settings = settings
        self._engine = engine

    def _url(self, username: str, password: str) -> URL:
        return URL.create(
            DRIVER,
            username=username,
            password=password,
            host=self.settings.tenant_db_host,
            port=self.settings.tenant_db_port,
            database=self.settings.tenant_db_name,
        )

    @property
    def admin_engine(self) -> AsyncEngine:
        if self._engine is None:
            min_conn = self.settings.tenant_db_min_conn
            self._engine = create_async_engine(
                self._url(
                    self.settings.tenant_db_admin_user,
                    self.settings.tenant_db_admin_password,
                ),
                pool_size=min_conn,
                max_overflow=max(self.settings.tenant_db_max_conn - min_conn, 0),
                pool_pre_ping=True,
            )
        return self._engine

    def _create_owner_engine(self, credentials: OwnerCredentials) -> AsyncEngine:
        return create_async_engine(
            self._url(credentials.owner, credentials.password), poolclass=NullPool
        )

    async def _execute(self, engine: AsyncEngine, statements: list[str]) -> None:
        """Run statements in a single transaction."""
        for statement in statements:
            ddl.check_sql_safe(statement)
        async with engine.begin() as conn:
            for statement in statements:
                await conn.execute(text(statement))

    async def _run_as_owner(self, credentials: OwnerCredentials, statements: list[str]) -> None:
        engine = self._create_owner_engine(credentials)
        try:
            await self._execute(engine, statements)
        finally:
            await engine.dispose()

    # ── Tenants ──

    async def create_tenant(self, workspace_id: int) -> NewSchemaDetails:
        """Create a schema and the login role that owns it."""
        identifier = generate_schema_identifier(workspace_id)
        details = NewSchemaDetails(
            identifier=identifier,
            owner=identifier,
            password=secrets.token_hex(16),
        )
        await self._execute(
            self.admin_engine,
            ddl.create_schema_statements(details.identifier, details.owner, details.password),
        )
        logger.info(
            "Tenant schema created",
            extra={"schema": details.identifier, "workspace_id": workspace_id},
        )
        return details

    async def drop_tenant(self, schema: SchemaDetails, cascade: bool = True) -> None:
        await self._execute(
            self.admin_engine,
            ddl.drop_schema_statements(schema.identifier, schema.owner, cascade),
        )
        logger.info(
            "Tenant schema dropped",
            extra={"schema": schema.identifier, "cascade": cascade},
        )

    # ── Tables ──

    async def create_table(
        self, table: ddl.TableDefinition, credentials: OwnerCredentials
    ) -> TableDetails:
        try:
            await self._run_as_owner(credentials, ddl.create_table_statements(table))
        except DBAPIError as exc:
            if _sqlstate(exc) == DUPLICATE_TABLE_SQLSTATE:
                raise DuplicateTableError(table.schema, table.identifier) from exc
            raise
        return TableDetails(schema=table.schema, identifier=table.identifier)

    async def drop_table(self, table: TableDetails) -> None:
        await self._execute(
            self.admin_engine, [ddl.drop_table_statement(table.schema, table.identifier)]
        )

    # ── Columns ──

    async def add_column(self, table: TableDetails, column: ddl.ColumnDefinition) -> None:
        await self._execute(
            self.admin_engine,
            [ddl.add_column_statement(table.schema, table.identifier, column)],
        )

    async def drop_column(self, table: TableDetails, column_identifier: str) -> None:
        await self._execute(
            self.admin_engine,
            [ddl.drop_column_statement(table.schema, table.identifier, column_identifier)],
        )

    # ── Gateway notifications ──

    async def reload_gateway_config(self) -> None:
        await self._notify(RELOAD_CONFIG)

    async def reload_gateway_schema(self) -> None:
        await self._notify(RELOAD_SCHEMA)

    async def _notify(self, payload: str) -> None:
        channel = validate_identifier(self.settings.gateway_reload_channel)
        await self._execute(self.admin_engine, [ddl.notify_statement(channel, payload)])
        logger.info("Gateway notified", extra={"channel": channel, "payload": payload})

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
