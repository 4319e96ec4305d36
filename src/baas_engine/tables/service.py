"""Table and column provisioning on top of a project's tenant schema."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from baas_engine.common.config import BaasSettings
from baas_engine.common.exceptions import (
    BaasError,
    ConflictError,
    DuplicateTableError,
    NotFoundError,
    ProvisioningError,
    ValidationError,
)
from baas_engine.projects.models import ProjectModel
from baas_engine.projects.service import ProjectService
from baas_engine.tables.constants import (
    CREATOR_COLUMN,
    GENERATED_COLUMN_IDENTIFIERS,
    GENERATED_COLUMNS,
    ID_COLUMN,
)
from baas_engine.tables.models import ColumnModel, TableModel
from baas_engine.tables.schemas import AddColumnRequest, ColumnCreate, TableCreate
from baas_engine.tenantdb.ddl import ColumnDefinition, TableDefinition
from baas_engine.tenantdb.identifiers import name_to_identifier
from baas_engine.tenantdb.provisioner import TableDetails, TenantProvisioner
from baas_engine.tenantdb.types import to_postgres_type

logger = logging.getLogger(__name__)


def table_details(project: ProjectModel, table: TableModel) -> TableDetails:
    return TableDetails(schema=project.pg_schema_identifier, identifier=table.pg_table_identifier)


async def reload_after_commit(provisioner: TenantProvisioner, details: TableDetails) -> None:
    """Ask the gateway to reload its schema cache; failures are only logged."""
    try:
        await provisioner.reload_gateway_schema()
    except Exception:
        logger.exception(
            "Gateway schema reload failed after commit",
            extra={"schema": details.schema, "table": details.identifier},
        )


def column_identifiers(columns: list[ColumnCreate]) -> list[str]:
    """Map column names to identifiers, rejecting collisions up front."""
    identifiers: list[str] = []
    errors: dict[str, list[str]] = {}
    for index, column in enumerate(columns):
        field = f"columns.{index}.name"
        identifier = name_to_identifier(column.name, field=field)
        if identifier in GENERATED_COLUMN_IDENTIFIERS:
            errors[field] = [
                f'"{column.name}" maps to "{identifier}" which is a generated column'
            ]
        elif identifier in identifiers:
            errors[field] = [
                f'"{column.name}" maps to "{identifier}" which is used by another column'
            ]
        identifiers.append(identifier)
    if errors:
        raise ValidationError(field_errors=errors)
    return identifiers


class TableService:
    """Creates physical tables as the tenant owner, then records them."""

    def __init__(
        self,
        settings: BaasSettings,
        provisioner: TenantProvisioner,
        project_service: ProjectService,
    ):
        self.settings = settings
        self.provisioner = provisioner
        self.projects = project_service

    async def create_table(
        self,
        session: AsyncSession,
        workspace_id: int,
        project_id: int,
        creator_id: int,
        body: TableCreate,
    ) -> TableModel:
        project = await self.projects.get_project(session, workspace_id, project_id)
        identifier = name_to_identifier(body.name)
        identifiers = column_identifiers(body.columns)

        if await self._find_by_identifier(session, project.id, identifier) is not None:
            raise ConflictError(
                f'"{body.name}" maps to table name "{identifier}" which already exists'
            )

        definition = TableDefinition(
            schema=project.pg_schema_identifier,
            identifier=identifier,
            columns=[c.definition() for c in GENERATED_COLUMNS] + [
                ColumnDefinition(
                    identifier=col_identifier,
                    column_type=to_postgres_type(column.column_type),
                    required=column.required,
                )
                for col_identifier, column in zip(identifiers, body.columns)
            ],
            primary_key=ID_COLUMN,
            creator_column=CREATOR_COLUMN,
        )
        credentials = self.projects.owner_credentials(project)

        try:
            details = await self.provisioner.create_table(definition, credentials)
        except DuplicateTableError as exc:
            raise ConflictError(
                f'"{body.name}" maps to table name "{identifier}" which already exists'
            ) from exc
        except BaasError:
            raise
        except Exception as exc:
            logger.exception(
                "Failed to create table",
                extra={"schema": project.pg_schema_identifier, "table": identifier},
            )
            raise ProvisioningError("Unable to create the table") from exc

        try:
            await self.provisioner.reload_gateway_schema()
            table = TableModel(
                project_id=project.id,
                name=body.name,
                description=body.description,
                pg_table_identifier=identifier,
                creator_id=creator_id,
                columns=[
                    ColumnModel(
                        name=column.name,
                        description=column.description,
                        column_type=column.column_type.value,
                        pg_column_identifier=col_identifier,
                        required=column.required,
                    )
                    for col_identifier, column in zip(identifiers, body.columns)
                ],
            )
            session.add(table)
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.exception(
                "Table record could not be saved after physical creation",
                extra={"schema": details.schema, "table": details.identifier},
            )
            await self._compensate_create(details)
            if isinstance(exc, BaasError):
                raise
            raise ProvisioningError("Unable to create the table") from exc

        logger.info(
            "Table created",
            extra={"table_id": table.id, "schema": details.schema, "table": details.identifier},
        )
        return table

    async def _compensate_create(self, details: TableDetails) -> None:
        try:
            await self.provisioner.drop_table(details)
            await self.provisioner.reload_gateway_schema()
        except Exception:
            logger.exception(
                "Compensation failed: table could not be dropped, manual cleanup required",
                extra={"schema": details.schema, "table": details.identifier},
            )

    async def _find_by_identifier(
        self, session: AsyncSession, project_id: int, identifier: str
    ) -> TableModel | None:
        result = await session.execute(
            select(TableModel).where(
                TableModel.project_id == project_id,
                TableModel.pg_table_identifier == identifier,
            )
        )
        return result.scalar_one_or_none()

    async def get_table(
        self, session: AsyncSession, workspace_id: int, project_id: int, table_id: int
    ) -> TableModel:
        await self.projects.get_project(session, workspace_id, project_id)
        result = await session.execute(
            select(TableModel)
            .options(selectinload(TableModel.columns))
            .where(TableModel.id == table_id, TableModel.project_id == project_id)
        )
        table = result.scalar_one_or_none()
        if table is None:
            raise NotFoundError("Table not found")
        return table

    async def list_tables(
        self, session: AsyncSession, workspace_id: int, project_id: int
    ) -> list[TableModel]:
        await self.projects.get_project(session, workspace_id, project_id)
        result = await session.execute(
            select(TableModel)
            .options(selectinload(TableModel.columns))
            .where(TableModel.project_id == project_id)
            .order_by(TableModel.id)
        )
        return list(result.scalars().all())

    async def delete_table(
        self, session: AsyncSession, workspace_id: int, project_id: int, table_id: int
    ) -> None:
        """Remove the record, drop the physical table, then commit.

        A failed drop rolls the record removal back.
        """
        project = await self.projects.get_project(session, workspace_id, project_id)
        table = await self.get_table(session, workspace_id, project_id, table_id)
        details = table_details(project, table)

        await session.delete(table)
        await session.flush()
        try:
            await self.provisioner.drop_table(details)
        except BaasError:
            raise
        except Exception as exc:
            logger.exception(
                "Failed to drop table",
                extra={"schema": details.schema, "table": details.identifier},
            )
            raise ProvisioningError("Unable to drop the table") from exc
        await session.commit()
        await reload_after_commit(self.provisioner, details)
        logger.info("Table deleted", extra={"table_id": table_id, "table": details.identifier})


class ColumnService:
    """Adds and drops user columns on existing tables."""

    def __init__(
        self,
        settings: BaasSettings,
        provisioner: TenantProvisioner,
        table_service: TableService,
    ):
        self.settings = settings
        self.provisioner = provisioner
        self.tables = table_service

    async def add_column(
        self,
        session: AsyncSession,
        workspace_id: int,
        project_id: int,
        table_id: int,
        body: AddColumnRequest,
    ) -> ColumnModel:
        project = await self.tables.projects.get_project(session, workspace_id, project_id)
        table = await self.tables.get_table(session, workspace_id, project_id, table_id)
        identifier = name_to_identifier(body.name)

        taken = GENERATED_COLUMN_IDENTIFIERS | {c.pg_column_identifier for c in table.columns}
        if identifier in taken:
            raise ConflictError(
                f'"{body.name}" maps to column name "{identifier}" which already exists'
            )

        details = table_details(project, table)
        definition = ColumnDefinition(
            identifier=identifier,
            column_type=to_postgres_type(body.column_type),
            required=False,
        )
        try:
            await self.provisioner.add_column(details, definition)
        except BaasError:
            raise
        except Exception as exc:
            logger.exception(
                "Failed to add column",
                extra={"table": details.identifier, "column": identifier},
            )
            raise ProvisioningError("Unable to add the column") from exc

        try:
            await self.provisioner.reload_gateway_schema()
            column = ColumnModel(
                table_id=table.id,
                name=body.name,
                description=body.description,
                column_type=body.column_type.value,
                pg_column_identifier=identifier,
                required=False,
            )
            session.add(column)
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.exception(
                "Column record could not be saved after physical creation",
                extra={"table": details.identifier, "column": identifier},
            )
            try:
                await self.provisioner.drop_column(details, identifier)
                await self.provisioner.reload_gateway_schema()
            except Exception:
                logger.exception(
                    "Compensation failed: column could not be dropped, manual cleanup required",
                    extra={"table": details.identifier, "column": identifier},
                )
            if isinstance(exc, BaasError):
                raise
            raise ProvisioningError("Unable to add the column") from exc
        return column

    async def drop_column(
        self,
        session: AsyncSession,
        workspace_id: int,
        project_id: int,
        table_id: int,
        column_id: int,
    ) -> None:
        """Remove the record, drop the physical column, then commit."""
        project = await self.tables.projects.get_project(session, workspace_id, project_id)
        table = await self.tables.get_table(session, workspace_id, project_id, table_id)
        column = next((c for c in table.columns if c.id == column_id), None)
        if column is None:
            raise NotFoundError("Column not found")

        details = table_details(project, table)
        identifier = column.pg_column_identifier
        table.columns.remove(column)
        await session.flush()
        try:
            await self.provisioner.drop_column(details, identifier)
        except BaasError:
            raise
        except Exception as exc:
            logger.exception(
                "Failed to drop column",
                extra={"table": details.identifier, "column": identifier},
            )
            raise ProvisioningError("Unable to drop the column") from exc
        await session.commit()
        await reload_after_commit(self.provisioner, details)
