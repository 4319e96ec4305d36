"""Project lifecycle: tenant schema, gateway exposure and the logical record."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from baas_engine.common.config import BaasSettings
from baas_engine.common.exceptions import BaasError, NotFoundError, ProvisioningError
from baas_engine.crypto.cipher import EncryptedMessage, SecretCipher
from baas_engine.gateway.sync import GatewaySyncCoordinator
from baas_engine.projects.models import ProjectModel
from baas_engine.tenantdb.provisioner import (
    NewSchemaDetails,
    OwnerCredentials,
    SchemaDetails,
    TenantProvisioner,
)

logger = logging.getLogger(__name__)


class ProjectService:
    """Creates and destroys projects together with their tenant schema."""

    def __init__(
        self,
        settings: BaasSettings,
        provisioner: TenantProvisioner,
        gateway_sync: GatewaySyncCoordinator,
        cipher: SecretCipher,
    ):
        self.settings = settings
        self.provisioner = provisioner
        self.gateway_sync = gateway_sync
        self.cipher = cipher

    # ── Create ──

    async def create_project(
        self,
        session: AsyncSession,
        workspace_id: int,
        creator_id: int,
        name: str,
        description: str = "",
    ) -> ProjectModel:
        """Provision the tenant schema, expose it, then commit the project.

        Steps:
        1. Create schema + owner role in the tenant database
        2. Add the schema to the gateway config and reload it
        3. Commit the logical record

        A failure in 2 or 3 drops the schema again before the error surfaces.
        """
        try:
            schema = await self.provisioner.create_tenant(workspace_id)
        except BaasError:
            raise
        except Exception as exc:
            logger.exception(
                "Failed to create tenant schema", extra={"workspace_id": workspace_id}
            )
            raise ProvisioningError("Unable to create the project schema") from exc

        try:
            await self.gateway_sync.add_schema(schema.identifier)
            await self.provisioner.reload_gateway_config()

            encrypted = self.cipher.encrypt(schema.password)
            project = ProjectModel(
                name=name,
                description=description,
                workspace_id=workspace_id,
                creator_id=creator_id,
                pg_schema_identifier=schema.identifier,
                pg_schema_owner=schema.owner,
                pg_schema_owner_password=encrypted.payload,
                pg_schema_owner_password_iv=encrypted.iv,
            )
            session.add(project)
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.exception(
                "Project creation failed after schema was created",
                extra={"schema": schema.identifier},
            )
            await self._compensate_create(schema)
            if isinstance(exc, BaasError):
                raise
            raise ProvisioningError("Unable to create the project") from exc

        logger.info(
            "Project created",
            extra={"project_id": project.id, "schema": schema.identifier},
        )
        return project

    async def _compensate_create(self, schema: NewSchemaDetails) -> None:
        try:
            await self.provisioner.drop_tenant(schema, cascade=True)
        except Exception:
            logger.exception(
                "Compensation failed: tenant schema could not be dropped, manual cleanup required",
                extra={"schema": schema.identifier},
            )
        try:
            if await self.gateway_sync.remove_schema(schema.identifier):
                await self.provisioner.reload_gateway_config()
        except Exception:
            logger.exception(
                "Compensation failed: schema could not be removed from gateway config",
                extra={"schema": schema.identifier},
            )

    # ── Read ──

    async def get_project(
        self, session: AsyncSession, workspace_id: int, project_id: int
    ) -> ProjectModel:
        project = await session.get(ProjectModel, project_id)
        if project is None or project.workspace_id != workspace_id:
            raise NotFoundError("Project not found")
        return project

    async def get_by_id(self, session: AsyncSession, project_id: int) -> ProjectModel | None:
        return await session.get(ProjectModel, project_id)

    async def list_projects(
        self, session: AsyncSession, workspace_id: int
    ) -> list[ProjectModel]:
        result = await session.execute(
            select(ProjectModel)
            .where(ProjectModel.workspace_id == workspace_id)
            .order_by(ProjectModel.id)
        )
        return list(result.scalars().all())

    def owner_credentials(self, project: ProjectModel) -> OwnerCredentials:
        password = self.cipher.decrypt(
            EncryptedMessage(
                iv=project.pg_schema_owner_password_iv,
                payload=project.pg_schema_owner_password,
            )
        )
        return OwnerCredentials(owner=project.pg_schema_owner, password=password)

    # ── Delete ──

    async def delete_project(
        self, session: AsyncSession, workspace_id: int, project_id: int
    ) -> None:
        """Delete the record, drop the tenant schema, then un-expose it.

        Tables, columns and the API token go with the record via cascade.
        A failed drop rolls the record removal back. Once the schema is gone
        the deletion is committed; a gateway edit or reload failure after
        that is logged and left for the operator.
        """
        project = await self.get_project(session, workspace_id, project_id)
        schema = SchemaDetails(
            identifier=project.pg_schema_identifier, owner=project.pg_schema_owner
        )

        await session.delete(project)
        await session.flush()
        try:
            await self.provisioner.drop_tenant(schema, cascade=True)
        except BaasError:
            raise
        except Exception as exc:
            logger.exception("Failed to drop tenant schema", extra={"schema": schema.identifier})
            raise ProvisioningError("Unable to drop the project schema") from exc
        await session.commit()
        logger.info(
            "Project deleted", extra={"project_id": project_id, "schema": schema.identifier}
        )

        try:
            await self.gateway_sync.remove_schema(schema.identifier)
            await self.provisioner.reload_gateway_config()
        except Exception:
            logger.exception(
                "Gateway still lists deleted schema, manual cleanup required",
                extra={"schema": schema.identifier},
            )
