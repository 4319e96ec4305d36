"""Physical details of projects and tables needed to build gateway requests."""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from baas_engine.common.exceptions import NotFoundError
from baas_engine.crypto.cipher import EncryptedMessage
from baas_engine.crypto.tokens import CredentialMinter
from baas_engine.projects.models import ProjectModel
from baas_engine.tables.models import TableModel


@dataclass(frozen=True)
class ProjectPgDetails:
    project_id: int
    workspace_id: int
    schema: str
    owner: str
    encrypted_password: EncryptedMessage


@dataclass(frozen=True)
class TablePgDetails(ProjectPgDetails):
    table_id: int
    pg_table_identifier: str


def _project_details(project: ProjectModel) -> dict:
    return dict(
        project_id=project.id,
        workspace_id=project.workspace_id,
        schema=project.pg_schema_identifier,
        owner=project.pg_schema_owner,
        encrypted_password=EncryptedMessage(
            iv=project.pg_schema_owner_password_iv,
            payload=project.pg_schema_owner_password,
        ),
    )


class UserDataService:
    """Resolves physical identifiers and mints per-request gateway tokens."""

    def __init__(self, minter: CredentialMinter):
        self.minter = minter

    async def get_project_pg_details(
        self, session: AsyncSession, project_id: int
    ) -> ProjectPgDetails:
        project = await session.get(ProjectModel, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return ProjectPgDetails(**_project_details(project))

    async def get_table_pg_details(
        self, session: AsyncSession, project_id: int, table_id: int
    ) -> TablePgDetails:
        result = await session.execute(
            select(TableModel, ProjectModel)
            .join(ProjectModel, TableModel.project_id == ProjectModel.id)
            .where(TableModel.id == table_id, ProjectModel.id == project_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Table not found")
        table, project = row
        return TablePgDetails(
            **_project_details(project),
            table_id=table.id,
            pg_table_identifier=table.pg_table_identifier,
        )

    def ownership_token(self, details: ProjectPgDetails, email: str) -> str:
        """Gateway token acting as the project's owner role for ``email``."""
        return self.minter.sign_ownership_token(details.owner, email)
