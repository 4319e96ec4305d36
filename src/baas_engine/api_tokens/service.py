"""Per-project read-only API tokens."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from baas_engine.api_tokens.models import ApiTokenModel
from baas_engine.common.exceptions import NotFoundError
from baas_engine.common.models import utcnow
from baas_engine.crypto.tokens import CredentialMinter
from baas_engine.projects.service import ProjectService

logger = logging.getLogger(__name__)


class ApiTokenService:
    """One token per project. Issuing again replaces the stored token."""

    def __init__(self, minter: CredentialMinter, project_service: ProjectService):
        self.minter = minter
        self.projects = project_service

    async def get_project_token(
        self, session: AsyncSession, workspace_id: int, project_id: int
    ) -> ApiTokenModel | None:
        await self.projects.get_project(session, workspace_id, project_id)
        result = await session.execute(
            select(ApiTokenModel).where(ApiTokenModel.project_id == project_id)
        )
        return result.scalar_one_or_none()

    async def issue_token(
        self,
        session: AsyncSession,
        workspace_id: int,
        project_id: int,
        generated_by_user_id: int,
    ) -> ApiTokenModel:
        """Mint a fresh read-only token for the project's owner role and upsert it."""
        project = await self.projects.get_project(session, workspace_id, project_id)
        token = self.minter.sign_read_only_api_token(project.pg_schema_owner)

        existing = await self.get_project_token(session, workspace_id, project_id)
        if existing is None:
            existing = ApiTokenModel(
                project_id=project.id,
                token=token,
                read_only=True,
                generated_by_user_id=generated_by_user_id,
            )
            session.add(existing)
        else:
            existing.token = token
            existing.read_only = True
            existing.generated_by_user_id = generated_by_user_id
            existing.updated_at = utcnow()
        await session.flush()
        logger.info("API token issued", extra={"project_id": project.id})
        return existing

    async def delete_token(
        self, session: AsyncSession, workspace_id: int, project_id: int, token_id: int
    ) -> None:
        await self.projects.get_project(session, workspace_id, project_id)
        token = await session.get(ApiTokenModel, token_id)
        if token is None or token.project_id != project_id:
            raise NotFoundError("API token not found")
        await session.delete(token)
        await session.flush()
        logger.info("API token deleted", extra={"project_id": project_id})

    async def get_by_token(self, session: AsyncSession, token: str) -> ApiTokenModel | None:
        result = await session.execute(
            select(ApiTokenModel).where(ApiTokenModel.token == token)
        )
        return result.scalar_one_or_none()
