"""API token router: read, issue and revoke a project's external token."""

from typing import Optional

from fastapi import APIRouter, Depends

from baas_engine.api_tokens.schemas import ApiTokenResponse
from baas_engine.common.security import (
    AuthedUser,
    require_admin_rights,
    require_user,
    require_workspace_access,
)

router = APIRouter(prefix="/workspaces/{workspace_id}/projects/{project_id}/api-tokens")


def _get_service():
    from baas_engine.deps import get_api_token_service
    return get_api_token_service()


def _get_db():
    from baas_engine.deps import get_db
    return get_db()


@router.get("", response_model=Optional[ApiTokenResponse])
async def get_api_token(
    workspace_id: int, project_id: int, user: AuthedUser = Depends(require_user)
):
    require_workspace_access(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        token = await svc.get_project_token(session, workspace_id, project_id)
        return ApiTokenResponse.model_validate(token) if token else None


@router.post("", response_model=ApiTokenResponse, status_code=201)
async def issue_api_token(
    workspace_id: int, project_id: int, user: AuthedUser = Depends(require_user)
):
    require_admin_rights(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        token = await svc.issue_token(
            session, workspace_id, project_id, generated_by_user_id=user.user_id
        )
        return ApiTokenResponse.model_validate(token)


@router.delete("/{token_id}", status_code=204)
async def delete_api_token(
    workspace_id: int,
    project_id: int,
    token_id: int,
    user: AuthedUser = Depends(require_user),
):
    require_admin_rights(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_token(session, workspace_id, project_id, token_id)
