"""Project API router."""

from fastapi import APIRouter, Depends

from baas_engine.common.security import AuthedUser, require_user, require_workspace_access
from baas_engine.projects.schemas import ProjectCreate, ProjectResponse

router = APIRouter(prefix="/workspaces/{workspace_id}/projects")


def _get_service():
    from baas_engine.deps import get_project_service
    return get_project_service()


def _get_db():
    from baas_engine.deps import get_db
    return get_db()


@router.post("", response_model=ProjectResponse, status_code=201)
async def create_project(
    workspace_id: int, body: ProjectCreate, user: AuthedUser = Depends(require_user)
):
    require_workspace_access(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        project = await svc.create_project(
            session,
            workspace_id=workspace_id,
            creator_id=user.user_id,
            name=body.name,
            description=body.description,
        )
        return ProjectResponse.model_validate(project)


@router.get("", response_model=list[ProjectResponse])
async def list_projects(workspace_id: int, user: AuthedUser = Depends(require_user)):
    require_workspace_access(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        projects = await svc.list_projects(session, workspace_id)
        return [ProjectResponse.model_validate(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    workspace_id: int, project_id: int, user: AuthedUser = Depends(require_user)
):
    require_workspace_access(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        project = await svc.get_project(session, workspace_id, project_id)
        return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    workspace_id: int, project_id: int, user: AuthedUser = Depends(require_user)
):
    require_workspace_access(user, workspace_id)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_project(session, workspace_id, project_id)
