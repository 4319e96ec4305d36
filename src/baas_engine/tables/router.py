"""Table and column API router."""

from fastapi import APIRouter, Depends

from baas_engine.common.security import (
    AuthedUser,
    require_admin_rights,
    require_user,
    require_workspace_access,
)
from baas_engine.tables.constants import GENERATED_COLUMNS
from baas_engine.tables.models import TableModel
from baas_engine.tables.schemas import (
    AddColumnRequest,
    ColumnResponse,
    GeneratedColumnResponse,
    TableCreate,
    TableResponse,
)
from baas_engine.tenantdb.types import from_postgres_type

router = APIRouter(prefix="/workspaces/{workspace_id}/projects/{project_id}/tables")


def _get_table_service():
    from baas_engine.deps import get_table_service
    return get_table_service()


def _get_column_service():
    from baas_engine.deps import get_column_service
    return get_column_service()


def _get_db():
    from baas_engine.deps import get_db
    return get_db()


def _generated_columns() -> list[GeneratedColumnResponse]:
    return [
        GeneratedColumnResponse(
            name=c.name,
            pg_column_identifier=c.pg_column_identifier,
            column_type=from_postgres_type(c.pg_type),
            pg_type=c.pg_type,
            required=c.required,
            primary=c.primary,
        )
        for c in GENERATED_COLUMNS
    ]


def _table_response(table: TableModel) -> TableResponse:
    return TableResponse(
        id=table.id,
        project_id=table.project_id,
        name=table.name,
        description=table.description,
        pg_table_identifier=table.pg_table_identifier,
        creator_id=table.creator_id,
        columns=[ColumnResponse.model_validate(c) for c in table.columns],
        generated_columns=_generated_columns(),
        created_at=table.created_at,
        updated_at=table.updated_at,
    )


@router.post("", response_model=TableResponse, status_code=201)
async def create_table(
    workspace_id: int,
    project_id: int,
    body: TableCreate,
    user: AuthedUser = Depends(require_user),
):
    require_admin_rights(user, workspace_id)
    svc = _get_table_service()
    db = _get_db()
    async with db.get_session() as session:
        table = await svc.create_table(
            session, workspace_id, project_id, creator_id=user.user_id, body=body
        )
        return _table_response(table)


@router.get("", response_model=list[TableResponse])
async def list_tables(
    workspace_id: int, project_id: int, user: AuthedUser = Depends(require_user)
):
    require_workspace_access(user, workspace_id)
    svc = _get_table_service()
    db = _get_db()
    async with db.get_session() as session:
        tables = await svc.list_tables(session, workspace_id, project_id)
        return [_table_response(t) for t in tables]


@router.get("/{table_id}", response_model=TableResponse)
async def get_table(
    workspace_id: int,
    project_id: int,
    table_id: int,
    user: AuthedUser = Depends(require_user),
):
    require_workspace_access(user, workspace_id)
    svc = _get_table_service()
    db = _get_db()
    async with db.get_session() as session:
        table = await svc.get_table(session, workspace_id, project_id, table_id)
        return _table_response(table)


@router.delete("/{table_id}", status_code=204)
async def delete_table(
    workspace_id: int,
    project_id: int,
    table_id: int,
    user: AuthedUser = Depends(require_user),
):
    require_admin_rights(user, workspace_id)
    svc = _get_table_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.delete_table(session, workspace_id, project_id, table_id)


@router.post("/{table_id}/columns", response_model=ColumnResponse, status_code=201)
async def add_column(
    workspace_id: int,
    project_id: int,
    table_id: int,
    body: AddColumnRequest,
    user: AuthedUser = Depends(require_user),
):
    require_admin_rights(user, workspace_id)
    svc = _get_column_service()
    db = _get_db()
    async with db.get_session() as session:
        column = await svc.add_column(session, workspace_id, project_id, table_id, body)
        return ColumnResponse.model_validate(column)


@router.delete("/{table_id}/columns/{column_id}", status_code=204)
async def drop_column(
    workspace_id: int,
    project_id: int,
    table_id: int,
    column_id: int,
    user: AuthedUser = Depends(require_user),
):
    require_admin_rights(user, workspace_id)
    svc = _get_column_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.drop_column(session, workspace_id, project_id, table_id, column_id)
