"""Data-plane routes proxied to the REST gateway."""

import json
from typing import Any, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Query, Request

from baas_engine.common.exceptions import NotFoundError, ValidationError
from baas_engine.common.security import (
    ApiUserContext,
    AuthedUser,
    require_api_user,
    require_user,
)
from baas_engine.gateway.mediator import WRITE_METHODS, GatewayRequest
from baas_engine.gateway.openapi import DATA_API_BASE_PATH, openapi_body_rewriter
from baas_engine.user_data.body import check_no_generated_columns, fill_generated_columns

router = APIRouter()

PROXIED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _get_service():
    from baas_engine.deps import get_user_data_service
    return get_user_data_service()


def _get_token_service():
    from baas_engine.deps import get_api_token_service
    return get_api_token_service()


def _get_mediator():
    from baas_engine.deps import get_request_mediator
    return get_request_mediator()


def _get_db():
    from baas_engine.deps import get_db
    return get_db()


async def _json_body(request: Request) -> Optional[Any]:
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationError(field_errors={"body": ["Request body must be valid JSON"]}) from None


@router.api_route(
    "/user-data/projects/{project_id}/tables/{table_id}", methods=PROXIED_METHODS
)
async def user_table_data(
    project_id: int,
    table_id: int,
    request: Request,
    user: AuthedUser = Depends(require_user),
):
    """Rows of one table, read and written as the signed-in user."""
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        details = await svc.get_table_pg_details(session, project_id, table_id)
    if not user.can_access(details.workspace_id):
        raise NotFoundError("Table not found")

    method = request.method.upper()
    body = await _json_body(request)
    if body is not None and method in WRITE_METHODS:
        check_no_generated_columns(body, method)
        body = fill_generated_columns(body, user.email)

    headers = dict(request.headers)
    headers["authorization"] = f"Bearer {svc.ownership_token(details, user.email)}"
    return await _get_mediator().forward(
        GatewayRequest(
            method=method,
            path=f"/{details.pg_table_identifier}",
            schema=details.schema,
            query=request.url.query,
            headers=headers,
            body=body,
        )
    )


@router.api_route(DATA_API_BASE_PATH + "/{path:path}", methods=PROXIED_METHODS)
async def external_api_data(
    path: str,
    request: Request,
    api_user: ApiUserContext = Depends(require_api_user),
):
    """External access with a project API token. Read-only by token shape."""
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        details = await svc.get_project_pg_details(session, api_user.project_id)

    headers = dict(request.headers)
    headers["authorization"] = f"Bearer {api_user.token}"
    return await _get_mediator().forward(
        GatewayRequest(
            method=request.method,
            path=path,
            schema=details.schema,
            query=request.url.query,
            headers=headers,
            body=await _json_body(request),
        )
    )


@router.get("/api/docs/projects/{project_id}")
async def api_docs(
    project_id: int,
    request: Request,
    api_user_token: str = Query(..., alias="apiUserToken"),
    user: AuthedUser = Depends(require_user),
):
    """OpenAPI document of a project as seen by an API token holder."""
    from baas_engine.common.config import get_settings

    svc = _get_service()
    token_svc = _get_token_service()
    db = _get_db()
    async with db.get_session() as session:
        details = await svc.get_project_pg_details(session, project_id)
        if not user.can_access(details.workspace_id):
            raise NotFoundError("Project not found.")
        token = await token_svc.get_by_token(session, api_user_token)
    if token is None:
        raise NotFoundError("Token not found.")
    if token.project_id != project_id:
        raise NotFoundError("Project not found.")

    headers = {
        "accept": request.headers.get("accept", "application/openapi+json"),
        "authorization": f"Bearer {token.token}",
    }
    host = urlparse(get_settings().app_url).netloc
    return await _get_mediator().forward(
        GatewayRequest(method="GET", path="/", schema=details.schema, headers=headers),
        body_rewriter=openapi_body_rewriter(host, read_only=token.read_only),
    )
