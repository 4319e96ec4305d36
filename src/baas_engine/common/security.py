"""Authentication dependencies for end users and external API users."""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from baas_engine.common.exceptions import AuthenticationError, ForbiddenError, NotFoundError

APP_JWT_ALGORITHM = "RS512"
ADMIN_ROLES = frozenset({"OWNER", "ADMIN"})

_bearer = HTTPBearer(auto_error=False)


@dataclass
class AuthedUser:
    """Identity resolved from an end-user bearer token."""
    user_id: int
    email: str
    token: str
    workspace_roles: dict[int, str] = field(default_factory=dict)

    @property
    def allowed_workspaces(self) -> set[int]:
        return set(self.workspace_roles)

    def can_access(self, workspace_id: int) -> bool:
        return workspace_id in self.workspace_roles

    def has_admin_rights(self, workspace_id: int) -> bool:
        return self.workspace_roles.get(workspace_id) in ADMIN_ROLES


@dataclass
class ApiUserContext:
    """External API caller resolved from x-baas-api-key / x-baas-project-id."""
    project_id: int
    token: str


def decode_app_token(token: str, public_key: str) -> AuthedUser:
    """Verify an end-user token issued by the auth service."""
    try:
        claims = jwt.decode(token, public_key, algorithms=[APP_JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthenticationError("Invalid bearer token") from exc

    try:
        user_id = int(claims["sub"])
        email = str(claims["email"])
        workspace_roles = {
            int(ws["id"]): str(ws.get("role", "MEMBER")).upper()
            for ws in claims.get("workspaces", [])
        }
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Bearer token is missing required claims") from exc

    if not email:
        raise AuthenticationError("Bearer token is missing required claims")
    return AuthedUser(
        user_id=user_id, email=email, token=token, workspace_roles=workspace_roles
    )


async def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> AuthedUser:
    """FastAPI dependency that resolves the calling end user."""
    from baas_engine.common.config import get_settings

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Bearer token is not set in header")
    return decode_app_token(credentials.credentials, get_settings().app_jwt_public_key)


def require_workspace_access(user: AuthedUser, workspace_id: int) -> None:
    # Denial is reported as not found so existence is never confirmed.
    if not user.can_access(workspace_id):
        raise NotFoundError("Workspace not found")


def require_admin_rights(user: AuthedUser, workspace_id: int) -> None:
    require_workspace_access(user, workspace_id)
    if not user.has_admin_rights(workspace_id):
        raise ForbiddenError("Admin rights are required for this operation")


async def require_api_user(
    x_baas_api_key: Optional[str] = Header(None, alias="x-baas-api-key"),
    x_baas_project_id: Optional[str] = Header(None, alias="x-baas-project-id"),
) -> ApiUserContext:
    """FastAPI dependency that authenticates external API callers.

    The API key must be the project's stored token and the project id header
    must match the project that token belongs to.
    """
    if not x_baas_api_key:
        raise AuthenticationError("x-baas-api-key header is not set")
    if not x_baas_project_id or not x_baas_project_id.strip().isdigit():
        raise AuthenticationError("x-baas-project-id header must be a project id")

    from baas_engine.deps import get_api_token_service, get_db

    svc = get_api_token_service()
    db = get_db()
    async with db.get_session() as session:
        stored = await svc.get_by_token(session, x_baas_api_key)

    project_id = int(x_baas_project_id)
    if stored is None or stored.project_id != project_id:
        raise AuthenticationError("API key is not valid for this project")
    return ApiUserContext(project_id=project_id, token=stored.token)
