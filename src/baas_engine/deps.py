"""Dependency injection singletons for baas-engine.

Every component receives the settings object (or other components) through
its constructor; this module is the only place that wires them together.
"""

from baas_engine.api_tokens.service import ApiTokenService
from baas_engine.common.config import get_settings
from baas_engine.common.database import DatabaseManager
from baas_engine.crypto.cipher import SecretCipher
from baas_engine.crypto.tokens import CredentialMinter
from baas_engine.gateway.locks import GatewayConfigLock
from baas_engine.gateway.mediator import RequestMediator
from baas_engine.gateway.sync import GatewaySyncCoordinator
from baas_engine.projects.service import ProjectService
from baas_engine.tables.service import ColumnService, TableService
from baas_engine.tenantdb.provisioner import TenantProvisioner
from baas_engine.user_data.service import UserDataService

_db: DatabaseManager | None = None
_provisioner: TenantProvisioner | None = None
_cipher: SecretCipher | None = None
_minter: CredentialMinter | None = None
_gateway_sync: GatewaySyncCoordinator | None = None
_mediator: RequestMediator | None = None
_projects: ProjectService | None = None
_tables: TableService | None = None
_columns: ColumnService | None = None
_api_tokens: ApiTokenService | None = None
_user_data: UserDataService | None = None


def get_db() -> DatabaseManager:
    global _db
    if _db is None:
        _db = DatabaseManager(get_settings())
    return _db


def get_tenant_provisioner() -> TenantProvisioner:
    global _provisioner
    if _provisioner is None:
        _provisioner = TenantProvisioner(get_settings())
    return _provisioner


def get_secret_cipher() -> SecretCipher:
    global _cipher
    if _cipher is None:
        _cipher = SecretCipher(get_settings().encryption_key_hex)
    return _cipher


def get_credential_minter() -> CredentialMinter:
    global _minter
    if _minter is None:
        _minter = CredentialMinter(get_settings().gateway_jwt_private_key)
    return _minter


def get_gateway_sync() -> GatewaySyncCoordinator:
    global _gateway_sync
    if _gateway_sync is None:
        settings = get_settings()
        _gateway_sync = GatewaySyncCoordinator(
            settings.gateway_config_file,
            GatewayConfigLock(settings, get_db()),
        )
    return _gateway_sync


def get_request_mediator() -> RequestMediator:
    global _mediator
    if _mediator is None:
        settings = get_settings()
        _mediator = RequestMediator(settings.gateway_url, timeout=settings.gateway_timeout)
    return _mediator


def get_project_service() -> ProjectService:
    global _projects
    if _projects is None:
        _projects = ProjectService(
            get_settings(),
            provisioner=get_tenant_provisioner(),
            gateway_sync=get_gateway_sync(),
            cipher=get_secret_cipher(),
        )
    return _projects


def get_table_service() -> TableService:
    global _tables
    if _tables is None:
        _tables = TableService(
            get_settings(), get_tenant_provisioner(), get_project_service()
        )
    return _tables


def get_column_service() -> ColumnService:
    global _columns
    if _columns is None:
        _columns = ColumnService(
            get_settings(), get_tenant_provisioner(), get_table_service()
        )
    return _columns


def get_api_token_service() -> ApiTokenService:
    global _api_tokens
    if _api_tokens is None:
        _api_tokens = ApiTokenService(get_credential_minter(), get_project_service())
    return _api_tokens


def get_user_data_service() -> UserDataService:
    global _user_data
    if _user_data is None:
        _user_data = UserDataService(get_credential_minter())
    return _user_data


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _db, _provisioner, _cipher, _minter, _gateway_sync, _mediator
    global _projects, _tables, _columns, _api_tokens, _user_data
    _db = None
    _provisioner = None
    _cipher = None
    _minter = None
    _gateway_sync = None
    _mediator = None
    _projects = None
    _tables = None
    _columns = None
    _api_tokens = None
    _user_data = None
