"""baas-engine configuration via pydantic-settings."""

import re
import warnings
from functools import lru_cache
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from pydantic_settings import BaseSettings, SettingsConfigDict

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


class BaasSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BAAS_")

    environment: str = "development"
    log_level: str = "INFO"

    # Metadata database (projects, tables, columns, api tokens)
    db_url: str

    # Tenant database cluster, reached with the admin role
    tenant_db_host: str
    tenant_db_port: int = 5432
    tenant_db_name: str
    tenant_db_admin_user: str
    tenant_db_admin_password: str
    tenant_db_min_conn: int = 1
    tenant_db_max_conn: int = 10

    # REST gateway
    gateway_url: str
    gateway_config_file: str
    gateway_reload_channel: str = "pgrst"
    gateway_timeout: float = 30.0

    # Public base URL of this service, used as host in rewritten API docs
    app_url: str

    # Key material. PEM text for the RSA keys, 64 hex chars for AES-256.
    app_jwt_public_key: str
    gateway_jwt_private_key: str
    encryption_key_hex: str

    # API
    api_title: str = "baas-engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]

    @property
    def tenant_db_lock_scope(self) -> str:
        """host:port/name triple identifying the tenant database."""
        return f"{self.tenant_db_host}:{self.tenant_db_port}/{self.tenant_db_name}"

    def validate_for_startup(self) -> None:
        """Raise if key material or pool settings are unusable."""
        problems: list[str] = []

        if not _HEX_KEY_RE.match(self.encryption_key_hex):
            problems.append("BAAS_ENCRYPTION_KEY_HEX must be 64 hex characters (256 bits)")

        try:
            serialization.load_pem_public_key(self.app_jwt_public_key.encode())
        except ValueError:
            problems.append("BAAS_APP_JWT_PUBLIC_KEY is not a PEM encoded public key")

        try:
            serialization.load_pem_private_key(
                self.gateway_jwt_private_key.encode(), password=None
            )
        except (ValueError, TypeError):
            problems.append("BAAS_GATEWAY_JWT_PRIVATE_KEY is not an unencrypted PEM private key")

        if self.tenant_db_min_conn > self.tenant_db_max_conn:
            problems.append("BAAS_TENANT_DB_MIN_CONN must not exceed BAAS_TENANT_DB_MAX_CONN")

        if problems:
            raise RuntimeError(
                "Invalid baas-engine configuration: " + "; ".join(problems)
            )

        if not Path(self.gateway_config_file).is_file():
            if self.environment != "development":
                raise RuntimeError(
                    f"Gateway config file not found: {self.gateway_config_file}"
                )
            warnings.warn(
                f"Gateway config file {self.gateway_config_file} does not exist yet",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> BaasSettings:
    settings = BaasSettings()
    settings.validate_for_startup()
    return settings
