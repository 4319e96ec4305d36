"""baas-engine: multi-tenant schema provisioning behind a PostgREST gateway."""

from baas_engine.crypto.cipher import EncryptedMessage, SecretCipher
from baas_engine.crypto.tokens import CredentialMinter
from baas_engine.tenantdb.identifiers import (
    is_valid_identifier,
    is_valid_name,
    name_to_identifier,
)

__all__ = [
    "CredentialMinter",
    "EncryptedMessage",
    "SecretCipher",
    "is_valid_identifier",
    "is_valid_name",
    "name_to_identifier",
]
__version__ = "0.1.0"
