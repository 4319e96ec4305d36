"""CredentialMinter: RS512 tokens the REST gateway trusts for role and RLS claims."""

import secrets
from datetime import datetime, timezone
from typing import Any

from jose import jwt
from jose.exceptions import JOSEError

from baas_engine.common.exceptions import TokenMintingError

GATEWAY_JWT_ALGORITHM = "RS512"
ISSUER = "app"


class CredentialMinter:
    """Signs gateway tokens. Tokens carry no expiry and are minted per call."""

    def __init__(self, private_key_pem: str, issuer: str = ISSUER):
        self._private_key = private_key_pem
        self.issuer = issuer

    def _sign(self, claims: dict[str, Any]) -> str:
        payload = {
            **claims,
            "iat": int(datetime.now(timezone.utc).timestamp()),
            "iss": self.issuer,
            "jti": secrets.token_hex(8),
        }
        try:
            return jwt.encode(payload, self._private_key, algorithm=GATEWAY_JWT_ALGORITHM)
        except JOSEError as exc:
            raise TokenMintingError() from exc

    def sign_ownership_token(self, role: str, email: str) -> str:
        """Token for one proxied end-user request; the email claim drives RLS writes."""
        if not role or not email:
            raise TokenMintingError("Both role and email are required for an ownership token")
        return self._sign({"role": role, "email": email})

    def sign_read_only_api_token(self, role: str) -> str:
        """Project API token. Without an email claim the modify policy never matches."""
        if not role:
            raise TokenMintingError("Role is required for an API token")
        return self._sign({"role": role, "apiUser": True})
