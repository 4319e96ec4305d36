"""baas-engine exception hierarchy."""


class BaasError(Exception):
    """Base exception for all baas-engine errors."""

    status_code = 500

    def __init__(self, message: str = "", code: str = "BAAS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(BaasError):
    """Raised when caller input fails validation. Carries field-level detail."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid inputs received.",
        field_errors: dict[str, list[str]] | None = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(message, code=code)
        self.field_errors = field_errors or {}


class InvalidNameError(ValidationError):
    """Raised when a display name does not match the name grammar."""

    def __init__(self, name: str, field: str = "name"):
        message = f'"{name}" is not a valid name'
        super().__init__(message, field_errors={field: [message]}, code="INVALID_NAME")


class InvalidIdentifierError(ValidationError):
    """Raised when a SQL identifier does not match the identifier grammar."""

    def __init__(self, identifier: str):
        message = f'"{identifier}" is not a valid identifier'
        super().__init__(message, field_errors={"identifier": [message]}, code="INVALID_IDENTIFIER")


class BadRequestError(BaasError):
    status_code = 400

    def __init__(self, message: str = "Bad request"):
        super().__init__(message, code="BAD_REQUEST")


class AuthenticationError(BaasError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED")


class ForbiddenError(BaasError):
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code="FORBIDDEN")


class NotFoundError(BaasError):
    """Raised for missing resources and for resources the caller may not see."""

    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class ConflictError(BaasError):
    status_code = 409

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, code="CONFLICT")


class UnsafeQueryError(BaasError):
    """Raised when a generated SQL statement contains a semicolon."""

    def __init__(self, message: str = "Generated query contains a semicolon"):
        super().__init__(message, code="UNSAFE_QUERY")


class UnhandledTypeError(BaasError):
    """Raised when a column type falls outside the supported catalog."""

    def __init__(self, type_name: str):
        super().__init__(f"Unhandled column type: {type_name}", code="UNHANDLED_TYPE")


class IdentifierCodecError(BaasError):
    """Raised when a valid name fails to convert into a valid identifier."""

    def __init__(self, name: str, identifier: str):
        super().__init__(
            f'Name "{name}" converted to invalid identifier "{identifier}"',
            code="IDENTIFIER_CODEC",
        )


class DecryptionError(BaasError):
    def __init__(self, message: str = "Unable to decrypt message"):
        super().__init__(message, code="DECRYPTION_FAILED")


class TokenMintingError(BaasError):
    def __init__(self, message: str = "Unable to mint gateway token"):
        super().__init__(message, code="TOKEN_MINTING")


class ProvisioningError(BaasError):
    """Raised when a physical provisioning step fails."""

    def __init__(self, message: str = "Provisioning failed"):
        super().__init__(message, code="PROVISIONING_FAILED")


class DuplicateTableError(ProvisioningError):
    """Raised by the provisioner when the physical table already exists."""

    def __init__(self, schema: str, table: str):
        super().__init__(f"Table {schema}.{table} already exists")
        self.schema = schema
        self.table = table


class GatewayConfigError(BaasError):
    """Raised when the gateway config file cannot be read, parsed or updated."""

    def __init__(self, message: str = "Gateway configuration error"):
        super().__init__(message, code="GATEWAY_CONFIG")


class UpstreamGatewayError(BaasError):
    status_code = 500

    def __init__(self, message: str = "Gateway request failed"):
        super().__init__(message, code="UPSTREAM_GATEWAY")


class GatewayUnavailableError(UpstreamGatewayError):
    """Raised when the gateway cannot be reached at all."""

    status_code = 502

    def __init__(self, message: str = "Gateway is unavailable"):
        super().__init__(message)
        self.code = "GATEWAY_UNAVAILABLE"
