"""Domain-specific exceptions with user-ready messages."""

from http import HTTPStatus


class ConfigurationError(Exception):
    """Raised when application configuration is invalid."""

    pass


class LoginFlowException(Exception):
    """Base exception class for login flow errors.

    Every subclass carries an ``error_code`` for the JSON error body and the
    HTTP status the API layer responds with.
    """

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ValidationException(LoginFlowException):
    """Exception raised for request validation failures."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="VALIDATION_FAILED")


class ProviderNotFound(LoginFlowException):
    """Exception raised when a login is requested for an unknown provider."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(
            f"Identity provider {provider} is not configured",
            error_code="PROVIDER_NOT_FOUND",
        )


class StateMismatch(LoginFlowException):
    """Exception raised when the callback state does not match the login flow."""

    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, message: str = "Invalid state") -> None:
        super().__init__(message, error_code="STATE_MISMATCH")


class NonceMismatch(LoginFlowException):
    """Exception raised when the ID token nonce does not match the login flow."""

    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, message: str = "ID token nonce does not match") -> None:
        super().__init__(message, error_code="NONCE_MISMATCH")


class TokenExchangeError(LoginFlowException):
    """Exception raised when exchanging the authorization code fails."""

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="TOKEN_EXCHANGE_FAILED")


class UserInfoFetchError(LoginFlowException):
    """Exception raised when the user-info endpoint cannot be read."""

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="USER_INFO_FETCH_FAILED")


# ID token verification errors


class IdTokenError(LoginFlowException):
    """Base exception for ID token decoding and verification failures."""

    status_code = HTTPStatus.UNAUTHORIZED


class MalformedToken(IdTokenError):
    """Token structure, encoding, or claim typing is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="MALFORMED_TOKEN")


class KeyFetchError(IdTokenError):
    """The provider's key set could not be retrieved."""

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="KEY_FETCH_FAILED")


class KeySetParseError(IdTokenError):
    """The provider's key set document is malformed."""

    status_code = HTTPStatus.BAD_GATEWAY

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="KEY_SET_INVALID")


class KeyNotFound(IdTokenError):
    """No published key matches the token's key identifier."""

    def __init__(self, key_id: str) -> None:
        self.key_id = key_id
        super().__init__(
            f"No signing key found for kid {key_id}", error_code="KEY_NOT_FOUND"
        )


class SignatureInvalid(IdTokenError):
    """The token signature does not verify."""

    def __init__(self, message: str = "Invalid token signature") -> None:
        super().__init__(message, error_code="SIGNATURE_INVALID")


class AlgorithmNotAllowed(SignatureInvalid):
    """The token header declares an algorithm other than the one verified."""

    def __init__(self, algorithm: str) -> None:
        self.algorithm = algorithm
        super().__init__(f"Token algorithm {algorithm} is not allowed")


class AudienceMismatch(IdTokenError):
    """The ``aud`` claim is not the configured client id."""

    def __init__(self, audience: str) -> None:
        super().__init__(
            f"Invalid token audience: {audience}", error_code="AUDIENCE_MISMATCH"
        )


class IssuerMismatch(IdTokenError):
    """The ``iss`` claim is not the provider's issuer."""

    def __init__(self, issuer: str) -> None:
        super().__init__(
            f"Invalid token issuer: {issuer}", error_code="ISSUER_MISMATCH"
        )


class TokenExpired(IdTokenError):
    """The ``exp`` claim is not in the future."""

    def __init__(self, expires_at: float) -> None:
        self.expires_at = expires_at
        super().__init__("Token has expired", error_code="TOKEN_EXPIRED")
