"""Domain exceptions shared by services and the HTTP layer.

Each exception carries the HTTP status it maps to and a short,
machine-readable ``error`` string. The API renders them as
``{"error": ..., "message": ...}``.
"""


class ServiceError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: str | None = None, *, error: str | None = None):
        super().__init__(message or error or self.error)
        self.message = message
        if error is not None:
            self.error = error

    def to_dict(self) -> dict[str, str | None]:
        return {"error": self.error, "message": self.message}


# ── 400 ──────────────────────────────────────────────────


class ValidationError(ServiceError):
    """Malformed or missing request fields."""

    status_code = 400
    error = "Invalid request"


class MissingField(ValidationError):
    error = "Missing required field"


class MissingPayload(ValidationError):
    error = "Missing photo data"


class MissingOAuthData(ValidationError):
    error = "Missing required OAuth data"


class SelfFollowError(ValidationError):
    error = "Cannot follow yourself"


class QueryTooShort(ValidationError):
    error = "Query too short"


class InvalidHandle(ValidationError):
    error = "Invalid handle"


# ── 401 ──────────────────────────────────────────────────


class AuthenticationError(ServiceError):
    """Missing, invalid, or expired credentials."""

    status_code = 401
    error = "Authentication required"


class MissingToken(AuthenticationError):
    error = "Authentication required"


class InvalidOrExpiredSession(AuthenticationError):
    error = "Invalid session"


class InvalidRefreshToken(AuthenticationError):
    error = "Invalid refresh token"


class InvalidAPIKey(AuthenticationError):
    error = "Invalid API key"


# ── 403 ──────────────────────────────────────────────────


class AuthorizationError(ServiceError):
    """Authenticated but not entitled to the operation."""

    status_code = 403
    error = "Permission denied"


class PermissionDenied(AuthorizationError):
    error = "Permission denied"


# ── 404 ──────────────────────────────────────────────────


class NotFoundError(ServiceError):
    """Referenced entity does not exist."""

    status_code = 404
    error = "Not found"


class AccountNotFound(NotFoundError):
    error = "Account not found"


class TargetNotFound(NotFoundError):
    error = "Account not found"


class NotFollowing(NotFoundError):
    error = "Not following this user"


class PinNotFound(NotFoundError):
    error = "Photo not found"


# ── 409 ──────────────────────────────────────────────────


class ConflictError(ServiceError):
    """The mutation conflicts with existing state."""

    status_code = 409
    error = "Conflict"


class AlreadyFollowing(ConflictError):
    error = "Already following this user"


class HandleTaken(ConflictError):
    error = "Handle taken"


class AccountExists(ConflictError):
    error = "Account already exists"


# ── 500 ──────────────────────────────────────────────────


class StorageError(ServiceError):
    """Unexpected persistence failure."""

    status_code = 500
    error = "Internal server error"


class FanoutError(StorageError):
    """Some timeline writes failed after the triggering mutation committed."""

    error = "Timeline fan-out failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        written: int = 0,
        failed_batches: int = 0,
    ):
        super().__init__(message)
        self.written = written
        self.failed_batches = failed_batches
