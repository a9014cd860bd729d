"""Error taxonomy surfaced by the registry and the access guard.

Every failure leaving the core is one of these kinds. The exception handler in
``panda.main`` renders them as ``{"error": ..., "code": ..., "details": ...}``.
"""

from fastapi import status
from starlette.responses import JSONResponse


class PandaError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: dict | None = None) -> None:
        super().__init__(message or self.default_message)
        self.details = details

    @property
    def message(self) -> str:
        return str(self)

    def to_response(self) -> JSONResponse:
        content: dict = {"error": self.message, "code": self.code}
        if self.details:
            content["details"] = self.details
        return JSONResponse(status_code=self.status_code, content=content)


class ValidationFailed(PandaError):
    """Field-scoped input errors; ``details`` maps field name to messages."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_failed"
    default_message = "Invalid input"

    def __init__(self, details: dict[str, list[str]], message: str | None = None) -> None:
        super().__init__(message, details)


class DuplicateSubdomain(PandaError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_subdomain"
    default_message = "Subdomain already registered"

    def __init__(self, subdomain: str) -> None:
        super().__init__(f"Subdomain '{subdomain}' is already registered")
        self.subdomain = subdomain


class QuotaExceeded(PandaError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "quota_exceeded"
    default_message = "Tunnel quota reached for your current grade"


class Unauthenticated(PandaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"
    default_message = "Unauthorized: Missing or invalid token"


class Forbidden(PandaError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Forbidden"


class NotFound(PandaError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found"


class Conflict(PandaError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Already exists"


class InternalFailure(PandaError):
    """Opaque to the caller; the cause is logged server-side."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_failure"
    default_message = "Internal server error"
