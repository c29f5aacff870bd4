"""Application exception hierarchy.

Every error crosses the HTTP boundary as ``{"ok": false, "error": <message>}``,
the envelope the storefront script and the admin UI both expect.
"""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Provides consistent error response format.
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.error_detail = detail or {}

        super().__init__(status_code=status_code, detail=message)

    def to_payload(self) -> dict[str, Any]:
        """Response body for this error."""
        return {"ok": False, "error": self.message}


# ============================================================================
# Authentication (401)
# ============================================================================


class UnauthorizedError(AppException):
    """No tenant could be attributed to the request."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="unauthorized",
            message=message,
        )


class MissingShopError(UnauthorizedError):
    """Public request without a resolvable shop domain."""

    def __init__(self, verb: str = "call via") -> None:
        super().__init__(
            "Missing shop. Ensure you "
            f"{verb} the App Proxy (/apps/<subpath>) or add ?shop=<domain>."
        )


# ============================================================================
# Resource Exceptions (404)
# ============================================================================


class NotFoundError(AppException):
    """Resource not found, or owned by another tenant."""

    def __init__(self, resource: str | None = None) -> None:
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            message="Not found",
            detail={"resource": resource} if resource else None,
        )


# ============================================================================
# Validation Exceptions (400, 405)
# ============================================================================


class InvalidInputError(AppException):
    """Malformed, missing or out-of-range input."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="invalid_input",
            message=message,
            detail={"field": field} if field else None,
        )


class MethodNotAllowedError(AppException):
    """HTTP method not supported on this route."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            error_code="method_not_allowed",
            message="Method not allowed",
        )


class MediaStorageNotConfiguredError(InvalidInputError):
    """A media file was submitted but no bucket credentials are set."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            "Media storage is not configured (missing "
            f"{', '.join(missing)})",
            field="media",
        )
        self.missing = missing


# ============================================================================
# Internal Exceptions (500)
# ============================================================================


class InternalError(AppException):
    """Unexpected infrastructure failure; the message is always generic."""

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="internal_error",
            message=message,
        )


class MediaUploadError(InternalError):
    """Object storage rejected the upload."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__()
        self.key = key
        self.reason = reason
