"""Custom exceptions and error payload schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standardized error payload."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict[str, Any]] = Field(None, description="Additional context")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        """Convert to error payload."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            details=self.details if self.details else None,
        )


class ValidationError(AppError):
    """Raised when operator input fails validation."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=422,
            details=details,
        )


class NotFoundError(AppError):
    """Raised when a resource that must exist doesn't."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} with ID {resource_id} not found",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id},
        )


class StoreError(AppError):
    """Raised on persistence failures (read or write)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="STORE_ERROR",
            message=message,
            status_code=500,
            details=details,
        )


def error_detail_from(exc: Exception) -> ErrorDetail:
    """Build an ErrorDetail from any exception, keeping AppError codes."""
    if isinstance(exc, AppError):
        return exc.to_response()
    return ErrorDetail(
        code="UNEXPECTED_ERROR",
        message=str(exc) or exc.__class__.__name__,
        details={"exception": exc.__class__.__name__},
    )
