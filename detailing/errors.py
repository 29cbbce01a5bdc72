"""
Error taxonomy for the booking and pricing core.

Every failure a caller can see is one of four kinds. Each carries a stable
``code``, a human message, optional structured ``details`` and the HTTP
status an outer layer would map it to. Storage failures never leak their
internal detail unless the caller explicitly asks for it (non-production).
"""

from typing import Any, Optional


class DetailingError(Exception):
    """Base class for all caller-facing errors."""

    kind = "error"
    status = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self, expose_internal: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.kind,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = dict(self.details)
        return payload


class ValidationError(DetailingError):
    """Missing or malformed input. Never retried automatically."""

    kind = "validation_error"
    status = 400


class ConflictError(DetailingError):
    """The request collides with existing state, e.g. a taken slot."""

    kind = "conflict"
    status = 409


class NotFoundError(DetailingError):
    """Referenced entity does not exist or is inactive."""

    kind = "not_found"
    status = 404


class StorageError(DetailingError):
    """Underlying data-access failure; the unit of work was rolled back."""

    kind = "storage_error"
    status = 500
    public_message = "Database error"

    def __init__(
        self,
        message: str = "Database error",
        internal_detail: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message, code=code)
        self.internal_detail = internal_detail

    def to_dict(self, expose_internal: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "error": self.kind,
            "code": self.code,
            "message": self.public_message,
        }
        if expose_internal:
            payload["details"] = {
                "operation": self.message,
                "internal": self.internal_detail,
            }
        return payload


class InvalidTransitionError(ValidationError):
    """Raised when a booking status change is not allowed from the current status."""
