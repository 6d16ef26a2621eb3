"""Utility functions and helpers."""

from flashsynch.utils.exceptions import (
    ConflictError,
    ExternalServiceError,
    FlashSynchError,
    ForbiddenError,
    LeadCaptureDisabledError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from flashsynch.utils.responses import (
    attachment,
    created,
    error,
    from_exception,
    internal_error,
    paginated,
    success,
)

__all__ = [
    # Response helpers
    "success",
    "created",
    "error",
    "from_exception",
    "internal_error",
    "paginated",
    "attachment",
    # Exceptions
    "FlashSynchError",
    "NotFoundError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "ConflictError",
    "LeadCaptureDisabledError",
    "ExternalServiceError",
]
