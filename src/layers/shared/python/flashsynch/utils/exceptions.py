"""Custom exception classes for FlashSynch."""


class FlashSynchError(Exception):
    """Base exception for all FlashSynch errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int = 500,
        details: dict | None = None,
    ):
        """Initialize FlashSynchError.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            status_code: HTTP status code for API responses.
            details: Additional error details.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "INTERNAL_ERROR"
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API response."""
        result = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(FlashSynchError):
    """Raised when a requested resource is not found.

    The error code is derived from the resource type, so a missing card
    surfaces as ``CARD_NOT_FOUND`` and a missing lead as ``CONTACT_NOT_FOUND``.
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: str | None = None,
    ):
        """Initialize NotFoundError.

        Args:
            resource_type: Type of resource (e.g., "Card", "Contact").
            resource_id: ID or slug of the resource that was not found.
            message: Optional custom message.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message=message or f"{resource_type} not found",
            error_code=f"{resource_type.upper()}_NOT_FOUND",
            status_code=404,
        )


class ValidationError(FlashSynchError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict] | None = None,
    ):
        """Initialize ValidationError.

        Args:
            message: Error message.
            errors: List of validation errors with field and message.
        """
        self.errors = errors or []
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details={"errors": self.errors},
        )

    @classmethod
    def from_pydantic(cls, exc: Exception) -> "ValidationError":
        """Create ValidationError from Pydantic ValidationError."""
        errors = []
        if hasattr(exc, "errors"):
            for error in exc.errors():
                errors.append(
                    {
                        "field": ".".join(str(loc) for loc in error.get("loc", [])),
                        "message": error.get("msg", "Invalid value"),
                    }
                )
        return cls(message="Validation failed", errors=errors)


class UnauthorizedError(FlashSynchError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication required"):
        """Initialize UnauthorizedError."""
        super().__init__(
            message=message,
            error_code="UNAUTHORIZED",
            status_code=401,
        )


class ForbiddenError(FlashSynchError):
    """Raised when user lacks permission for an action."""

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        resource_type: str | None = None,
        action: str | None = None,
    ):
        """Initialize ForbiddenError."""
        details = {}
        if resource_type:
            details["resource_type"] = resource_type
        if action:
            details["action"] = action

        super().__init__(
            message=message,
            error_code="FORBIDDEN",
            status_code=403,
            details=details if details else None,
        )


class ConflictError(FlashSynchError):
    """Raised when there's a conflict (e.g., duplicate handle, reserved slug)."""

    def __init__(
        self,
        message: str = "Resource conflict",
        conflict_type: str | None = None,
    ):
        """Initialize ConflictError.

        Args:
            message: Error message.
            conflict_type: Specific error code such as ``HANDLE_TAKEN``.
        """
        self.conflict_type = conflict_type
        super().__init__(
            message=message,
            error_code=conflict_type or "CONFLICT",
            status_code=409,
        )


class LeadCaptureDisabledError(FlashSynchError):
    """Raised when a lead is submitted to a card with lead capture turned off."""

    def __init__(self, message: str = "Lead capture is not enabled for this card"):
        """Initialize LeadCaptureDisabledError."""
        super().__init__(
            message=message,
            error_code="LEAD_CAPTURE_DISABLED",
            status_code=400,
        )


class ExternalServiceError(FlashSynchError):
    """Raised when an external service call fails."""

    def __init__(
        self,
        service: str,
        message: str | None = None,
        original_error: str | None = None,
    ):
        """Initialize ExternalServiceError."""
        self.service = service
        self.original_error = original_error
        super().__init__(
            message=message or f"External service '{service}' is unavailable",
            error_code="EXTERNAL_SERVICE_ERROR",
            status_code=502,
            details={"service": service},
        )
