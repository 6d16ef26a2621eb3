"""Authentication context helpers."""

from dataclasses import dataclass
from typing import Any

import structlog

from flashsynch.utils.exceptions import UnauthorizedError

logger = structlog.get_logger()


@dataclass
class AuthContext:
    """Authentication context extracted from API Gateway event.

    Carries the identity the token authorizer verified.
    """

    subject_id: str
    email: str | None = None
    name: str | None = None


def get_auth_context(event: dict[str, Any]) -> AuthContext:
    """Extract authentication context from API Gateway event.

    Args:
        event: API Gateway event dict.

    Returns:
        AuthContext with the verified identity.

    Raises:
        UnauthorizedError: If the authorizer context carries no subject.
    """
    request_context = event.get("requestContext", {}) or {}
    authorizer = request_context.get("authorizer", {}) or {}

    # Lambda authorizer context is nested under "lambda" for HTTP APIs
    context = authorizer.get("lambda", authorizer)

    subject_id = context.get("userId") or context.get("sub")
    if not subject_id:
        logger.warning("No subject in auth context")
        raise UnauthorizedError()

    return AuthContext(
        subject_id=subject_id,
        email=context.get("email") or None,
        name=context.get("name") or None,
    )
