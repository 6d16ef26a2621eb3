"""Token authorizer for API Gateway.

Verifies identity-provider ID tokens and passes the subject downstream.
"""

from typing import Any

import structlog

from flashsynch.services.identity import get_identity_verifier
from flashsynch.utils.exceptions import ExternalServiceError, UnauthorizedError

logger = structlog.get_logger()

# API Gateway answers 401 only for this exact error message
UNAUTHORIZED = "Unauthorized"


def handler(event: dict[str, Any], context: Any) -> dict:
    """Lambda authorizer handler for API Gateway.

    Args:
        event: API Gateway authorizer event.
        context: Lambda context.

    Returns:
        IAM policy document with context.

    Raises:
        Exception: ``Unauthorized`` when the token is missing or cannot be
            verified, including when the signing keys are unavailable.
    """
    token = _extract_token(event)
    if not token:
        logger.warning("No token provided")
        raise Exception(UNAUTHORIZED)

    try:
        identity = get_identity_verifier().verify(token)
    except UnauthorizedError as e:
        logger.warning("Token rejected", reason=e.message)
        raise Exception(UNAUTHORIZED) from e
    except ExternalServiceError as e:
        logger.error("Token verification unavailable", error=e.message)
        raise Exception(UNAUTHORIZED) from e

    # Authorizer context values must be strings
    auth_context = {
        "userId": identity.subject_id,
        "email": identity.email or "",
        "name": identity.name or "",
    }

    logger.info("Authorization successful", user_id=identity.subject_id)
    return _allow_policy(event, auth_context)


def _extract_token(event: dict) -> str | None:
    """Extract the bearer token from the event.

    Args:
        event: API Gateway authorizer event.

    Returns:
        Token string or None.
    """
    headers = event.get("headers", {}) or {}
    auth_header = headers.get("Authorization") or headers.get("authorization")
    if auth_header:
        return _strip_bearer(auth_header)

    # TOKEN authorizers pass the header value directly
    if event.get("authorizationToken"):
        return _strip_bearer(event["authorizationToken"])

    identity_source = event.get("identitySource")
    if isinstance(identity_source, list):
        for source in identity_source:
            if source:
                return _strip_bearer(source)
    elif isinstance(identity_source, str) and identity_source:
        return _strip_bearer(identity_source)

    return None


def _strip_bearer(value: str) -> str | None:
    if value.startswith("Bearer "):
        value = value[7:]
    return value.strip() or None


def _allow_policy(event: dict, context: dict) -> dict:
    """Build an allow policy covering every resource of the API.

    Args:
        event: API Gateway event.
        context: Auth context to pass to downstream.

    Returns:
        Policy document.
    """
    method_arn = event.get("methodArn", event.get("routeArn", "*"))

    # arn:aws:execute-api:region:account:api-id/stage/METHOD/path
    arn_parts = method_arn.split("/")
    if len(arn_parts) >= 2:
        resource_arn = f"{'/'.join(arn_parts[:2])}/*"
    else:
        resource_arn = "*"

    return {
        "principalId": context["userId"],
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": "Allow",
                    "Resource": resource_arn,
                }
            ],
        },
        "context": context,
    }

