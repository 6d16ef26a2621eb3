"""Helpers for reading API Gateway proxy events."""

import base64
import json
from typing import Any

from flashsynch.utils.exceptions import ValidationError


def get_header(event: dict, name: str) -> str | None:
    """Get a request header, ignoring case."""
    headers = event.get("headers", {}) or {}
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def get_client_ip(event: dict) -> str | None:
    """Extract client IP from API Gateway event.

    Handles X-Forwarded-For header for requests behind CloudFront/ALB.

    Args:
        event: API Gateway event dict.

    Returns:
        Client IP address, or None when unknown.
    """
    forwarded_for = get_header(event, "X-Forwarded-For")
    if forwarded_for:
        # First entry is the original client
        return forwarded_for.split(",")[0].strip() or None

    identity = (event.get("requestContext", {}) or {}).get("identity", {}) or {}
    return identity.get("sourceIp")


def get_raw_body(event: dict) -> bytes:
    """Get the request body bytes exactly as sent."""
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(body)
    return body.encode("utf-8")


def parse_json_body(event: dict) -> dict[str, Any]:
    """Parse a JSON object body.

    Args:
        event: API Gateway event dict.

    Returns:
        The decoded object; empty when there is no body.

    Raises:
        ValidationError: If the body is not a JSON object.
    """
    raw = get_raw_body(event)
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body", errors=[{"field": "body", "message": "Invalid JSON"}])
    if not isinstance(body, dict):
        raise ValidationError(
            "Invalid JSON body", errors=[{"field": "body", "message": "Expected a JSON object"}]
        )
    return body
