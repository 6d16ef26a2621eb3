"""API Gateway proxy responses.

Every response carries the CORS headers for the configured dashboard origin.
Bodies are JSON unless a helper says otherwise.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel as PydanticBaseModel

from flashsynch.config import get_settings
from flashsynch.utils.exceptions import FlashSynchError

ALLOWED_HEADERS = "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token"


def get_cors_headers(content_type: str = "application/json") -> dict:
    return {
        "Access-Control-Allow-Origin": get_settings().cors_allowed_origin,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
        "Content-Type": content_type,
    }


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, PydanticBaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _serialize(data: Any) -> str:
    return json.dumps(data, default=_json_default)


def _response(status_code: int, body: str, headers: dict | None = None) -> dict:
    return {
        "statusCode": status_code,
        "headers": headers or get_cors_headers(),
        "body": body,
    }


def success(data: Any, status_code: int = 200) -> dict:
    """Create a successful API response.

    Args:
        data: Response data (dict, list, or Pydantic model).
        status_code: HTTP status code (default 200).

    Returns:
        API Gateway response dict.
    """
    return _response(status_code, _serialize(data))


def created(data: Any) -> dict:
    """Create a 201 Created response."""
    return success(data, status_code=201)


def attachment(content: str, content_type: str, filename: str) -> dict:
    """Create a file download response.

    Args:
        content: File body.
        content_type: MIME type of the body.
        filename: Suggested download file name.

    Returns:
        API Gateway response dict.
    """
    headers = get_cors_headers(content_type=content_type)
    headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return _response(200, content, headers)


def error(
    message: str,
    status_code: int = 500,
    error_code: str | None = None,
    details: dict | None = None,
) -> dict:
    """Create an error API response.

    Args:
        message: Error message.
        status_code: HTTP status code.
        error_code: Machine-readable error code.
        details: Additional error details.

    Returns:
        API Gateway response dict.
    """
    body: dict[str, Any] = {
        "error": True,
        "message": message,
    }

    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details

    return _response(status_code, _serialize(body))


def from_exception(exc: FlashSynchError) -> dict:
    """Create an error response from a domain exception."""
    return error(
        message=exc.message,
        status_code=exc.status_code,
        error_code=exc.error_code,
        details=exc.details or None,
    )


def internal_error() -> dict:
    """Create a generic 500 response that reveals nothing about the failure."""
    return error(
        message="Internal server error",
        status_code=500,
        error_code="INTERNAL_ERROR",
    )


def paginated(
    items: list[Any],
    total: int,
    page: int = 1,
    limit: int = 20,
    key: str = "items",
) -> dict:
    """Create a paginated response.

    Args:
        items: List of items for current page.
        total: Total number of items.
        page: Current page number.
        limit: Items per page.
        key: Body key under which the items are returned.

    Returns:
        API Gateway response dict.
    """
    body = {
        key: items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit if limit > 0 else 0,
        },
    }

    return success(body)
