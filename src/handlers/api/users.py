"""Users API handler."""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from flashsynch.models.user import UpdateUserRequest
from flashsynch.services.user_service import UserService
from flashsynch.utils.auth import get_auth_context
from flashsynch.utils.exceptions import FlashSynchError, ValidationError
from flashsynch.utils.request import parse_json_body
from flashsynch.utils.responses import created, error, from_exception, internal_error, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle user API requests.

    Routes:
        POST /auth/register   - Create the user on first sign-in (idempotent)
        GET  /users/me
        PUT  /users/me
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")

        auth = get_auth_context(event)
        service = UserService()

        if path.endswith("/auth/register") and http_method == "POST":
            user, is_new = service.register(auth)
            if is_new:
                logger.info("User registered", user_id=user.id, handle=user.handle)
                return created(user)
            return success(user)

        if path.endswith("/users/me"):
            if http_method == "GET":
                return success(service.resolve(auth))
            elif http_method == "PUT":
                user = service.resolve(auth)
                request = UpdateUserRequest.model_validate(parse_json_body(event))
                return success(service.update_profile(user, request))

        return error("Method not allowed", 405)

    except PydanticValidationError as e:
        return from_exception(ValidationError.from_pydantic(e))
    except FlashSynchError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Users handler error", error=str(e))
        return internal_error()
