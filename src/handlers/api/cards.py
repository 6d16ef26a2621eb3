"""Cards API handler (owner dashboard)."""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from flashsynch.config import get_settings
from flashsynch.models.card import CreateCardRequest, UpdateCardRequest
from flashsynch.models.user import User
from flashsynch.services.card_service import CardService
from flashsynch.services.short_links import ShortLinkClient
from flashsynch.services.user_service import UserService
from flashsynch.utils.auth import get_auth_context
from flashsynch.utils.exceptions import FlashSynchError, ValidationError
from flashsynch.utils.request import parse_json_body
from flashsynch.utils.responses import created, error, from_exception, internal_error, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle card API requests.

    Routes:
        POST   /cards
        GET    /cards
        GET    /cards/{card_id}
        PUT    /cards/{card_id}
        DELETE /cards/{card_id}
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path_params = event.get("pathParameters", {}) or {}
        card_id = path_params.get("card_id")

        auth = get_auth_context(event)
        user = UserService().resolve(auth)

        settings = get_settings()
        service = CardService(short_links=ShortLinkClient.from_settings(settings))

        if card_id:
            if http_method == "GET":
                return success(service.get_owned(card_id, user.id))
            elif http_method == "PUT":
                return update_card(service, user, card_id, event)
            elif http_method == "DELETE":
                return archive_card(service, user, card_id)
        else:
            if http_method == "GET":
                return success({"cards": service.list_owned(user.id)})
            elif http_method == "POST":
                return create_card(service, user, event)

        return error("Method not allowed", 405)

    except PydanticValidationError as e:
        return from_exception(ValidationError.from_pydantic(e))
    except FlashSynchError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Cards handler error", error=str(e))
        return internal_error()


def create_card(service: CardService, user: User, event: dict) -> dict:
    """Create a card for the current user."""
    request = CreateCardRequest.model_validate(parse_json_body(event))
    card = service.create_card(user, request)
    return created(card)


def update_card(service: CardService, user: User, card_id: str, event: dict) -> dict:
    """Partially update one of the current user's cards."""
    request = UpdateCardRequest.model_validate(parse_json_body(event))
    card = service.update_owned(card_id, user.id, request)
    return success(card)


def archive_card(service: CardService, user: User, card_id: str) -> dict:
    """Archive one of the current user's cards."""
    card = service.archive_owned(card_id, user.id)
    return success({"success": True, "card_id": card.id, "status": card.status})
