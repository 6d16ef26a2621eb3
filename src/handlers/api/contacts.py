"""Contacts API handler (leads captured from the owner's cards)."""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from flashsynch.config import get_settings
from flashsynch.models.lead import ListLeadsQuery, UpdateLeadRequest
from flashsynch.models.user import User
from flashsynch.services.email_service import EmailService
from flashsynch.services.lead_service import LeadService
from flashsynch.services.user_service import UserService
from flashsynch.utils.auth import get_auth_context
from flashsynch.utils.exceptions import FlashSynchError, ValidationError
from flashsynch.utils.request import parse_json_body
from flashsynch.utils.responses import error, from_exception, internal_error, paginated, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle contacts API requests.

    Routes:
        GET    /contacts
        GET    /contacts/{contact_id}
        PUT    /contacts/{contact_id}
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path_params = event.get("pathParameters", {}) or {}
        contact_id = path_params.get("contact_id")

        auth = get_auth_context(event)
        user = UserService().resolve(auth)
        service = LeadService(email=EmailService(get_settings()))

        if contact_id:
            if http_method == "GET":
                return success(service.get_lead(contact_id, user.id))
            elif http_method == "PUT":
                return update_contact(service, user, contact_id, event)
        elif http_method == "GET":
            return list_contacts(service, user, event)

        return error("Method not allowed", 405)

    except PydanticValidationError as e:
        return from_exception(ValidationError.from_pydantic(e))
    except FlashSynchError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Contacts handler error", error=str(e))
        return internal_error()


def list_contacts(service: LeadService, user: User, event: dict) -> dict:
    """List the current user's contacts, newest first.

    Query params: page, limit (max 100), card_id, status.
    """
    query = ListLeadsQuery.model_validate(event.get("queryStringParameters", {}) or {})

    leads, total = service.list_leads(
        user.id,
        page=query.page,
        limit=query.limit,
        card_id=query.card_id,
        status=query.status,
    )

    return paginated(
        [lead.model_dump(mode="json") for lead in leads],
        total=total,
        page=query.page,
        limit=query.limit,
        key="contacts",
    )


def update_contact(service: LeadService, user: User, contact_id: str, event: dict) -> dict:
    """Update a contact's workflow status or tags."""
    request = UpdateLeadRequest.model_validate(parse_json_body(event))
    lead = service.update_lead(contact_id, user.id, request)
    return success(lead)
