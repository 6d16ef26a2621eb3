"""Public Cards API handler (no authentication required)."""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from flashsynch.config import get_settings
from flashsynch.models.scan import TrackScanRequest
from flashsynch.services.card_service import CardService
from flashsynch.services.email_service import EmailService
from flashsynch.services.lead_service import LeadService
from flashsynch.services.scan_service import RequestContext, ScanService
from flashsynch.services.short_links import ShortLinkClient
from flashsynch.services.vcard import generate_vcard, vcard_filename
from flashsynch.utils.exceptions import FlashSynchError, ValidationError
from flashsynch.utils.request import get_client_ip, get_header, parse_json_body
from flashsynch.utils.responses import (
    attachment,
    created,
    error,
    from_exception,
    internal_error,
    success,
)

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle public card requests (no auth required).

    Routes:
        GET  /public/cards/{slug}          - Card projection, counts a view
        POST /public/cards/{slug}/scan     - Record a visitor interaction
        POST /public/cards/{slug}/capture  - Submit a lead
        GET  /public/cards/{slug}/vcard    - Download the card as a vCard
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}
        slug = path_params.get("slug")

        if not slug:
            return error("Not found", 404)

        settings = get_settings()
        card_service = CardService(short_links=ShortLinkClient.from_settings(settings))

        if path.endswith("/scan") and http_method == "POST":
            return track_scan(card_service, slug, event)
        elif path.endswith("/capture") and http_method == "POST":
            return capture_lead(slug, event)
        elif path.endswith("/vcard") and http_method == "GET":
            return download_vcard(card_service, slug)
        elif http_method == "GET":
            return success(card_service.get_public_by_slug(slug))
        else:
            return error("Method not allowed", 405)

    except PydanticValidationError as e:
        return from_exception(ValidationError.from_pydantic(e))
    except FlashSynchError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Public cards handler error", error=str(e))
        return internal_error()


def _request_context(event: dict, referrer: str | None = None) -> RequestContext:
    return RequestContext(
        ip=get_client_ip(event),
        user_agent=get_header(event, "User-Agent"),
        referrer=referrer or get_header(event, "Referer"),
    )


def track_scan(card_service: CardService, slug: str, event: dict) -> dict:
    """Record a view, click, save or share on an active card."""
    card = card_service.get_active_by_slug(slug)
    request = TrackScanRequest.model_validate(parse_json_body(event))

    scan = ScanService().track(
        card,
        request.event_type,
        request.link_id,
        _request_context(event, referrer=request.referrer),
    )
    return created({"success": True, "scan_id": scan.id})


def capture_lead(slug: str, event: dict) -> dict:
    """Store a visitor's contact details for the card owner."""
    lead_service = LeadService(email=EmailService(get_settings()))
    lead_service.capture_lead(slug, parse_json_body(event), _request_context(event))
    return created({"success": True, "message": "Thank you for your submission!"})


def download_vcard(card_service: CardService, slug: str) -> dict:
    """Return the card's contact details as a vCard file."""
    card = card_service.get_active_by_slug(slug)
    return attachment(
        generate_vcard(card),
        content_type="text/vcard; charset=utf-8",
        filename=vcard_filename(card),
    )
