"""Billing webhook handler for RevenueCat subscription lifecycle events."""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from flashsynch.config import get_settings
from flashsynch.models.billing import BillingWebhookPayload
from flashsynch.services.billing import BillingService, verify_signature
from flashsynch.utils.request import get_header, get_raw_body
from flashsynch.utils.responses import error, internal_error, success

logger = structlog.get_logger()

SIGNATURE_HEADER = "X-RevenueCat-Signature"


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle signed billing events.

    The body is authenticated with an HMAC-SHA256 signature over the raw
    bytes before anything is parsed. Unknown event types are acknowledged.
    """
    settings = get_settings()
    if not settings.billing_webhook_secret:
        logger.error("Billing webhook secret not configured")
        return error("Webhook not configured", 500, error_code="WEBHOOK_NOT_CONFIGURED")

    raw_body = get_raw_body(event)
    signature = get_header(event, SIGNATURE_HEADER)
    if not verify_signature(raw_body, signature, settings.billing_webhook_secret):
        logger.warning("Billing webhook signature mismatch")
        return error("Invalid signature", 401, error_code="INVALID_SIGNATURE")

    try:
        payload = BillingWebhookPayload.model_validate_json(raw_body)
    except PydanticValidationError as e:
        logger.warning("Invalid billing payload", error_count=e.error_count())
        return error("Invalid payload", 400, error_code="INVALID_PAYLOAD")

    logger.info(
        "Billing event received",
        event_type=payload.event.type,
        app_user_id=payload.event.app_user_id,
    )

    try:
        outcome = BillingService().apply_event(payload.event)
    except Exception as e:
        logger.exception("Error processing billing event", error=str(e))
        return internal_error()

    logger.info("Billing event processed", outcome=outcome)
    return success({"received": True})
