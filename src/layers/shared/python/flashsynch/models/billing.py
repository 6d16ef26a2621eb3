"""Billing webhook payload models (RevenueCat)."""

from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, Field


class BillingEventType(str, Enum):
    """Event types the service reacts to. Others are acknowledged and ignored."""

    INITIAL_PURCHASE = "INITIAL_PURCHASE"
    RENEWAL = "RENEWAL"
    PRODUCT_CHANGE = "PRODUCT_CHANGE"
    CANCELLATION = "CANCELLATION"
    EXPIRATION = "EXPIRATION"
    BILLING_ISSUE = "BILLING_ISSUE"


class BillingEvent(PydanticBaseModel):
    """One subscription lifecycle event."""

    type: str
    app_user_id: str = Field(..., min_length=1, description="Identity provider subject ID")
    entitlement_ids: list[str] | None = None
    expiration_at_ms: int | None = None


class BillingWebhookPayload(PydanticBaseModel):
    """Webhook body envelope."""

    event: BillingEvent
