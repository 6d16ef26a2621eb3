"""Subscription plan updates driven by the billing webhook."""

import hashlib
import hmac
from datetime import datetime, timezone

import structlog

from flashsynch.models.billing import BillingEvent, BillingEventType
from flashsynch.models.user import PlanType
from flashsynch.repositories.user import UserRepository

logger = structlog.get_logger()

ENTITLEMENT_PLANS = {
    "flashsynch_pro": PlanType.PRO,
    "flashsynch_team": PlanType.TEAM,
}

PLAN_RANK = {
    PlanType.FREE.value: 0,
    PlanType.PRO.value: 1,
    PlanType.TEAM.value: 2,
}

ACTIVATING_EVENTS = {
    BillingEventType.INITIAL_PURCHASE.value,
    BillingEventType.RENEWAL.value,
    BillingEventType.PRODUCT_CHANGE.value,
}
ENDING_EVENTS = {
    BillingEventType.CANCELLATION.value,
    BillingEventType.EXPIRATION.value,
}


def verify_signature(raw_body: bytes, signature: str | None, secret: str) -> bool:
    """Check a hex HMAC-SHA256 signature of the raw request body.

    Args:
        raw_body: Request body exactly as received.
        signature: Value of the signature header.
        secret: Shared webhook secret.

    Returns:
        True if the signature matches.
    """
    if not signature:
        return False
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature.strip().lower())


def resolve_plan(entitlement_ids: list[str] | None) -> str:
    """Map entitlements to the highest plan they grant.

    Args:
        entitlement_ids: Entitlement identifiers from the billing provider.

    Returns:
        Plan value; ``free`` when nothing is recognized.
    """
    plan = PlanType.FREE.value
    for entitlement_id in entitlement_ids or []:
        candidate = ENTITLEMENT_PLANS.get(entitlement_id)
        if candidate and PLAN_RANK[candidate.value] > PLAN_RANK[plan]:
            plan = candidate.value
    return plan


class BillingService:
    """Applies billing events to user plans."""

    def __init__(self, users: UserRepository | None = None):
        self.users = users or UserRepository()

    def apply_event(self, event: BillingEvent) -> str:
        """Apply one billing event.

        Args:
            event: Parsed webhook event.

        Returns:
            Outcome: ``updated``, ``ignored`` or ``user_not_found``.
        """
        if event.type not in ACTIVATING_EVENTS | ENDING_EVENTS:
            logger.info("Billing event acknowledged without changes", event_type=event.type)
            return "ignored"

        user = self.users.get_by_subject(event.app_user_id)
        if user is None:
            logger.warning("Billing event for unknown user", app_user_id=event.app_user_id)
            return "user_not_found"

        if event.type in ACTIVATING_EVENTS:
            user.plan = resolve_plan(event.entitlement_ids)
            user.plan_expires_at = (
                datetime.fromtimestamp(event.expiration_at_ms / 1000, tz=timezone.utc)
                if event.expiration_at_ms
                else None
            )
        else:
            user.plan = PlanType.FREE
            user.plan_expires_at = None

        self.users.update(user)
        logger.info(
            "User plan updated",
            user_id=user.id,
            event_type=event.type,
            plan=user.plan,
        )
        return "updated"
