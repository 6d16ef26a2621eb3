"""Analytics API handler."""

from datetime import datetime, timezone
from typing import Any

import structlog

from flashsynch.models.user import User
from flashsynch.services.analytics_service import AnalyticsService
from flashsynch.services.user_service import UserService
from flashsynch.utils.auth import get_auth_context
from flashsynch.utils.exceptions import FlashSynchError, ValidationError
from flashsynch.utils.responses import error, from_exception, internal_error, success

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle analytics API requests.

    Routes:
        GET /analytics/aggregate           - Across all active cards
        GET /analytics/cards/{card_id}     - One card

    Query params (aggregate):
        start_date: ISO-8601 date or datetime. Defaults to 30 days ago.
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path_params = event.get("pathParameters", {}) or {}
        card_id = path_params.get("card_id")

        if http_method != "GET":
            return error("Method not allowed", 405)

        auth = get_auth_context(event)
        user = UserService().resolve(auth)
        service = AnalyticsService()

        if card_id:
            return success(service.card_analytics(card_id, user.id))

        return get_aggregate(service, user, event)

    except FlashSynchError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Analytics handler error", error=str(e))
        return internal_error()


def get_aggregate(service: AnalyticsService, user: User, event: dict) -> dict:
    """Aggregate analytics across the user's active cards."""
    query_params = event.get("queryStringParameters", {}) or {}
    start_date = parse_start_date(query_params.get("start_date"))
    return success(service.owner_analytics(user.id, start_date=start_date))


def parse_start_date(value: str | None) -> datetime | None:
    """Parse the ``start_date`` query parameter.

    Naive values are taken as UTC; offsets are converted to UTC.

    Raises:
        ValidationError: If the value is not ISO-8601.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(
            "Invalid start_date",
            errors=[{"field": "start_date", "message": "Expected an ISO-8601 date"}],
        )
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
