"""Card analytics for the owner dashboard.

Totals always come from the counters stored on each card. Scan records only
feed the supplementary series (views per day, top links and referrers,
device mix) and the share count, which has no stored counter.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from flashsynch.models.scan import Scan, ScanEventType
from flashsynch.repositories.card import CardRepository
from flashsynch.repositories.scan import ScanRepository
from flashsynch.services.card_service import ensure_owned

logger = structlog.get_logger()

DEFAULT_WINDOW_DAYS = 30
TOP_LINKS_LIMIT = 10
TOP_REFERRERS_LIMIT = 10
TOP_CARDS_LIMIT = 5
UNKNOWN_DEVICE = "unknown"


def views_by_day(scans: Iterable[Scan], since: datetime) -> list[dict[str, Any]]:
    """Count view events per UTC day, ascending. Days without views are omitted."""
    counts = Counter(
        scan.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d")
        for scan in scans
        if scan.event_type == ScanEventType.VIEW.value and scan.timestamp >= since
    )
    return [{"date": day, "count": count} for day, count in sorted(counts.items())]


class AnalyticsService:
    """Per-card and per-owner analytics."""

    def __init__(
        self,
        cards: CardRepository | None = None,
        scans: ScanRepository | None = None,
    ):
        self.cards = cards or CardRepository()
        self.scans = scans or ScanRepository()

    def card_analytics(
        self,
        card_id: str,
        requester_id: str,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Analytics for one card, owner only.

        Args:
            card_id: The card ID.
            requester_id: The requesting user's ID.
            now: Reference time for the trailing window.

        Returns:
            Totals, views per day over the trailing 30 days, top links,
            top referrers and device breakdown.
        """
        card = ensure_owned(self.cards.get_by_id(card_id), card_id, requester_id)
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=DEFAULT_WINDOW_DAYS)

        scans = self.scans.list_for_card(card.id)

        link_clicks = Counter(
            scan.link_id
            for scan in scans
            if scan.event_type == ScanEventType.CLICK.value and scan.link_id
        )
        top_links = []
        for link_id, clicks in link_clicks.most_common(TOP_LINKS_LIMIT):
            link = card.find_link(link_id)
            top_links.append(
                {"link_id": link_id, "label": link.label if link else None, "clicks": clicks}
            )

        referrers = Counter(scan.metadata.referrer for scan in scans if scan.metadata.referrer)
        devices = Counter(scan.metadata.device_type or UNKNOWN_DEVICE for scan in scans)

        return {
            "card_id": card.id,
            "totals": {
                "views": card.analytics.total_views,
                "clicks": card.analytics.total_clicks,
                "captures": card.analytics.total_captures,
            },
            "views_by_day": views_by_day(scans, since),
            "top_links": top_links,
            "top_referrers": [
                {"referrer": referrer, "count": count}
                for referrer, count in referrers.most_common(TOP_REFERRERS_LIMIT)
            ],
            "device_breakdown": dict(devices),
        }

    def owner_analytics(
        self,
        owner_id: str,
        start_date: datetime | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Analytics across all of an owner's active cards.

        Args:
            owner_id: The owner's user ID.
            start_date: Start of the event window. Defaults to 30 days ago.
            now: Reference time for the default window.

        Returns:
            All-time totals from card counters, share count and views per
            day within the window, and the top cards by views.
        """
        now = now or datetime.now(timezone.utc)
        since = start_date or now - timedelta(days=DEFAULT_WINDOW_DAYS)

        cards = self.cards.list_active_by_owner(owner_id)
        if not cards:
            return {
                "totals": {"views": 0, "clicks": 0, "captures": 0, "shares": 0},
                "views_by_day": [],
                "top_cards": [],
                "card_count": 0,
            }

        card_ids = {card.id for card in cards}
        scans = [
            scan
            for scan in self.scans.list_for_owner(owner_id, since)
            if scan.card_id in card_ids
        ]
        shares = sum(1 for scan in scans if scan.event_type == ScanEventType.SHARE.value)

        ranked = sorted(cards, key=lambda card: card.analytics.total_views, reverse=True)

        logger.debug("Owner analytics computed", owner_id=owner_id, cards=len(cards), scans=len(scans))

        return {
            "totals": {
                "views": sum(card.analytics.total_views for card in cards),
                "clicks": sum(card.analytics.total_clicks for card in cards),
                "captures": sum(card.analytics.total_captures for card in cards),
                "shares": shares,
            },
            "views_by_day": views_by_day(scans, since),
            "top_cards": [
                {
                    "card_id": card.id,
                    "card_name": card.display_name,
                    "views": card.analytics.total_views,
                }
                for card in ranked[:TOP_CARDS_LIMIT]
            ],
            "card_count": len(cards),
        }
