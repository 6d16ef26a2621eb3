"""Tests for scan recording."""

import pytest

from flashsynch.repositories.card import CardRepository
from flashsynch.repositories.scan import ScanRepository
from flashsynch.services.scan_service import RequestContext, ScanService, classify_user_agent

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD_UA = (
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class TestClassifyUserAgent:
    """Tests for device classification."""

    def test_mobile(self):
        metadata = classify_user_agent(IPHONE_UA)

        assert metadata.device_type == "mobile"
        assert metadata.os == "iOS"

    def test_tablet(self):
        assert classify_user_agent(IPAD_UA).device_type == "tablet"

    def test_desktop(self):
        metadata = classify_user_agent(DESKTOP_UA)

        assert metadata.device_type == "desktop"
        assert metadata.browser == "Chrome"

    def test_missing_user_agent(self):
        """Without a user agent nothing is inferred."""
        metadata = classify_user_agent(None)

        assert metadata.device_type is None
        assert metadata.browser is None


class TestScanService:
    """Tests for ScanService.track."""

    @pytest.mark.parametrize(
        "event_type,views,clicks",
        [
            ("view", 1, 0),
            ("click", 0, 1),
            ("share", 0, 0),
            ("save_contact", 0, 0),
        ],
    )
    def test_counter_per_event_type(self, sample_card, event_type, views, clicks):
        """Only views and clicks have counters."""
        ScanService().track(sample_card, event_type, None, RequestContext())

        card = CardRepository().get_by_id(sample_card.id)
        assert card.analytics.total_views == views
        assert card.analytics.total_clicks == clicks
        assert card.analytics.total_captures == 0

    def test_records_request_context(self, sample_card):
        """Request details and inferred device are stored with the scan."""
        link_id = sample_card.links[1].id

        scan = ScanService().track(
            sample_card,
            "click",
            link_id,
            RequestContext(ip="203.0.113.10", user_agent=IPHONE_UA, referrer="https://t.co/x"),
        )

        stored = ScanRepository().list_for_card(sample_card.id)
        assert [s.id for s in stored] == [scan.id]
        assert stored[0].link_id == link_id
        assert stored[0].card_owner_id == sample_card.owner_id
        assert stored[0].metadata.ip == "203.0.113.10"
        assert stored[0].metadata.referrer == "https://t.co/x"
        assert stored[0].metadata.device_type == "mobile"
