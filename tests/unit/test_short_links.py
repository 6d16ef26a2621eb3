"""Tests for the short-link client."""

import json

import httpx

from flashsynch.models.card import CardLink
from flashsynch.services.short_links import ShortLinkClient


def _client(handler, api_key="sk-test") -> ShortLinkClient:
    return ShortLinkClient(
        api_key=api_key,
        api_url="https://short.example.com/v1/",
        public_base_url="https://flashsynch.test",
        timeout=2.0,
        transport=httpx.MockTransport(handler),
    )


class TestCreateShortLink:
    """Tests for ShortLinkClient.create_short_link."""

    def test_success(self):
        """A successful call returns the issued link."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"id": "sl_1", "shortUrl": "https://qrs.to/abc"})

        link = _client(handler).create_short_link("https://ada.example.com", "card", "ada-lovelace")

        assert link.id == "sl_1"
        assert link.short_url == "https://qrs.to/abc"

        request = requests[0]
        assert str(request.url) == "https://short.example.com/v1/links"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert json.loads(request.content) == {
            "url": "https://ada.example.com",
            "utmSource": "flashsynch",
            "utmMedium": "card",
            "utmCampaign": "ada-lovelace",
        }

    def test_no_api_key(self):
        """Without an API key no request is made."""
        def handler(request):
            raise AssertionError("should not be called")

        assert _client(handler, api_key=None).create_short_link("https://x.io", "card", "x") is None

    def test_error_status(self):
        """Service errors yield None."""
        client = _client(lambda request: httpx.Response(500, json={"error": "boom"}))

        assert client.create_short_link("https://x.io", "card", "x") is None

    def test_timeout(self):
        """Timeouts yield None."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert _client(handler).create_short_link("https://x.io", "card", "x") is None

    def test_malformed_response(self):
        """Responses without the expected fields yield None."""
        client = _client(lambda request: httpx.Response(200, json={"unexpected": True}))

        assert client.create_short_link("https://x.io", "card", "x") is None


class TestEnrichLink:
    """Tests for ShortLinkClient.enrich_link."""

    def _ok(self, request):
        return httpx.Response(200, json={"id": "sl_2", "shortUrl": "https://qrs.to/def"})

    def test_web_link_gets_short_url(self):
        link = CardLink(type="website", label="Site", value="https://ada.example.com", icon="globe")

        enriched = _client(self._ok).enrich_link(link, "ada-lovelace")

        assert enriched.short_url == "https://qrs.to/def"
        assert enriched.short_link_id == "sl_2"

    def test_email_and_phone_are_skipped(self):
        """Email and phone links are never shortened."""
        email = CardLink(type="email", label="Email", value="https://mail.example.com", icon="mail")
        phone = CardLink(type="phone", label="Phone", value="+15551234567", icon="phone")
        client = _client(self._ok)

        assert client.enrich_link(email, "ada").short_url is None
        assert client.enrich_link(phone, "ada").short_url is None

    def test_non_http_value_is_skipped(self):
        link = CardLink(type="custom", label="Handle", value="@ada", icon="at")

        assert _client(self._ok).enrich_link(link, "ada").short_url is None

    def test_card_page_url(self):
        client = _client(self._ok)

        assert client.card_page_url("ada-lovelace") == "https://flashsynch.test/c/ada-lovelace"
        assert client.shorten_card_page("ada-lovelace").short_url == "https://qrs.to/def"
