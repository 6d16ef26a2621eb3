"""Tests for the contacts API handler."""

import json
from unittest.mock import MagicMock

import pytest

from flashsynch.services.lead_service import LeadService
from flashsynch.services.scan_service import RequestContext


def _parse_body(response: dict) -> dict:
    """Parse JSON response body."""
    return json.loads(response["body"])


@pytest.fixture
def captured_leads(owner, sample_card):
    """Capture three leads on the owner's card."""
    service = LeadService(email=MagicMock())
    return [
        service.capture_lead(
            sample_card.slug,
            {"name": f"Visitor {i}", "email": f"visitor{i}@example.com", "consent": True},
            RequestContext(),
        )
        for i in range(3)
    ]


class TestListContacts:
    """Tests for GET /contacts."""

    def test_list(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        response = handler(api_gateway_event(method="GET", path="/contacts", query_params={"limit": "2"}), None)

        assert response["statusCode"] == 200
        body = _parse_body(response)
        assert [c["lead"]["name"] for c in body["contacts"]] == ["Visitor 2", "Visitor 1"]
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    def test_filter_by_card(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        response = handler(
            api_gateway_event(method="GET", path="/contacts", query_params={"card_id": "other-card"}),
            None,
        )

        assert _parse_body(response)["contacts"] == []

    def test_invalid_limit(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        response = handler(api_gateway_event(method="GET", path="/contacts", query_params={"limit": "1000"}), None)

        assert response["statusCode"] == 400

    def test_other_owner_sees_nothing(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        response = handler(
            api_gateway_event(method="GET", path="/contacts", user_id="other-user-456", name="Grace Hopper"),
            None,
        )

        assert _parse_body(response)["pagination"]["total"] == 0


class TestContactDetail:
    """Tests for GET and PUT /contacts/{contact_id}."""

    def test_get(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        lead = captured_leads[0]
        response = handler(
            api_gateway_event(method="GET", path=f"/contacts/{lead.id}", path_params={"contact_id": lead.id}),
            None,
        )

        assert response["statusCode"] == 200
        assert _parse_body(response)["lead"]["email"] == "visitor0@example.com"

    def test_update_status(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        lead = captured_leads[0]
        response = handler(
            api_gateway_event(
                method="PUT",
                path=f"/contacts/{lead.id}",
                path_params={"contact_id": lead.id},
                body={"status": "won", "tags": ["conference"]},
            ),
            None,
        )

        assert response["statusCode"] == 200
        body = _parse_body(response)
        assert body["status"] == "won"
        assert body["tags"] == ["conference"]

    def test_invalid_status(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        lead = captured_leads[0]
        response = handler(
            api_gateway_event(
                method="PUT",
                path=f"/contacts/{lead.id}",
                path_params={"contact_id": lead.id},
                body={"status": "archived"},
            ),
            None,
        )

        assert response["statusCode"] == 400

    def test_other_owner_forbidden(self, api_gateway_event, captured_leads):
        from api.contacts import handler

        lead = captured_leads[0]
        response = handler(
            api_gateway_event(
                method="GET",
                path=f"/contacts/{lead.id}",
                path_params={"contact_id": lead.id},
                user_id="other-user-456",
                name="Grace Hopper",
            ),
            None,
        )

        assert response["statusCode"] == 403

    def test_missing(self, api_gateway_event, owner):
        from api.contacts import handler

        response = handler(
            api_gateway_event(method="GET", path="/contacts/nope", path_params={"contact_id": "nope"}),
            None,
        )

        assert response["statusCode"] == 404
        assert _parse_body(response)["error_code"] == "CONTACT_NOT_FOUND"
