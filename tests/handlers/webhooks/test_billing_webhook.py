"""Tests for the billing webhook handler."""

import base64
import hashlib
import hmac
import json

from flashsynch.repositories.user import UserRepository

SECRET = "whsec-test"


def webhook_event(payload, secret=SECRET, signature=None, base64_encode=False) -> dict:
    """Build a signed webhook event."""
    raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    if signature is None:
        signature = hmac.new(secret.encode("utf-8"), raw, hashlib.sha256).hexdigest()
    return {
        "httpMethod": "POST",
        "path": "/webhooks/billing",
        "headers": {"Content-Type": "application/json", "X-RevenueCat-Signature": signature},
        "body": base64.b64encode(raw).decode("ascii") if base64_encode else raw.decode("utf-8"),
        "isBase64Encoded": base64_encode,
    }


def _purchase(app_user_id: str) -> dict:
    return {
        "event": {
            "type": "INITIAL_PURCHASE",
            "app_user_id": app_user_id,
            "entitlement_ids": ["flashsynch_pro"],
            "expiration_at_ms": 1798761600000,
        }
    }


class TestBillingWebhook:
    """Tests for POST /webhooks/billing."""

    def test_purchase(self, owner):
        from webhooks.billing_webhook import handler

        response = handler(webhook_event(_purchase(owner.subject_id)), None)

        assert response["statusCode"] == 200
        assert json.loads(response["body"]) == {"received": True}
        assert UserRepository().get_by_id(owner.id).plan == "pro"

    def test_cancellation(self, owner):
        from webhooks.billing_webhook import handler

        handler(webhook_event(_purchase(owner.subject_id)), None)
        response = handler(
            webhook_event({"event": {"type": "CANCELLATION", "app_user_id": owner.subject_id}}),
            None,
        )

        assert response["statusCode"] == 200
        assert UserRepository().get_by_id(owner.id).plan == "free"

    def test_base64_body(self, owner):
        from webhooks.billing_webhook import handler

        response = handler(webhook_event(_purchase(owner.subject_id), base64_encode=True), None)

        assert response["statusCode"] == 200
        assert UserRepository().get_by_id(owner.id).plan == "pro"

    def test_bad_signature(self, owner):
        from webhooks.billing_webhook import handler

        response = handler(webhook_event(_purchase(owner.subject_id), secret="wrong"), None)

        assert response["statusCode"] == 401
        assert json.loads(response["body"])["error_code"] == "INVALID_SIGNATURE"
        assert UserRepository().get_by_id(owner.id).plan == "free"

    def test_missing_signature(self, owner):
        from webhooks.billing_webhook import handler

        event = webhook_event(_purchase(owner.subject_id))
        del event["headers"]["X-RevenueCat-Signature"]

        assert handler(event, None)["statusCode"] == 401

    def test_invalid_payload(self, dynamodb_table):
        from webhooks.billing_webhook import handler

        response = handler(webhook_event({"not_event": {}}), None)

        assert response["statusCode"] == 400
        assert json.loads(response["body"])["error_code"] == "INVALID_PAYLOAD"

    def test_unknown_event_acknowledged(self, owner):
        from webhooks.billing_webhook import handler

        response = handler(
            webhook_event({"event": {"type": "TRANSFER", "app_user_id": owner.subject_id}}),
            None,
        )

        assert response["statusCode"] == 200

    def test_unknown_user_acknowledged(self, dynamodb_table):
        from webhooks.billing_webhook import handler

        assert handler(webhook_event(_purchase("nobody")), None)["statusCode"] == 200

    def test_not_configured(self, dynamodb_table, monkeypatch):
        from flashsynch.config import get_settings
        from webhooks.billing_webhook import handler

        monkeypatch.delenv("REVENUECAT_WEBHOOK_SECRET")
        get_settings.cache_clear()

        response = handler(webhook_event(_purchase("anyone")), None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["error_code"] == "WEBHOOK_NOT_CONFIGURED"
