"""Tests for billing plan updates."""

import hashlib
import hmac
from datetime import datetime, timezone

import pytest

from flashsynch.models.billing import BillingEvent
from flashsynch.repositories.user import UserRepository
from flashsynch.services.billing import BillingService, resolve_plan, verify_signature


class TestVerifySignature:
    """Tests for webhook signature checks."""

    def test_valid(self):
        body = b'{"event": {}}'
        signature = hmac.new(b"secret", body, hashlib.sha256).hexdigest()

        assert verify_signature(body, signature, "secret")
        assert verify_signature(body, signature.upper(), "secret")

    def test_invalid(self):
        body = b'{"event": {}}'
        signature = hmac.new(b"other", body, hashlib.sha256).hexdigest()

        assert not verify_signature(body, signature, "secret")
        assert not verify_signature(body, None, "secret")
        assert not verify_signature(body + b" ", hmac.new(b"secret", body, hashlib.sha256).hexdigest(), "secret")


class TestResolvePlan:
    """Tests for entitlement mapping."""

    @pytest.mark.parametrize(
        "entitlements,expected",
        [
            (["flashsynch_pro"], "pro"),
            (["flashsynch_team"], "team"),
            (["flashsynch_pro", "flashsynch_team"], "team"),
            (["something_else"], "free"),
            (None, "free"),
        ],
    )
    def test_resolve_plan(self, entitlements, expected):
        assert resolve_plan(entitlements) == expected


class TestBillingService:
    """Tests for BillingService.apply_event."""

    def test_purchase_upgrades(self, owner):
        """A purchase sets the plan and expiry."""
        expires_ms = int(datetime(2027, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)
        event = BillingEvent(
            type="INITIAL_PURCHASE",
            app_user_id=owner.subject_id,
            entitlement_ids=["flashsynch_pro"],
            expiration_at_ms=expires_ms,
        )

        assert BillingService().apply_event(event) == "updated"

        user = UserRepository().get_by_id(owner.id)
        assert user.plan == "pro"
        assert user.plan_expires_at == datetime(2027, 1, 1, tzinfo=timezone.utc)

    def test_cancellation_downgrades(self, owner):
        """Cancellation returns the user to the free plan."""
        service = BillingService()
        service.apply_event(
            BillingEvent(type="RENEWAL", app_user_id=owner.subject_id, entitlement_ids=["flashsynch_pro"])
        )

        assert service.apply_event(BillingEvent(type="CANCELLATION", app_user_id=owner.subject_id)) == "updated"

        user = UserRepository().get_by_id(owner.id)
        assert user.plan == "free"
        assert user.plan_expires_at is None

    def test_unknown_event_ignored(self, owner):
        event = BillingEvent(type="SUBSCRIBER_ALIAS", app_user_id=owner.subject_id)

        assert BillingService().apply_event(event) == "ignored"
        assert UserRepository().get_by_id(owner.id).version == owner.version

    def test_unknown_user(self, dynamodb_table):
        event = BillingEvent(type="INITIAL_PURCHASE", app_user_id="nobody", entitlement_ids=["flashsynch_pro"])

        assert BillingService().apply_event(event) == "user_not_found"
