"""Security tests for authentication and access control.

These tests verify that:
- The token authorizer only allows verified identity tokens
- Owners cannot read or change each other's cards and contacts
- Visitor-facing responses never expose owner data
"""

import json
import time
from unittest.mock import patch

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from flashsynch.services.identity import IdentityVerifier

PROJECT_ID = "flashsynch-test"
KID = "auth-test-key"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def verifier(signing_key):
    jwk = json.loads(RSAAlgorithm.to_jwk(signing_key.public_key()))
    jwk["kid"] = KID
    verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: {"keys": [jwk]})
    with patch("authorizer.jwt_authorizer.get_identity_verifier", return_value=verifier):
        yield verifier


def _token(key, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "firebase-uid-1",
        "email": "ada@example.com",
        "iat": now,
        "exp": now + 3600,
        **overrides,
    }
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": KID})


def authorizer_event(token: str | None) -> dict:
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return {
        "type": "REQUEST",
        "methodArn": "arn:aws:execute-api:us-east-1:123456789012:abc123/prod/GET/cards",
        "headers": headers,
    }


class TestTokenAuthorizer:
    """Tests for the API Gateway token authorizer."""

    def test_valid_token_allowed(self, verifier, signing_key):
        from authorizer.jwt_authorizer import handler

        policy = handler(authorizer_event(_token(signing_key)), None)

        statement = policy["policyDocument"]["Statement"][0]
        assert statement["Effect"] == "Allow"
        assert statement["Resource"] == "arn:aws:execute-api:us-east-1:123456789012:abc123/prod/*"
        assert policy["principalId"] == "firebase-uid-1"
        assert policy["context"] == {"userId": "firebase-uid-1", "email": "ada@example.com", "name": ""}

    def test_missing_token_unauthorized(self, verifier):
        from authorizer.jwt_authorizer import handler

        with pytest.raises(Exception, match="^Unauthorized$"):
            handler(authorizer_event(None), None)

    def test_expired_token_unauthorized(self, verifier, signing_key):
        from authorizer.jwt_authorizer import handler

        now = int(time.time())
        with pytest.raises(Exception, match="^Unauthorized$"):
            handler(authorizer_event(_token(signing_key, iat=now - 7200, exp=now - 60)), None)

    def test_forged_token_unauthorized(self, verifier):
        from authorizer.jwt_authorizer import handler

        forged_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        with pytest.raises(Exception, match="^Unauthorized$"):
            handler(authorizer_event(_token(forged_key)), None)

    def test_unconfigured_provider_unauthorized(self, signing_key):
        from authorizer.jwt_authorizer import handler

        unconfigured = IdentityVerifier(None, jwks_loader=lambda: {"keys": []})
        with patch("authorizer.jwt_authorizer.get_identity_verifier", return_value=unconfigured):
            with pytest.raises(Exception, match="^Unauthorized$"):
                handler(authorizer_event(_token(signing_key)), None)


class TestOwnerIsolation:
    """Owners only ever see their own resources."""

    def test_cannot_archive_other_card(self, api_gateway_event, sample_card):
        from api.cards import handler
        from flashsynch.repositories.card import CardRepository

        response = handler(
            api_gateway_event(
                method="DELETE",
                path_params={"card_id": sample_card.id},
                user_id="intruder",
                name="Mallory",
            ),
            None,
        )

        assert response["statusCode"] == 403
        body = json.loads(response["body"])
        assert body.get("error") is True
        assert CardRepository().get_by_id(sample_card.id).status == "active"

    def test_list_is_scoped_to_owner(self, api_gateway_event, sample_card):
        from api.cards import handler

        response = handler(api_gateway_event(method="GET", user_id="intruder", name="Mallory"), None)

        assert json.loads(response["body"])["cards"] == []

    def test_owner_id_in_body_is_ignored(self, api_gateway_event, owner, dynamodb_table):
        from api.cards import handler

        response = handler(
            api_gateway_event(
                method="POST",
                path="/cards",
                body={"owner_id": "someone-else", "profile": {"first_name": "Ada", "last_name": "Lovelace"}},
            ),
            None,
        )

        assert json.loads(response["body"])["owner_id"] == owner.id

    def test_public_card_has_no_owner_data(self, sample_card):
        from api.public_cards import handler

        response = handler(
            {
                "httpMethod": "GET",
                "path": f"/public/cards/{sample_card.slug}",
                "pathParameters": {"slug": sample_card.slug},
                "headers": {},
                "requestContext": {},
            },
            None,
        )

        body = response["body"]
        assert sample_card.owner_id not in body
        assert "analytics" not in json.loads(body)
