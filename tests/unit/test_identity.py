"""Tests for identity token verification."""

import json
import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from flashsynch.services.identity import IdentityVerifier
from flashsynch.utils.exceptions import ExternalServiceError, UnauthorizedError

PROJECT_ID = "flashsynch-test"
KID = "test-key-1"


@pytest.fixture(scope="module")
def private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="module")
def jwks(private_key):
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": KID, "alg": "RS256", "use": "sig"})
    return {"keys": [jwk]}


def _token(private_key, kid=KID, **claim_overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "firebase-uid-1",
        "email": "ada@example.com",
        "name": "Ada Lovelace",
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(claim_overrides)
    return jwt.encode(claims, private_key, algorithm="RS256", headers={"kid": kid})


class TestIdentityVerifier:
    """Tests for IdentityVerifier.verify."""

    def test_valid_token(self, private_key, jwks):
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)

        identity = verifier.verify(_token(private_key))

        assert identity.subject_id == "firebase-uid-1"
        assert identity.email == "ada@example.com"
        assert identity.name == "Ada Lovelace"

    def test_expired_token(self, private_key, jwks):
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)
        now = int(time.time())

        with pytest.raises(UnauthorizedError, match="expired"):
            verifier.verify(_token(private_key, iat=now - 7200, exp=now - 3600))

    def test_wrong_audience(self, private_key, jwks):
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)

        with pytest.raises(UnauthorizedError):
            verifier.verify(_token(private_key, aud="another-project"))

    def test_wrong_issuer(self, private_key, jwks):
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)

        with pytest.raises(UnauthorizedError):
            verifier.verify(_token(private_key, iss="https://evil.example.com"))

    def test_unknown_key(self, private_key, jwks):
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)

        with pytest.raises(UnauthorizedError):
            verifier.verify(_token(private_key, kid="rotated-away"))

    def test_forged_signature(self, jwks):
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)

        with pytest.raises(UnauthorizedError):
            verifier.verify(_token(other_key))

    def test_garbage_token(self, jwks):
        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=lambda: jwks)

        with pytest.raises(UnauthorizedError):
            verifier.verify("not-a-jwt")

    def test_not_configured(self, private_key, jwks):
        verifier = IdentityVerifier(None, jwks_loader=lambda: jwks)

        with pytest.raises(ExternalServiceError):
            verifier.verify(_token(private_key))


class TestJwksCache:
    """Tests for signing key caching."""

    def test_keys_fetched_once(self, private_key, jwks):
        calls = []

        def loader():
            calls.append(1)
            return jwks

        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=loader)
        verifier.verify(_token(private_key))
        verifier.verify(_token(private_key))

        assert len(calls) == 1

    def test_stale_keys_used_when_refresh_fails(self, private_key, jwks):
        responses = [jwks]

        def loader():
            if responses:
                return responses.pop()
            raise OSError("network down")

        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=loader, cache_ttl=0)
        verifier.verify(_token(private_key))
        verifier._jwks_time -= 10

        assert verifier.verify(_token(private_key)).subject_id == "firebase-uid-1"

    def test_no_keys_available(self, private_key):
        def loader():
            raise OSError("network down")

        verifier = IdentityVerifier(PROJECT_ID, jwks_loader=loader)

        with pytest.raises(ExternalServiceError):
            verifier.verify(_token(private_key))
