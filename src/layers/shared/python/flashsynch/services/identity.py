"""Identity token verification.

Verifies Firebase ID tokens (RS256 JWTs) against Google's published signing
keys.
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from urllib.request import urlopen

import jwt
import structlog

from flashsynch.config import get_settings
from flashsynch.utils.exceptions import ExternalServiceError, UnauthorizedError

logger = structlog.get_logger()

FIREBASE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/securetoken@system.gserviceaccount.com"
)
JWKS_CACHE_TTL = 3600  # 1 hour
JWKS_FETCH_TIMEOUT = 10


@dataclass
class VerifiedIdentity:
    """Claims the core relies on from a verified token."""

    subject_id: str
    email: str | None = None
    name: str | None = None


def fetch_jwks(url: str = FIREBASE_JWKS_URL) -> dict[str, Any]:
    """Download a JWKS document."""
    with urlopen(url, timeout=JWKS_FETCH_TIMEOUT) as response:
        return json.loads(response.read().decode("utf-8"))


class IdentityVerifier:
    """Verifies bearer tokens and keeps the signing keys cached."""

    def __init__(
        self,
        project_id: str | None,
        jwks_loader: Callable[[], dict[str, Any]] = fetch_jwks,
        cache_ttl: int = JWKS_CACHE_TTL,
    ):
        """Initialize the verifier.

        Args:
            project_id: Firebase project ID, used as audience and in the issuer.
            jwks_loader: Returns the current JWKS document.
            cache_ttl: Seconds before the keys are fetched again.
        """
        self.project_id = project_id
        self.jwks_loader = jwks_loader
        self.cache_ttl = cache_ttl
        self._jwks: dict[str, Any] = {}
        self._jwks_time: float = 0

    @property
    def issuer(self) -> str:
        return f"https://securetoken.google.com/{self.project_id}"

    def verify(self, token: str) -> VerifiedIdentity:
        """Verify a token and return its identity.

        Args:
            token: Raw JWT.

        Returns:
            The verified identity.

        Raises:
            UnauthorizedError: If the token is malformed, expired or forged.
            ExternalServiceError: If the signing keys are unavailable.
        """
        if not self.project_id:
            raise ExternalServiceError("identity", "Identity provider is not configured")

        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except jwt.exceptions.DecodeError:
            raise UnauthorizedError("Invalid token")

        public_key = None
        for key in self._get_jwks().get("keys", []):
            if key.get("kid") == kid:
                public_key = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(key))
                break

        if public_key is None:
            logger.warning("No matching key found in JWKS", kid=kid)
            raise UnauthorizedError("Invalid token")

        try:
            claims = jwt.decode(
                token,
                public_key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid token", error=str(e))
            raise UnauthorizedError("Invalid token")

        if not claims.get("sub"):
            raise UnauthorizedError("Invalid token")

        return VerifiedIdentity(
            subject_id=claims["sub"],
            email=claims.get("email"),
            name=claims.get("name"),
        )

    def _get_jwks(self) -> dict[str, Any]:
        """Get signing keys, refreshing the cache when stale.

        A stale cache is still used when a refresh fails.
        """
        now = time.time()
        if self._jwks and (now - self._jwks_time) <= self.cache_ttl:
            return self._jwks

        try:
            self._jwks = self.jwks_loader()
            self._jwks_time = now
            logger.info("JWKS cache refreshed")
        except Exception as e:
            logger.error("Failed to fetch JWKS", error=str(e))
            if not self._jwks:
                raise ExternalServiceError("identity", original_error=str(e))

        return self._jwks


@lru_cache(maxsize=1)
def get_identity_verifier() -> IdentityVerifier:
    """Get the process-wide verifier so the key cache survives warm starts."""
    return IdentityVerifier(project_id=get_settings().identity_project_id)
