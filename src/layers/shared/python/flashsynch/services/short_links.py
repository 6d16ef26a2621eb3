"""Short-link service client (QRSynch).

Short links are an optional enhancement. Every failure, including a missing
API key, yields ``None`` so card writes never depend on the service.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from flashsynch.config import Settings
from flashsynch.models.card import CardLink, LinkType

logger = structlog.get_logger()

UTM_SOURCE = "flashsynch"
NON_SHORTENABLE_TYPES = {LinkType.EMAIL.value, LinkType.PHONE.value}


@dataclass
class ShortLink:
    """A link issued by the short-link service."""

    id: str
    short_url: str


class ShortLinkClient:
    """Creates tracked short URLs for card links and card pages."""

    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        public_base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            api_key: Bearer token. ``None`` turns every call into a no-op.
            api_url: Service base URL, e.g. ``https://api.qrsynch.com/v1``.
            public_base_url: Base URL of public card pages.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.public_base_url = public_base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "ShortLinkClient":
        return cls(
            api_key=settings.short_link_api_key,
            api_url=settings.short_link_api_url,
            public_base_url=settings.public_base_url,
            timeout=settings.short_link_timeout,
        )

    def create_short_link(
        self,
        url: str,
        medium: str,
        campaign: str,
    ) -> ShortLink | None:
        """Create a short link for ``url``.

        Args:
            url: Destination URL.
            medium: UTM medium, e.g. ``card`` or ``card_share``.
            campaign: UTM campaign, the card slug.

        Returns:
            The issued link, or None if the service is unconfigured or failed.
        """
        if not self.api_key:
            return None

        payload = {
            "url": url,
            "utmSource": UTM_SOURCE,
            "utmMedium": medium,
            "utmCampaign": campaign,
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    f"{self.api_url}/links",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            return ShortLink(id=str(data["id"]), short_url=str(data["shortUrl"]))

        except httpx.TimeoutException:
            logger.warning("Short link request timed out", url=url, timeout=self.timeout)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Short link service returned an error",
                url=url,
                status_code=e.response.status_code,
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.warning("Short link request failed", url=url, error=str(e))

        return None

    def card_page_url(self, slug: str) -> str:
        return f"{self.public_base_url}/c/{slug}"

    def shorten_card_page(self, slug: str) -> ShortLink | None:
        """Shorten the public URL of a card."""
        return self.create_short_link(self.card_page_url(slug), medium="card_share", campaign=slug)

    def enrich_link(self, link: CardLink, slug: str) -> CardLink:
        """Attach a short URL to a web link, leaving other links untouched.

        Args:
            link: New card link.
            slug: Slug of the card the link belongs to.

        Returns:
            The same link, with ``short_url`` set when one was issued.
        """
        if link.type in NON_SHORTENABLE_TYPES:
            return link
        if not link.value.startswith(("http://", "https://")):
            return link

        short_link = self.create_short_link(link.value, medium="card", campaign=slug)
        if short_link:
            link.short_url = short_link.short_url
            link.short_link_id = short_link.id
        return link
