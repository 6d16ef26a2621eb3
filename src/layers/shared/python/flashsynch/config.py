"""Runtime settings loaded from the Lambda environment."""

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration.

    Built once per Lambda container and handed to the services that need it.
    Optional integrations (short links, email, billing) are considered disabled
    when their credentials are empty.
    """

    table_name: str = "flashsynch-dev"
    stage: str = "dev"
    cors_allowed_origin: str = "*"
    public_base_url: str = "https://flashsynch.com"
    frontend_url: str = "https://app.flashsynch.com"
    short_link_api_key: str | None = None
    short_link_api_url: str = "https://api.qrsynch.com/v1"
    short_link_timeout: float = 10.0
    from_email: str | None = None
    from_name: str = "FlashSynch"
    identity_project_id: str | None = None
    billing_webhook_secret: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            table_name=os.environ.get("TABLE_NAME", cls.table_name),
            stage=os.environ.get("STAGE", cls.stage),
            cors_allowed_origin=os.environ.get("CORS_ALLOWED_ORIGIN", cls.cors_allowed_origin),
            public_base_url=os.environ.get("PUBLIC_BASE_URL", cls.public_base_url).rstrip("/"),
            frontend_url=os.environ.get("FRONTEND_URL", cls.frontend_url).rstrip("/"),
            short_link_api_key=os.environ.get("QRSYNCH_API_KEY") or None,
            short_link_api_url=os.environ.get("QRSYNCH_API_URL", cls.short_link_api_url).rstrip("/"),
            short_link_timeout=float(
                os.environ.get("QRSYNCH_TIMEOUT_SECONDS", cls.short_link_timeout)
            ),
            from_email=os.environ.get("SES_FROM_EMAIL") or None,
            from_name=os.environ.get("SES_FROM_NAME", cls.from_name),
            identity_project_id=os.environ.get("FIREBASE_PROJECT_ID") or None,
            billing_webhook_secret=os.environ.get("REVENUECAT_WEBHOOK_SECRET") or None,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings for this process."""
    return Settings.from_env()
