"""Service classes for business logic."""

from flashsynch.services.analytics_service import AnalyticsService
from flashsynch.services.billing import BillingService
from flashsynch.services.card_service import CardService
from flashsynch.services.email_service import EmailError, EmailService
from flashsynch.services.identity import IdentityVerifier, VerifiedIdentity
from flashsynch.services.lead_service import LeadService
from flashsynch.services.scan_service import RequestContext, ScanService
from flashsynch.services.short_links import ShortLink, ShortLinkClient
from flashsynch.services.user_service import UserService

__all__ = [
    "AnalyticsService",
    "BillingService",
    "CardService",
    "EmailError",
    "EmailService",
    "IdentityVerifier",
    "LeadService",
    "RequestContext",
    "ScanService",
    "ShortLink",
    "ShortLinkClient",
    "UserService",
    "VerifiedIdentity",
]
