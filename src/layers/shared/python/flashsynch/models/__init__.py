"""Pydantic models for FlashSynch entities."""

from flashsynch.models.base import BaseModel
from flashsynch.models.card import (
    Card,
    CardAnalytics,
    CardLink,
    CardLinkInput,
    CardMode,
    CardProfile,
    CardSettings,
    CardStatus,
    CardTheme,
    CounterName,
    CreateCardRequest,
    LinkType,
    PublicCard,
    UpdateCardRequest,
)
from flashsynch.models.lead import (
    Lead,
    LeadCaptureRequest,
    LeadChannel,
    LeadDetails,
    LeadSource,
    LeadStatus,
    ListLeadsQuery,
    UpdateLeadRequest,
)
from flashsynch.models.scan import DeviceType, Scan, ScanEventType, ScanMetadata, TrackScanRequest
from flashsynch.models.user import PlanType, UpdateUserRequest, User

__all__ = [
    # Base
    "BaseModel",
    # Card
    "Card",
    "CardAnalytics",
    "CardLink",
    "CardLinkInput",
    "CardMode",
    "CardProfile",
    "CardSettings",
    "CardStatus",
    "CardTheme",
    "CounterName",
    "CreateCardRequest",
    "LinkType",
    "PublicCard",
    "UpdateCardRequest",
    # Lead
    "Lead",
    "LeadCaptureRequest",
    "LeadChannel",
    "LeadDetails",
    "LeadSource",
    "LeadStatus",
    "ListLeadsQuery",
    "UpdateLeadRequest",
    # Scan
    "DeviceType",
    "Scan",
    "ScanEventType",
    "ScanMetadata",
    "TrackScanRequest",
    # User
    "PlanType",
    "UpdateUserRequest",
    "User",
]
