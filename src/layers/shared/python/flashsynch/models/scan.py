"""Scan model for visitor interactions with a card."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator

from flashsynch.models.base import BaseModel, utc_now


class ScanEventType(str, Enum):
    """Visitor interaction types."""

    VIEW = "view"
    CLICK = "click"
    SAVE_CONTACT = "save_contact"
    SHARE = "share"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class ScanMetadata(PydanticBaseModel):
    """Request context captured with a scan. Every field may be absent."""

    model_config = ConfigDict(use_enum_values=True)

    ip: str | None = None
    user_agent: str | None = None
    referrer: str | None = None
    device_type: DeviceType | None = None
    browser: str | None = None
    os: str | None = None


class Scan(BaseModel):
    """Scan entity - an append-only record of one visitor interaction.

    Key Pattern:
        PK: CARD#{card_id}
        SK: SCAN#{timestamp}#{id}
        GSI1PK: OWNER#{card_owner_id}#SCANS
        GSI1SK: {timestamp}#{id}
    """

    card_id: str = Field(..., description="Card the interaction belongs to")
    card_owner_id: str = Field(..., description="Owner of the card at scan time")
    link_id: str | None = Field(None, description="Clicked link, if any")
    event_type: ScanEventType
    metadata: ScanMetadata = Field(default_factory=ScanMetadata)
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("timestamp")
    @classmethod
    def timestamp_in_utc(cls, value: datetime) -> datetime:
        """Store every timestamp in UTC so sort keys order chronologically."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def get_pk(self) -> str:
        """Get partition key: CARD#{card_id}."""
        return f"CARD#{self.card_id}"

    def get_sk(self) -> str:
        """Get sort key: SCAN#{timestamp}#{id}."""
        return f"SCAN#{self.timestamp.isoformat()}#{self.id}"

    def get_gsi_keys(self) -> dict[str, str]:
        """Owner-wide scan index keys."""
        return {
            "GSI1PK": f"OWNER#{self.card_owner_id}#SCANS",
            "GSI1SK": f"{self.timestamp.isoformat()}#{self.id}",
        }


class TrackScanRequest(PydanticBaseModel):
    """Request model for the public scan endpoint."""

    model_config = ConfigDict(use_enum_values=True)

    event_type: ScanEventType
    link_id: str | None = Field(None, max_length=64)
    referrer: str | None = Field(None, max_length=500)

    @field_validator("link_id", "referrer")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        return v or None
