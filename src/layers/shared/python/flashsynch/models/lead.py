"""Lead model for visitor-submitted contact requests."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, EmailStr, Field, field_validator

from flashsynch.models.base import BaseModel


class LeadStatus(str, Enum):
    """Owner workflow status of a lead."""

    NEW = "new"
    CONTACTED = "contacted"
    WON = "won"
    LOST = "lost"


class LeadChannel(str, Enum):
    """How the visitor reached the card."""

    NFC_TAP = "nfc_tap"
    QR_SCAN = "qr_scan"
    LINK_SHARE = "link_share"
    EMBED = "embed"


class LeadDetails(PydanticBaseModel):
    """Contact details entered by the visitor."""

    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    notes: str | None = None


class LeadSource(PydanticBaseModel):
    """Where the lead came from. Request context fields are best effort."""

    model_config = ConfigDict(use_enum_values=True)

    channel: LeadChannel = LeadChannel.LINK_SHARE
    referrer: str | None = None
    ip: str | None = None
    user_agent: str | None = None


class Lead(BaseModel):
    """Lead entity - shown to the card owner as a contact.

    Key Pattern:
        PK: LEAD#{id}
        SK: LEAD
        GSI1PK: OWNER#{card_owner_id}#LEADS
        GSI1SK: {created_at}#{id}
    """

    card_id: str = Field(..., description="Originating card ID")
    card_owner_id: str = Field(..., description="Owner of the originating card")

    lead: LeadDetails
    source: LeadSource = Field(default_factory=LeadSource)
    consent: bool = Field(..., description="Visitor consented to be contacted")

    status: LeadStatus = LeadStatus.NEW
    tags: list[str] = Field(default_factory=list)
    synced_to_crm: bool = False
    crm_lead_id: str | None = None

    def get_pk(self) -> str:
        """Get partition key: LEAD#{id}."""
        return f"LEAD#{self.id}"

    def get_sk(self) -> str:
        """Get sort key: LEAD."""
        return "LEAD"

    def get_gsi_keys(self) -> dict[str, str]:
        """Owner listing keys, newest first when scanned backwards."""
        return {
            "GSI1PK": f"OWNER#{self.card_owner_id}#LEADS",
            "GSI1SK": f"{self.created_at.isoformat()}#{self.id}",
        }


class LeadCaptureRequest(PydanticBaseModel):
    """Request model for a public lead submission.

    Consent must be sent explicitly as ``true``.
    """

    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=20)
    company: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=1000)
    consent: Literal[True]
    channel: LeadChannel = LeadChannel.LINK_SHARE

    @field_validator("consent", mode="before")
    @classmethod
    def require_consent(cls, v):
        """Reject anything other than an explicit true."""
        if v is not True:
            raise ValueError("Consent is required")
        return v

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v: str) -> str:
        if len(v) > 255:
            raise ValueError("Email must be 255 characters or fewer")
        return v

    @field_validator("phone", "company", "notes")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        return v or None


class UpdateLeadRequest(PydanticBaseModel):
    """Request model for the owner's lead workflow update."""

    model_config = ConfigDict(use_enum_values=True)

    status: LeadStatus | None = None
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        """Trim tags, drop empties, cap length."""
        if v is None:
            return None
        tags = []
        for tag in v:
            tag = tag.strip()
            if len(tag) > 50:
                raise ValueError("Tags must be 50 characters or fewer")
            if tag and tag not in tags:
                tags.append(tag)
        return tags


class ListLeadsQuery(PydanticBaseModel):
    """Query parameters for listing an owner's leads."""

    model_config = ConfigDict(use_enum_values=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    card_id: str | None = None
    status: LeadStatus | None = None
