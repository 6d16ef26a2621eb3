"""Card model for public digital business cards."""

import re
from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator

from flashsynch.models.base import BaseModel, generate_ulid

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
HTTP_URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)
SLUG_PATTERN = r"^[a-z0-9-]+$"


def validate_http_url(v: str | None) -> str | None:
    """Validate an optional http(s) URL. Empty strings are treated as unset."""
    if v is None or v == "":
        return None
    if not HTTP_URL_PATTERN.match(v):
        raise ValueError("Must be a valid http(s) URL")
    return v


def validate_hex_color(v: str | None) -> str | None:
    if v is not None and not HEX_COLOR_PATTERN.match(v):
        raise ValueError("Must be a hex color like #2563EB")
    return v


class CardMode(str, Enum):
    """Presentation variant of a card."""

    BUSINESS = "business"
    LANDING = "landing"
    LEAD = "lead"
    LINK = "link"


class CardStatus(str, Enum):
    """Card status enum."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class LinkType(str, Enum):
    """Supported contact and social channels."""

    EMAIL = "email"
    PHONE = "phone"
    LINKEDIN = "linkedin"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    GITHUB = "github"
    WEBSITE = "website"
    CALENDLY = "calendly"
    CUSTOM = "custom"


class CardTemplate(str, Enum):
    MODERN = "modern"
    CLASSIC = "classic"
    MINIMAL = "minimal"
    BOLD = "bold"


class FontFamily(str, Enum):
    SANS = "sans"
    SERIF = "serif"
    MONO = "mono"


class CardLayout(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


class CounterName(str, Enum):
    """Card analytics counters that can be incremented."""

    VIEWS = "total_views"
    CLICKS = "total_clicks"
    CAPTURES = "total_captures"


class CardProfile(PydanticBaseModel):
    """Owner-editable profile shown at the top of a card."""

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    display_name: str | None = Field(None, max_length=100)
    title: str | None = Field(None, max_length=100)
    company: str | None = Field(None, max_length=100)
    headline: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=1000)
    prefix: str | None = Field(None, max_length=20, description="Honorific, e.g. Dr.")
    accreditations: str | None = Field(None, max_length=100, description="e.g. PhD, CPA")
    department: str | None = Field(None, max_length=100)
    avatar_url: str | None = None
    cover_url: str | None = None

    @field_validator("avatar_url", "cover_url")
    @classmethod
    def validate_image_urls(cls, v: str | None) -> str | None:
        """Validate image URLs."""
        return validate_http_url(v)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class CardLink(PydanticBaseModel):
    """One contact or social entry on a card."""

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    id: str = Field(default_factory=generate_ulid)
    type: LinkType
    label: str = Field(..., min_length=1, max_length=50)
    value: str = Field(..., min_length=1, max_length=500, description="URL, email or phone")
    icon: str = Field(..., min_length=1, max_length=50)
    visible: bool = True
    order: int = Field(default=0, ge=0, description="Display order, ascending")
    short_url: str | None = Field(None, description="Externally issued short URL")
    short_link_id: str | None = Field(None, description="Short-link service ID")


class CardTheme(PydanticBaseModel):
    """Visual theme of a card."""

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    template: CardTemplate = CardTemplate.MODERN
    primary_color: str = "#2563EB"
    accent_color: str = "#7C3AED"
    font_family: FontFamily = FontFamily.SANS
    dark_mode: bool = False
    layout: CardLayout = CardLayout.VERTICAL

    @field_validator("primary_color", "accent_color")
    @classmethod
    def validate_colors(cls, v: str | None) -> str | None:
        """Validate hex color format."""
        return validate_hex_color(v)


class CardSettings(PydanticBaseModel):
    """Behavioral settings of a card."""

    model_config = ConfigDict(validate_assignment=True)

    lead_capture_enabled: bool = True
    show_email: bool = True
    show_phone: bool = True
    schedule_link: str | None = None
    embed_schedule: bool = False

    @field_validator("schedule_link")
    @classmethod
    def validate_schedule_link(cls, v: str | None) -> str | None:
        return validate_http_url(v)


class CardAnalytics(PydanticBaseModel):
    """Running counters maintained by atomic increments."""

    total_views: int = 0
    total_clicks: int = 0
    total_captures: int = 0


class Card(BaseModel):
    """Card entity - one public profile page.

    Key Pattern:
        PK: CARD#{id}
        SK: CARD
        GSI1PK: OWNER#{owner_id}#CARDS
        GSI1SK: {created_at}#{id}
        GSI2PK: CARD_SLUG#{slug}
        GSI2SK: CARD
    """

    owner_id: str = Field(..., description="Owning user ID")
    org_id: str | None = Field(None, description="Owning organization ID")
    slug: str = Field(..., min_length=1, max_length=64, pattern=SLUG_PATTERN)

    mode: CardMode = CardMode.BUSINESS
    status: CardStatus = CardStatus.ACTIVE

    profile: CardProfile
    links: list[CardLink] = Field(default_factory=list)
    theme: CardTheme = Field(default_factory=CardTheme)
    settings: CardSettings = Field(default_factory=CardSettings)

    short_url: str | None = Field(None, description="Short URL of the card page")
    short_link_id: str | None = None

    analytics: CardAnalytics = Field(default_factory=CardAnalytics)

    def get_pk(self) -> str:
        """Get partition key: CARD#{id}."""
        return f"CARD#{self.id}"

    def get_sk(self) -> str:
        """Get sort key: CARD."""
        return "CARD"

    def get_gsi_keys(self) -> dict[str, str]:
        """Owner listing (GSI1) and slug lookup (GSI2) keys."""
        return {
            "GSI1PK": f"OWNER#{self.owner_id}#CARDS",
            "GSI1SK": f"{self.created_at.isoformat()}#{self.id}",
            "GSI2PK": f"CARD_SLUG#{self.slug}",
            "GSI2SK": "CARD",
        }

    @property
    def is_active(self) -> bool:
        return self.status == CardStatus.ACTIVE.value

    @property
    def display_name(self) -> str:
        return self.profile.display_name or self.profile.full_name

    def find_link(self, link_id: str) -> CardLink | None:
        """Find a link by ID."""
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def to_public(self) -> "PublicCard":
        """Build the visitor-facing projection of this card."""
        return PublicCard(
            id=self.id,
            slug=self.slug,
            mode=self.mode,
            profile=self.profile,
            links=[
                PublicLink.model_validate(link.model_dump())
                for link in self.links
                if link.visible
            ],
            theme=self.theme,
            settings=PublicCardSettings.model_validate(self.settings.model_dump()),
            short_url=self.short_url,
        )


class PublicLink(PydanticBaseModel):
    """Link fields a visitor may see."""

    id: str
    type: str
    label: str
    value: str
    icon: str
    order: int
    short_url: str | None = None


class PublicCardSettings(PydanticBaseModel):
    """Settings fields a visitor may see."""

    lead_capture_enabled: bool
    show_email: bool
    show_phone: bool
    schedule_link: str | None = None
    embed_schedule: bool = False


class PublicCard(PydanticBaseModel):
    """Visitor-safe card projection.

    Built from an allow-list: owner, organization and analytics fields are
    never copied, and only visible links are included. Links keep their
    stored ``order`` for the client to sort on.
    """

    id: str
    slug: str
    mode: str
    profile: CardProfile
    links: list[PublicLink]
    theme: CardTheme
    settings: PublicCardSettings
    short_url: str | None = None


class CardLinkInput(PydanticBaseModel):
    """Link as submitted by the owner. Entries with an ``id`` are existing links."""

    model_config = ConfigDict(use_enum_values=True)

    id: str | None = None
    type: LinkType
    label: str = Field(..., min_length=1, max_length=50)
    value: str = Field(..., min_length=1, max_length=500)
    icon: str = Field(..., min_length=1, max_length=50)
    visible: bool = True
    order: int = Field(default=0, ge=0)


class ProfileUpdate(PydanticBaseModel):
    """Partial profile; only explicitly provided keys are applied."""

    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    display_name: str | None = Field(None, max_length=100)
    title: str | None = Field(None, max_length=100)
    company: str | None = Field(None, max_length=100)
    headline: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=1000)
    prefix: str | None = Field(None, max_length=20)
    accreditations: str | None = Field(None, max_length=100)
    department: str | None = Field(None, max_length=100)
    avatar_url: str | None = None
    cover_url: str | None = None

    @field_validator("avatar_url", "cover_url")
    @classmethod
    def validate_image_urls(cls, v: str | None) -> str | None:
        """Validate image URLs."""
        return validate_http_url(v)


class ThemeUpdate(PydanticBaseModel):
    """Partial theme; only explicitly provided keys are applied."""

    model_config = ConfigDict(use_enum_values=True)

    template: CardTemplate | None = None
    primary_color: str | None = None
    accent_color: str | None = None
    font_family: FontFamily | None = None
    dark_mode: bool | None = None
    layout: CardLayout | None = None

    @field_validator("primary_color", "accent_color")
    @classmethod
    def validate_colors(cls, v: str | None) -> str | None:
        """Validate hex color format."""
        return validate_hex_color(v)


class SettingsUpdate(PydanticBaseModel):
    """Partial settings; only explicitly provided keys are applied."""

    lead_capture_enabled: bool | None = None
    show_email: bool | None = None
    show_phone: bool | None = None
    schedule_link: str | None = None
    embed_schedule: bool | None = None

    @field_validator("schedule_link")
    @classmethod
    def validate_schedule_link(cls, v: str | None) -> str | None:
        return validate_http_url(v)


class CreateCardRequest(PydanticBaseModel):
    """Request model for creating a card."""

    model_config = ConfigDict(use_enum_values=True)

    profile: CardProfile
    links: list[CardLinkInput] = Field(default_factory=list)
    theme: ThemeUpdate | None = None
    settings: SettingsUpdate | None = None
    mode: CardMode = CardMode.BUSINESS


class UpdateCardRequest(PydanticBaseModel):
    """Request model for updating a card.

    Absent sections are left untouched. ``links``, when present, replaces
    the whole list.
    """

    model_config = ConfigDict(use_enum_values=True)

    profile: ProfileUpdate | None = None
    links: list[CardLinkInput] | None = None
    theme: ThemeUpdate | None = None
    settings: SettingsUpdate | None = None
    mode: CardMode | None = None
