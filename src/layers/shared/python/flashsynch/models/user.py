"""User model keyed by the identity provider's subject ID."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field, field_validator

from flashsynch.models.base import BaseModel
from flashsynch.models.card import validate_http_url


class PlanType(str, Enum):
    """Subscription tiers."""

    FREE = "free"
    PRO = "pro"
    TEAM = "team"


class User(BaseModel):
    """User entity - the ownership anchor for cards and leads.

    Key Pattern:
        PK: USER#{id}
        SK: PROFILE
        GSI1PK: USER_SUBJECT#{subject_id}
        GSI1SK: USER
    """

    subject_id: str = Field(..., description="Identity provider subject ID")
    email: str | None = None
    display_name: str = Field(..., min_length=1, max_length=100)
    handle: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z0-9-]+$")
    avatar_url: str | None = None

    plan: PlanType = PlanType.FREE
    plan_expires_at: datetime | None = None
    org_id: str | None = None

    def get_pk(self) -> str:
        """Get partition key: USER#{id}."""
        return f"USER#{self.id}"

    def get_sk(self) -> str:
        """Get sort key: PROFILE."""
        return "PROFILE"

    def get_gsi_keys(self) -> dict[str, str]:
        """Subject lookup keys."""
        return {
            "GSI1PK": f"USER_SUBJECT#{self.subject_id}",
            "GSI1SK": "USER",
        }


class UpdateUserRequest(PydanticBaseModel):
    """Request model for updating the current user."""

    model_config = ConfigDict(use_enum_values=True)

    display_name: str | None = Field(None, min_length=1, max_length=100)
    handle: str | None = Field(None, min_length=3, max_length=30, pattern=r"^[a-z0-9-]+$")
    avatar_url: str | None = None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v: str | None) -> str | None:
        return validate_http_url(v)
