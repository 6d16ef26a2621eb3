"""Shared model base and DynamoDB attribute conversion.

Every stored entity lives in one table. A model knows its own primary key and
any secondary index keys; repositories only move whole items in and out.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Self

from pydantic import BaseModel as PydanticBaseModel, ConfigDict, Field
from ulid import ULID


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def to_attribute(value: Any) -> Any:
    """Convert a JSON-mode value into a DynamoDB attribute value.

    Floats become Decimals and ``None`` map entries are dropped, so unset
    optional fields are absent from the stored item.
    """
    if isinstance(value, dict):
        return {k: to_attribute(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [to_attribute(v) for v in value]
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, float):
        return Decimal(str(value))
    return value


def from_attribute(value: Any) -> Any:
    """Convert a DynamoDB attribute value back to plain Python.

    Only numbers need work: Decimals become int when integral, else float.
    Strings are left for the model's field types to parse.
    """
    if isinstance(value, dict):
        return {k: from_attribute(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_attribute(v) for v in value]
    if isinstance(value, Decimal):
        return int(value) if value % 1 == 0 else float(value)
    return value


class BaseModel(PydanticBaseModel):
    """Stored entity with a ULID id, timestamps and a version counter."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    id: str = Field(default_factory=generate_ulid)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: int = Field(default=1, description="Optimistic locking version")

    def to_dynamodb(self) -> dict[str, Any]:
        """Entity attributes in DynamoDB form, without keys."""
        return to_attribute(self.model_dump(mode="json", by_alias=True))

    def to_item(self) -> dict[str, Any]:
        """Full table item: attributes plus primary and index keys."""
        item = self.to_dynamodb()
        item.update(self.get_keys())
        item.update(self.get_gsi_keys())
        return item

    @classmethod
    def from_dynamodb(cls, item: dict[str, Any]) -> Self:
        """Build a model from a table item. Key attributes are ignored."""
        return cls.model_validate(from_attribute(item))

    def get_pk(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must define get_pk()")

    def get_sk(self) -> str:
        raise NotImplementedError(f"{type(self).__name__} must define get_sk()")

    def get_keys(self) -> dict[str, str]:
        return {"PK": self.get_pk(), "SK": self.get_sk()}

    def get_gsi_keys(self) -> dict[str, str]:
        return {}

    def touch(self) -> None:
        """Stamp ``updated_at`` with the current time."""
        self.updated_at = utc_now()

    def bump_version(self) -> int:
        """Advance the version and stamp the update time.

        Returns:
            The version the stored item must still carry for the write to
            succeed.
        """
        previous = self.version
        self.version = previous + 1
        self.touch()
        return previous
