"""Uniqueness registry for slugs and handles."""

import re
from typing import Any

import boto3
import structlog
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from flashsynch.config import get_settings
from flashsynch.models.base import utc_now

logger = structlog.get_logger()

CARD_SLUG_NAMESPACE = "card_slug"
USER_HANDLE_NAMESPACE = "user_handle"


class IdentifierRegistry:
    """Reservation items that enforce global uniqueness of an identifier.

    Each reserved value is stored as its own item with a conditional put, so
    two writers can never both claim the same value. Reservations are kept
    when the owning record is archived.

    Key Pattern:
        PK: IDENT#{namespace}
        SK: {value}
    """

    def __init__(self, namespace: str, table_name: str | None = None):
        """Initialize registry.

        Args:
            namespace: Identifier space, e.g. ``card_slug``.
            table_name: DynamoDB table name. Defaults to the configured table.
        """
        self.namespace = namespace
        self.table_name = table_name or get_settings().table_name
        self._table = None

    @property
    def table(self):
        """Get DynamoDB table (lazy initialization)."""
        if self._table is None:
            self._table = boto3.resource("dynamodb").Table(self.table_name)
        return self._table

    @property
    def pk(self) -> str:
        return f"IDENT#{self.namespace}"

    def reservation_key(self, value: str) -> dict[str, str]:
        return {"PK": self.pk, "SK": value}

    def count_matching(self, base: str) -> int:
        """Count reserved values equal to ``base`` or ``base-<number>``.

        Args:
            base: Candidate identifier without suffix.

        Returns:
            Number of matching reservations.
        """
        pattern = re.compile(rf"^{re.escape(base)}(-\d+)?$")
        count = 0
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("PK").eq(self.pk) & Key("SK").begins_with(base),
            "ProjectionExpression": "SK",
        }
        try:
            while True:
                response = self.table.query(**kwargs)
                count += sum(1 for item in response.get("Items", []) if pattern.match(item["SK"]))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    return count
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("Identifier query failed", error=str(e), namespace=self.namespace)
            raise

    def exists(self, value: str) -> bool:
        """Check whether a value is already reserved."""
        response = self.table.get_item(
            Key=self.reservation_key(value),
            ProjectionExpression="PK",
        )
        return "Item" in response

    def reservation_put(self, value: str, owner_id: str) -> dict:
        """Build a conditional Put for a transaction that claims ``value``.

        Args:
            value: Identifier to reserve.
            owner_id: ID of the record the identifier belongs to.

        Returns:
            TransactWriteItems entry for the resource client.
        """
        item = {
            **self.reservation_key(value),
            "owner_id": owner_id,
            "created_at": utc_now().isoformat(),
        }
        return {
            "Put": {
                "TableName": self.table_name,
                "Item": item,
                "ConditionExpression": "attribute_not_exists(PK)",
            }
        }

    def release_delete(self, value: str) -> dict:
        """Build a Delete for a transaction that frees ``value``."""
        return {
            "Delete": {
                "TableName": self.table_name,
                "Key": self.reservation_key(value),
            }
        }


def failed_conditions(error: ClientError) -> set[int]:
    """Positions of transaction items whose condition check failed.

    Empty unless the transaction was cancelled because of a condition, so
    callers can tell a lost race from any other failure.
    """
    if error.response["Error"]["Code"] != "TransactionCanceledException":
        return set()
    reasons = error.response.get("CancellationReasons", [])
    return {i for i, reason in enumerate(reasons) if reason.get("Code") == "ConditionalCheckFailed"}
