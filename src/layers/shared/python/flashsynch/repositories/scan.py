"""Scan repository for the visitor interaction log."""

from datetime import datetime, timezone
from typing import Any

import structlog
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from flashsynch.models.scan import Scan
from flashsynch.repositories.base import BaseRepository

logger = structlog.get_logger()


def sort_key_time(moment: datetime) -> str:
    """Render a window bound the way scan timestamps are stored (UTC ISO-8601).

    Sort keys compare as strings, so a bound in another offset would skip
    scans. Naive values are taken as UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat()


class ScanRepository(BaseRepository[Scan]):
    """Repository for Scan entities.

    Scans are only ever appended; there is no update or delete path.
    """

    def __init__(self, table_name: str | None = None):
        """Initialize scan repository."""
        super().__init__(Scan, table_name)

    def append(self, scan: Scan) -> Scan:
        """Append a scan record."""
        return self.create(scan)

    def list_for_card(
        self,
        card_id: str,
        since: datetime | None = None,
    ) -> list[Scan]:
        """List a card's scans, optionally only those at or after ``since``.

        Args:
            card_id: The card ID.
            since: Start of the window (inclusive). None lists every scan.

        Returns:
            Scans in timestamp order.
        """
        sort_key = (
            Key("SK").between(f"SCAN#{sort_key_time(since)}", "SCAN#~")
            if since
            else Key("SK").begins_with("SCAN#")
        )
        key_condition = Key("PK").eq(f"CARD#{card_id}") & sort_key
        return self._query_conditions(key_condition)

    def list_for_owner(
        self,
        owner_id: str,
        since: datetime,
    ) -> list[Scan]:
        """List scans across all of an owner's cards at or after ``since``.

        Args:
            owner_id: The card owner's user ID.
            since: Start of the window (inclusive).

        Returns:
            Scans in timestamp order.
        """
        key_condition = Key("GSI1PK").eq(f"OWNER#{owner_id}#SCANS") & Key("GSI1SK").gte(
            sort_key_time(since)
        )
        return self._query_conditions(key_condition, index_name="GSI1")

    def _query_conditions(
        self,
        key_condition,
        index_name: str | None = None,
    ) -> list[Scan]:
        """Run a condition query and follow pagination to the end."""
        kwargs: dict[str, Any] = {"KeyConditionExpression": key_condition}
        if index_name:
            kwargs["IndexName"] = index_name

        scans: list[Scan] = []
        try:
            while True:
                response = self.table.query(**kwargs)
                scans.extend(Scan.from_dynamodb(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("Scan query failed", error=str(e))
            raise

        # Appends can land out of order; callers rely on timestamp order.
        scans.sort(key=lambda scan: scan.timestamp)
        return scans
