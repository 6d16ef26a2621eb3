"""Single-table DynamoDB access shared by every repository."""

from typing import Any, Generic, TypeVar

import boto3
import structlog
from botocore.exceptions import ClientError

from flashsynch.config import get_settings
from flashsynch.models.base import BaseModel
from flashsynch.utils.exceptions import ConflictError

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

INDEX_KEY_NAMES = {
    None: ("PK", "SK"),
    "GSI1": ("GSI1PK", "GSI1SK"),
    "GSI2": ("GSI2PK", "GSI2SK"),
}


def is_condition_failure(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


class BaseRepository(Generic[T]):
    """Typed access to one entity kind in the shared table.

    Writes replace whole items. Counters and partial updates that must not
    race with whole-item writes live on the concrete repositories.
    """

    def __init__(self, model_class: type[T], table_name: str | None = None):
        """Initialize repository.

        Args:
            model_class: The model stored by this repository.
            table_name: DynamoDB table name. Defaults to the configured table.
        """
        self.model_class = model_class
        self.table_name = table_name or get_settings().table_name
        self._dynamodb = None
        self._table = None

    @property
    def dynamodb(self):
        """DynamoDB resource, created on first use."""
        if self._dynamodb is None:
            self._dynamodb = boto3.resource("dynamodb")
        return self._dynamodb

    @property
    def table(self):
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    def get(self, pk: str, sk: str) -> T | None:
        """Get an item by its primary key, or None."""
        try:
            response = self.table.get_item(Key={"PK": pk, "SK": sk})
        except ClientError as e:
            logger.error("DynamoDB get_item failed", error=str(e), pk=pk, sk=sk)
            raise

        item = response.get("Item")
        return self.model_class.from_dynamodb(item) if item else None

    def create(self, item: T) -> T:
        """Insert a new item.

        Raises:
            ConflictError: If an item with the same key already exists.
        """
        item.touch()
        return self._write(item, "attribute_not_exists(PK)", None, "Item already exists")

    def update(self, item: T) -> T:
        """Replace an existing item, guarded by the version it was read at.

        Raises:
            ConflictError: If another writer got there first.
        """
        old_version = item.bump_version()
        return self._write(
            item,
            "version = :old_version",
            {":old_version": old_version},
            "Item was modified by another process",
        )

    def _write(
        self,
        item: T,
        condition: str | None,
        values: dict[str, Any] | None,
        conflict_message: str,
    ) -> T:
        db_item = item.to_item()
        kwargs: dict[str, Any] = {"Item": db_item}
        if condition:
            kwargs["ConditionExpression"] = condition
        if values:
            kwargs["ExpressionAttributeValues"] = values

        try:
            self.table.put_item(**kwargs)
        except ClientError as e:
            if is_condition_failure(e):
                raise ConflictError(conflict_message) from e
            logger.error("DynamoDB put_item failed", error=str(e), pk=db_item["PK"])
            raise

        logger.debug(
            "Item written",
            pk=db_item["PK"],
            sk=db_item["SK"],
            version=item.version,
            model=self.model_class.__name__,
        )
        return item

    def query(
        self,
        pk: str,
        sk_begins_with: str | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_forward: bool = True,
        filter_expression: str | None = None,
        expression_names: dict | None = None,
        expression_values: dict | None = None,
        last_key: dict | None = None,
    ) -> tuple[list[T], dict | None]:
        """Query items by partition key.

        Args:
            pk: Partition key value.
            sk_begins_with: Sort key prefix for begins_with condition.
            index_name: Optional GSI name (GSI1 or GSI2).
            limit: Maximum items to evaluate.
            scan_forward: Sort direction (True = ascending).
            filter_expression: Optional filter expression.
            expression_names: Expression attribute names for the filter.
            expression_values: Expression attribute values for the filter.
            last_key: Last evaluated key for pagination.

        Returns:
            Tuple of (items, last_evaluated_key).
        """
        pk_name, sk_name = INDEX_KEY_NAMES[index_name]

        key_condition = f"{pk_name} = :pk"
        expr_values: dict[str, Any] = {":pk": pk}
        if sk_begins_with:
            key_condition += f" AND begins_with({sk_name}, :sk_prefix)"
            expr_values[":sk_prefix"] = sk_begins_with

        if expression_values:
            expr_values.update(expression_values)

        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ExpressionAttributeValues": expr_values,
            "ScanIndexForward": scan_forward,
        }

        if index_name:
            kwargs["IndexName"] = index_name
        if limit:
            kwargs["Limit"] = limit
        if filter_expression:
            kwargs["FilterExpression"] = filter_expression
        if expression_names:
            kwargs["ExpressionAttributeNames"] = expression_names
        if last_key:
            kwargs["ExclusiveStartKey"] = last_key

        try:
            response = self.table.query(**kwargs)
        except ClientError as e:
            logger.error("DynamoDB query failed", error=str(e), pk=pk)
            raise

        items = [self.model_class.from_dynamodb(item) for item in response.get("Items", [])]
        return items, response.get("LastEvaluatedKey")

    def query_all(self, pk: str, **kwargs: Any) -> list[T]:
        """Query every page for a partition key.

        Args:
            pk: Partition key value.
            **kwargs: Any other ``query`` argument except ``last_key``.

        Returns:
            All matching model instances.
        """
        results: list[T] = []
        last_key = None
        while True:
            items, last_key = self.query(pk, last_key=last_key, **kwargs)
            results.extend(items)
            if not last_key:
                return results
