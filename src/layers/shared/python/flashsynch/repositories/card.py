"""Card repository for DynamoDB operations."""

from typing import Any

import structlog
from botocore.exceptions import ClientError

from flashsynch.models.base import to_attribute, utc_now
from flashsynch.models.card import Card, CardStatus, CounterName
from flashsynch.repositories.base import BaseRepository, is_condition_failure
from flashsynch.repositories.identifier import (
    CARD_SLUG_NAMESPACE,
    IdentifierRegistry,
    failed_conditions,
)
from flashsynch.utils.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger()


class CardRepository(BaseRepository[Card]):
    """Repository for Card entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize card repository."""
        super().__init__(Card, table_name)
        self.slugs = IdentifierRegistry(CARD_SLUG_NAMESPACE, self.table_name)

    def get_by_id(self, card_id: str) -> Card | None:
        """Get card by ID, whatever its status.

        Args:
            card_id: The card ID.

        Returns:
            Card or None if not found.
        """
        return self.get(pk=f"CARD#{card_id}", sk="CARD")

    def get_by_slug(self, slug: str) -> Card | None:
        """Get card by slug using GSI2.

        Args:
            slug: The card slug.

        Returns:
            Card or None if not found.
        """
        items, _ = self.query(
            pk=f"CARD_SLUG#{slug}",
            index_name="GSI2",
            limit=1,
        )
        return items[0] if items else None

    def get_active_by_slug(self, slug: str) -> Card | None:
        """Get an active card by slug. Archived cards read as missing."""
        card = self.get_by_slug(slug)
        if card is None or not card.is_active:
            return None
        return card

    def list_active_by_owner(self, owner_id: str) -> list[Card]:
        """List an owner's active cards, newest first.

        Args:
            owner_id: The owning user ID.

        Returns:
            List of active cards.
        """
        return self.query_all(
            pk=f"OWNER#{owner_id}#CARDS",
            index_name="GSI1",
            scan_forward=False,
            filter_expression="#status = :active",
            expression_names={"#status": "status"},
            expression_values={":active": CardStatus.ACTIVE.value},
        )

    def create_card(self, card: Card) -> Card:
        """Create a card together with its slug reservation.

        Both items are written in one transaction, so a slug can only ever
        belong to one card.

        Args:
            card: The card to create.

        Returns:
            The created card.

        Raises:
            ConflictError: If the slug is already reserved (``SLUG_TAKEN``).
        """
        card.touch()
        db_item = card.to_item()

        try:
            self.dynamodb.meta.client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": db_item,
                            "ConditionExpression": "attribute_not_exists(PK)",
                        }
                    },
                    self.slugs.reservation_put(card.slug, card.id),
                ]
            )
        except ClientError as e:
            failed = failed_conditions(e)
            if 1 in failed:
                raise ConflictError(
                    f"Slug '{card.slug}' is already in use", conflict_type="SLUG_TAKEN"
                ) from e
            if 0 in failed:
                raise ConflictError("Card already exists") from e
            logger.error("Card transaction failed", error=str(e), card_id=card.id)
            raise

        logger.debug("Card created with slug reservation", card_id=card.id, slug=card.slug)
        return card

    def increment_counter(self, card_id: str, counter: CounterName | str) -> Card | None:
        """Atomically add one to an analytics counter of an active card.

        The addition happens inside DynamoDB, so concurrent increments are
        never lost.

        Args:
            card_id: The card ID.
            counter: One of the ``CounterName`` values.

        Returns:
            The card as stored after the increment, or None if the card is
            missing or archived.

        Raises:
            ValueError: If the counter name is not recognized.
        """
        counter_name = CounterName(counter).value

        try:
            response = self.table.update_item(
                Key={"PK": f"CARD#{card_id}", "SK": "CARD"},
                UpdateExpression="SET analytics.#counter = analytics.#counter + :inc",
                ConditionExpression="attribute_exists(PK) AND #status = :active",
                ExpressionAttributeNames={"#counter": counter_name, "#status": "status"},
                ExpressionAttributeValues={":inc": 1, ":active": CardStatus.ACTIVE.value},
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if is_condition_failure(e):
                return None
            logger.error("Counter increment failed", error=str(e), card_id=card_id)
            raise

        return Card.from_dynamodb(response["Attributes"])

    def update_fields(
        self,
        card_id: str,
        owner_id: str,
        set_values: dict[tuple[str, ...], Any],
        remove_paths: list[tuple[str, ...]] | None = None,
    ) -> Card:
        """Apply a field-level update to an owner's active card.

        Only the given attribute paths are written; counters and every other
        attribute keep their stored values.

        Args:
            card_id: The card ID.
            owner_id: Expected owner; the write is rejected otherwise.
            set_values: Attribute path to new value, e.g. ``("profile", "title")``.
            remove_paths: Attribute paths to delete.

        Returns:
            The updated card.

        Raises:
            NotFoundError: If the card is missing, archived, or owned by someone else.
        """
        names: dict[str, str] = {"#status": "status", "#owner_id": "owner_id"}
        values: dict[str, Any] = {
            ":active": CardStatus.ACTIVE.value,
            ":owner_id": owner_id,
            ":updated_at": utc_now().isoformat(),
            ":one": 1,
        }

        def placeholder(path: tuple[str, ...]) -> str:
            parts = []
            for part in path:
                alias = f"#f{len(names)}"
                names[alias] = part
                parts.append(alias)
            return ".".join(parts)

        set_clauses = ["updated_at = :updated_at", "version = version + :one"]
        for i, (path, value) in enumerate(set_values.items()):
            set_clauses.append(f"{placeholder(path)} = :v{i}")
            values[f":v{i}"] = to_attribute(value)

        expression = "SET " + ", ".join(set_clauses)
        if remove_paths:
            expression += " REMOVE " + ", ".join(placeholder(path) for path in remove_paths)

        try:
            response = self.table.update_item(
                Key={"PK": f"CARD#{card_id}", "SK": "CARD"},
                UpdateExpression=expression,
                ConditionExpression="#owner_id = :owner_id AND #status = :active",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if is_condition_failure(e):
                raise NotFoundError("Card", card_id)
            logger.error("Card update failed", error=str(e), card_id=card_id)
            raise

        return Card.from_dynamodb(response["Attributes"])

    def archive(self, card_id: str, owner_id: str) -> Card:
        """Soft delete an owner's active card.

        Args:
            card_id: The card ID.
            owner_id: Expected owner.

        Returns:
            The archived card.
        """
        return self.update_fields(
            card_id,
            owner_id,
            set_values={("status",): CardStatus.ARCHIVED.value},
        )
