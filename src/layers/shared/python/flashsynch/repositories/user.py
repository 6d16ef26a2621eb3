"""User repository for DynamoDB operations."""

import structlog
from botocore.exceptions import ClientError

from flashsynch.models.user import User
from flashsynch.repositories.base import BaseRepository
from flashsynch.repositories.identifier import (
    USER_HANDLE_NAMESPACE,
    IdentifierRegistry,
    failed_conditions,
)
from flashsynch.utils.exceptions import ConflictError

logger = structlog.get_logger()


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize user repository."""
        super().__init__(User, table_name)
        self.handles = IdentifierRegistry(USER_HANDLE_NAMESPACE, self.table_name)

    def get_by_id(self, user_id: str) -> User | None:
        """Get user by ID."""
        return self.get(pk=f"USER#{user_id}", sk="PROFILE")

    def get_by_subject(self, subject_id: str) -> User | None:
        """Get user by identity provider subject ID using GSI1.

        Args:
            subject_id: The verified token subject.

        Returns:
            User or None if not registered yet.
        """
        items, _ = self.query(
            pk=f"USER_SUBJECT#{subject_id}",
            index_name="GSI1",
            limit=1,
        )
        return items[0] if items else None

    def create_user(self, user: User) -> User:
        """Create a user together with its handle reservation.

        Args:
            user: The user to create.

        Returns:
            The created user.

        Raises:
            ConflictError: If the handle is already reserved (``HANDLE_TAKEN``).
        """
        user.touch()
        self._transact(
            [
                {
                    "Put": {
                        "TableName": self.table_name,
                        "Item": user.to_item(),
                        "ConditionExpression": "attribute_not_exists(PK)",
                    }
                },
                self.handles.reservation_put(user.handle, user.id),
            ],
            handle=user.handle,
        )
        logger.info("User registered", user_id=user.id, handle=user.handle)
        return user

    def change_handle(self, user: User, old_handle: str) -> User:
        """Persist a user whose handle changed, moving the reservation.

        Args:
            user: The user carrying the new handle.
            old_handle: The handle being released.

        Returns:
            The updated user.

        Raises:
            ConflictError: If the new handle is taken (``HANDLE_TAKEN``).
        """
        old_version = user.bump_version()
        self._transact(
            [
                {
                    "Put": {
                        "TableName": self.table_name,
                        "Item": user.to_item(),
                        "ConditionExpression": "version = :old_version",
                        "ExpressionAttributeValues": {":old_version": old_version},
                    }
                },
                self.handles.reservation_put(user.handle, user.id),
                self.handles.release_delete(old_handle),
            ],
            handle=user.handle,
        )
        return user

    def _transact(self, transact_items: list[dict], handle: str) -> None:
        try:
            self.dynamodb.meta.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            failed = failed_conditions(e)
            if 1 in failed:
                raise ConflictError(
                    f"Handle '{handle}' is already taken", conflict_type="HANDLE_TAKEN"
                ) from e
            if 0 in failed:
                raise ConflictError("User was modified by another process") from e
            logger.error("User transaction failed", error=str(e))
            raise
