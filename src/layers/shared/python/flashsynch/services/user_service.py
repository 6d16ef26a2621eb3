"""User accounts: auto-registration on first sight and profile edits."""

import structlog

from flashsynch.models.user import UpdateUserRequest, User
from flashsynch.repositories.user import UserRepository
from flashsynch.services.identifiers import allocate_identifier, user_handle_base
from flashsynch.utils.auth import AuthContext
from flashsynch.utils.exceptions import ConflictError

logger = structlog.get_logger()


def default_display_name(auth: AuthContext) -> str:
    """Pick a display name: token name, else email local part, else ``user``."""
    if auth.name and auth.name.strip():
        return auth.name.strip()[:100]
    if auth.email and auth.email.split("@", 1)[0]:
        return auth.email.split("@", 1)[0][:100]
    return "user"


class UserService:
    """Maps verified identities to User records."""

    def __init__(self, users: UserRepository | None = None):
        self.users = users or UserRepository()

    def register(self, auth: AuthContext) -> tuple[User, bool]:
        """Get or create the user for an authenticated subject.

        Args:
            auth: Authentication context from the authorizer.

        Returns:
            Tuple of (user, created).
        """
        existing = self.users.get_by_subject(auth.subject_id)
        if existing:
            return existing, False

        display_name = default_display_name(auth)

        def claim(handle: str) -> User:
            return self.users.create_user(
                User(
                    subject_id=auth.subject_id,
                    email=auth.email,
                    display_name=display_name,
                    handle=handle,
                )
            )

        user = allocate_identifier(user_handle_base(display_name), self.users.handles, claim)
        return user, True

    def resolve(self, auth: AuthContext) -> User:
        """Get the user for an authenticated subject, registering on first sight."""
        user, _ = self.register(auth)
        return user

    def update_profile(self, user: User, request: UpdateUserRequest) -> User:
        """Update display name, handle and avatar.

        Args:
            user: The current user.
            request: Validated update.

        Returns:
            The updated user.

        Raises:
            ConflictError: If the requested handle is taken (``HANDLE_TAKEN``).
        """
        changes = request.model_dump(exclude_unset=True)
        old_handle = user.handle

        if changes.get("display_name") is not None:
            user.display_name = changes["display_name"]
        if "avatar_url" in changes:
            user.avatar_url = changes["avatar_url"]

        new_handle = changes.get("handle")
        if new_handle and new_handle != old_handle:
            if self.users.handles.exists(new_handle):
                raise ConflictError("Handle is already taken", conflict_type="HANDLE_TAKEN")
            user.handle = new_handle
            updated = self.users.change_handle(user, old_handle)
        else:
            updated = self.users.update(user)

        logger.info("User updated", user_id=user.id, fields=sorted(changes))
        return updated
