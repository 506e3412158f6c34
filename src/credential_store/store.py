# Credential Store - Account Management
#
# Creates, authenticates, looks up, renames and deletes user accounts on top
# of a UserRepository. Every operation is a short validate -> repository call
# (-> re-read) sequence with no atomicity across calls; the repository's
# unique username constraint backs up the lookup done here.
#
# Passwords never leave the store: stored values are PBKDF2 hashes, and
# every record handed back to a caller goes through redact() first.

import asyncio
import logging
from typing import Any, Dict, List, Optional

from .core import EventSeverity, EventType, get_audit_logger
from .exceptions import (
    ConflictError,
    DuplicateUsernameError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .hashing import PasswordHasher
from .repository import Record, UserRepository

logger = logging.getLogger(__name__)

MSG_CREATED = "User created successfully!"
MSG_AUTHENTICATED = "Successfully authenticated."
MSG_RENAMED = "Username updated successfully!"
MSG_DELETED = "User deleted!"

ERR_EMPTY = "Username and password must be non-empty!"
ERR_BAD_CREDENTIALS = "Username or password is incorrect."
ERR_NOT_FOUND = "User not found!"

# Stands in for the password when only the username is being validated.
_RENAME_PLACEHOLDER = "unchanged"


def redact(user: Record) -> Record:
    """Return a copy of a user record without its password field."""
    return {key: value for key, value in user.items() if key != "password"}


class CredentialStore:
    """
    Account lifecycle and authentication over a UserRepository.

    The store holds no state beyond the repository handle and the hasher,
    so any number of operations may be in flight against it at once.

    Args:
        users: Persistence collaborator for user records
        hasher: Password hasher (default: PBKDF2-SHA256 at default cost)
    """

    def __init__(self, users: UserRepository, hasher: Optional[PasswordHasher] = None):
        self.users = users
        self.hasher = hasher or PasswordHasher()
        self.audit = get_audit_logger()

    async def create_account(self, username: str, password: str) -> Dict[str, Any]:
        """
        Create a new account.

        Returns:
            {"msg": ..., "user": redacted record}

        Raises:
            InvalidInputError: If username or password is empty
            ConflictError: If the username is taken
        """
        await self._assert_valid_and_unique(username, password)
        password_hash = await asyncio.to_thread(self.hasher.hash, password)
        try:
            user_id = await self.users.create_one(
                {"username": username, "password": password_hash}
            )
        except DuplicateUsernameError as e:
            logger.info(f"Create lost uniqueness race for {username!r}")
            raise self._reject_duplicate(username) from e

        user = await self.users.read_one({"id": user_id})
        if user is None:
            # deleted between insert and re-read
            raise NotFoundError(ERR_NOT_FOUND)

        self.audit.log_event(
            event_type=EventType.ACCOUNT_CREATED,
            severity=EventSeverity.INFO,
            message=f"Account created: {username}",
            details={"user_id": user_id, "username": username},
        )
        return {"msg": MSG_CREATED, "user": redact(user)}

    async def get_user_by_id(self, user_id: str) -> Record:
        """Fetch one account by id, password omitted.

        Raises:
            NotFoundError: If no live record has this id
        """
        user = await self.users.read_one({"id": user_id})
        if user is None:
            raise NotFoundError(ERR_NOT_FOUND)
        return redact(user)

    async def list_users(self, username: Optional[str] = None) -> List[Record]:
        """
        List accounts, password omitted.

        Args:
            username: If given, only the account with exactly this username
                      (0 or 1 result). An empty string counts as omitted.

        Returns:
            Records in repository order (not sorted)
        """
        filter = {"username": username} if username else {}
        return [redact(user) for user in await self.users.read_many(filter)]

    async def authenticate(self, username: str, password: str) -> Dict[str, Any]:
        """
        Check a username/password pair.

        Unknown usernames and wrong passwords fail identically.

        Returns:
            {"msg": ..., "id": matched user id}

        Raises:
            UnauthorizedError: If no account matches both fields
        """
        user = await self.users.read_one({"username": username}) if username else None
        if user is None:
            await asyncio.to_thread(self.hasher.burn, password or "")
            matched = False
        else:
            matched = await asyncio.to_thread(
                self.hasher.verify, password or "", user["password"]
            )

        if not matched:
            self.audit.log_event(
                event_type=EventType.AUTH_FAILED,
                severity=EventSeverity.WARNING,
                message="Authentication failed",
                details={"username": username},
            )
            raise UnauthorizedError(ERR_BAD_CREDENTIALS)

        self.audit.log_event(
            event_type=EventType.AUTH_SUCCEEDED,
            severity=EventSeverity.INFO,
            message=f"Authenticated: {username}",
            details={"user_id": user["id"]},
        )
        return {"msg": MSG_AUTHENTICATED, "id": user["id"]}

    async def rename_account(self, user_id: str, new_username: str) -> Dict[str, Any]:
        """
        Change an account's username. The password is untouched.

        Uses the same uniqueness check as creation, so renaming an account
        to the name it already has is rejected as a conflict.

        Returns:
            {"msg": ..., "user": redacted record}

        Raises:
            InvalidInputError: If new_username is empty
            ConflictError: If new_username is taken
            NotFoundError: If user_id has no live record after the update
        """
        await self._assert_valid_and_unique(new_username, _RENAME_PLACEHOLDER)
        try:
            await self.users.partial_update_one({"id": user_id}, {"username": new_username})
        except DuplicateUsernameError as e:
            logger.info(f"Rename lost uniqueness race for {new_username!r}")
            raise self._reject_duplicate(new_username) from e

        user = await self.users.read_one({"id": user_id})
        if user is None:
            raise NotFoundError(ERR_NOT_FOUND)

        self.audit.log_event(
            event_type=EventType.ACCOUNT_RENAMED,
            severity=EventSeverity.INFO,
            message=f"Account renamed to {new_username}",
            details={"user_id": user_id, "username": new_username},
        )
        return {"msg": MSG_RENAMED, "user": redact(user)}

    async def delete_account(self, user_id: str) -> Dict[str, str]:
        """Delete an account. Deleting an absent id is a successful no-op."""
        await self.users.delete_one({"id": user_id})
        self.audit.log_event(
            event_type=EventType.ACCOUNT_DELETED,
            severity=EventSeverity.INFO,
            message="Account deleted",
            details={"user_id": user_id},
        )
        return {"msg": MSG_DELETED}

    async def assert_user_exists(self, user_id: str) -> None:
        """
        Precondition check for collaborating components.

        Raises:
            NotFoundError: If no live record has this id
        """
        if await self.users.read_one({"id": user_id}) is None:
            raise NotFoundError(ERR_NOT_FOUND)

    async def _assert_valid_and_unique(self, username: str, password: str) -> None:
        """Run the credential guards in order, raising on the first failure.

        1. both fields non-empty  -> InvalidInputError
        2. username not yet taken -> ConflictError
        """
        if not username or not password:
            raise InvalidInputError(ERR_EMPTY)
        if await self.users.read_one({"username": username}) is not None:
            raise self._reject_duplicate(username)

    def _reject_duplicate(self, username: str) -> ConflictError:
        self.audit.log_event(
            event_type=EventType.ACCOUNT_CONFLICT,
            severity=EventSeverity.WARNING,
            message=f"Username already taken: {username}",
            details={"username": username},
        )
        return ConflictError(f"User with username {username} already exists!")
