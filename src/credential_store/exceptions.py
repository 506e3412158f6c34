"""
Credential Store Exception Classes
"""


class CredentialStoreError(Exception):
    """Base exception for credential store operations.

    ``kind`` is a stable, transport-neutral tag an outer layer can map to
    its own status codes.
    """

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(CredentialStoreError):
    """Raised when a required field (username or password) is empty"""

    kind = "invalid_input"


class ConflictError(CredentialStoreError):
    """Raised when a username is already taken by a live account"""

    kind = "conflict"


class UnauthorizedError(CredentialStoreError):
    """Raised when no account matches the supplied username and password"""

    kind = "unauthorized"


class NotFoundError(CredentialStoreError):
    """Raised when an id does not reference a live account"""

    kind = "not_found"


class DuplicateUsernameError(Exception):
    """Raised by a repository when a write would break the unique
    username constraint."""

    def __init__(self, username: str):
        super().__init__(f"username {username!r} violates unique constraint")
        self.username = username
