# Credential Store - Main Package
#
# Account creation, authentication, lookup, rename and deletion over a
# pluggable async user repository. Passwords are stored as salted PBKDF2
# hashes and never returned to callers.

__version__ = "0.1.0"
__description__ = "Credential management over a pluggable user repository"

from .exceptions import (
    ConflictError,
    CredentialStoreError,
    DuplicateUsernameError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .hashing import PasswordHasher
from .repository import InMemoryUserRepository, SQLiteUserRepository, UserRepository
from .store import CredentialStore, redact

__all__ = [
    "__version__",
    "CredentialStore",
    "redact",
    "PasswordHasher",
    "UserRepository",
    "InMemoryUserRepository",
    "SQLiteUserRepository",
    "CredentialStoreError",
    "InvalidInputError",
    "ConflictError",
    "UnauthorizedError",
    "NotFoundError",
    "DuplicateUsernameError",
]
