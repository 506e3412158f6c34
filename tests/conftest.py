"""
Shared pytest fixtures for the credential_store test suite.

The autouse fixture below points the global AuditLogger at a temp
directory so tests never write into ./audit_logs.
"""

import pytest

from credential_store import CredentialStore, InMemoryUserRepository, PasswordHasher
from credential_store.core import AuditLogger, set_audit_logger

# Low work factor keeps hashing fast in tests; the format is identical.
TEST_ITERATIONS = 1_000


@pytest.fixture(autouse=True)
def audit_logger(tmp_path):
    """Install a fresh AuditLogger writing under tmp_path for every test."""
    logger = AuditLogger(log_dir=tmp_path / "audit_logs")
    set_audit_logger(logger)

    yield logger

    logger.close()
    set_audit_logger(None)


@pytest.fixture
def hasher():
    return PasswordHasher(iterations=TEST_ITERATIONS)


@pytest.fixture
def repo():
    return InMemoryUserRepository()


@pytest.fixture
def store(repo, hasher):
    return CredentialStore(repo, hasher=hasher)
