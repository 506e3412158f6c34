# Credential Store Configuration
#
# Settings come from the environment, optionally seeded from a .env file.
#
#   CREDSTORE_DB_PATH            SQLite file for the account table
#   CREDSTORE_AUDIT_DIR          directory for daily audit log files
#   CREDSTORE_PBKDF2_ITERATIONS  PBKDF2-SHA256 work factor for new hashes

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DB_PATH = "data/credentials.db"
DEFAULT_AUDIT_DIR = "./audit_logs"
DEFAULT_PBKDF2_ITERATIONS = 600_000  # OWASP 2023 guidance for PBKDF2-SHA256


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the credential store."""

    db_path: Path = Path(DEFAULT_DB_PATH)
    audit_dir: Path = Path(DEFAULT_AUDIT_DIR)
    pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional .env path. When omitted, python-dotenv
                      searches upward from the working directory.
                      Variables already set in the process win.

        Raises:
            ValueError: If CREDSTORE_PBKDF2_ITERATIONS is not a positive int
        """
        load_dotenv(env_file, override=False)

        iterations = int(
            os.getenv("CREDSTORE_PBKDF2_ITERATIONS", str(DEFAULT_PBKDF2_ITERATIONS))
        )
        if iterations < 1:
            raise ValueError("CREDSTORE_PBKDF2_ITERATIONS must be positive")

        return cls(
            db_path=Path(os.getenv("CREDSTORE_DB_PATH", DEFAULT_DB_PATH)),
            audit_dir=Path(os.getenv("CREDSTORE_AUDIT_DIR", DEFAULT_AUDIT_DIR)),
            pbkdf2_iterations=iterations,
        )
