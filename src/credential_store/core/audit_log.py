# Core Module - Account Audit Trail
#
# Append-only, structured JSON log of every account lifecycle change and
# every authentication attempt. One file per day under the audit directory.
# Passwords (plaintext or hashed) never appear in an event.

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

import structlog

AUDIT_LOGGER_NAME = "credential_store.audit"


class EventType(str, Enum):
    """Types of account events that can be logged."""

    ACCOUNT_CREATED = "account.created"
    ACCOUNT_RENAMED = "account.renamed"
    ACCOUNT_DELETED = "account.deleted"
    ACCOUNT_CONFLICT = "account.conflict"

    AUTH_SUCCEEDED = "auth.succeeded"
    AUTH_FAILED = "auth.failed"


class EventSeverity(str, Enum):
    """
    Severity levels for account events.

    - INFO: normal activity
    - WARNING: rejected request worth a second look (failed login, collision)
    """

    INFO = "info"
    WARNING = "warning"


class AuditLogger:
    """
    Append-only audit logger for account events.

    Features:
    - Structured JSON lines via structlog
    - Automatic timestamp and event ID
    - Daily log file per audit directory
    """

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._handler = self._setup_file_handler()
        self.logger = structlog.get_logger(AUDIT_LOGGER_NAME)

    @property
    def log_file(self) -> Path:
        return Path(self._handler.baseFilename)

    def _setup_file_handler(self) -> logging.FileHandler:
        """Attach a file handler for today's log to the audit logger."""
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"

        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(message)s"))  # structlog formats

        audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
        audit_logger.addHandler(file_handler)
        audit_logger.setLevel(logging.INFO)
        return file_handler

    def close(self) -> None:
        """Detach and close this logger's file handler."""
        logging.getLogger(AUDIT_LOGGER_NAME).removeHandler(self._handler)
        self._handler.close()

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Log an account event (append-only).

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never include passwords!)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())
        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "details": details or {},
        }

        if severity is EventSeverity.WARNING:
            self.logger.warning("account_event", **event_data)
        else:
            self.logger.info("account_event", **event_data)

        return event_id


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def set_audit_logger(instance: Optional[AuditLogger]) -> None:
    """Replace the singleton (CLI startup and tests)."""
    global _audit_logger
    _audit_logger = instance
