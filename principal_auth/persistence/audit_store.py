"""
Audit Logger - Append-only trail of authentication events

Module: persistence.audit_store
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - Credential lifecycle event types
  - JSON file and in-memory backends
  - Query by principal and event type

ARCHITECTURE:
AuditLogger records what happened to whom, never with what secret:
entries hold a principal id, an event type, a status and free-form
details that callers keep free of tokens and passwords.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from .json_store import JSONStore


class EventType(Enum):
    """Audit event types"""
    REGISTER = "register"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    TOKEN_REFRESH = "token_refresh"
    TOKEN_REFRESH_FAILED = "token_refresh_failed"
    LOGOUT = "logout"
    PASSWORD_CHANGED = "password_changed"
    RESET_REQUESTED = "reset_requested"
    RESET_DELIVERY_FAILED = "reset_delivery_failed"
    RESET_COMPLETED = "reset_completed"
    ACCOUNT_STATUS_CHANGED = "account_status_changed"


class AuditEntry:
    """Represents an audit log entry"""

    def __init__(
        self,
        timestamp: datetime,
        event_type: str,
        principal_id: Optional[str] = None,
        status: str = "success",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.timestamp = timestamp
        self.event_type = event_type
        self.principal_id = principal_id
        self.status = status
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type,
            "principal_id": self.principal_id,
            "status": self.status,
            "message": self.message,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuditEntry":
        """Create from dictionary (from JSON)"""
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            event_type=data["event_type"],
            principal_id=data.get("principal_id"),
            status=data.get("status", "success"),
            message=data.get("message"),
            details=data.get("details", {}),
        )


class AuditLogger:
    """
    Append-only audit trail.

    With a data_dir, entries go to audit.json; without one they are kept
    in memory (tests, development).
    """

    def __init__(self, data_dir: Optional[str] = None):
        """
        Initialize audit logger

        Args:
            data_dir: Directory for audit.json, or None for in-memory
        """
        self.logger = logging.getLogger("persistence.audit_logger")
        self.store: Optional[JSONStore] = None
        self._entries: List[Dict[str, Any]] = []

        if data_dir is not None:
            self.audit_file = Path(data_dir) / "audit.json"
            self.store = JSONStore(str(self.audit_file), {"entries": []})
            self.logger.info(f"AuditLogger initialized (file={self.audit_file})")

    def log_event(
        self,
        event_type: EventType,
        principal_id: Optional[str] = None,
        status: str = "success",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """
        Log an audit event (append-only)

        Args:
            event_type: Type of event
            principal_id: Principal concerned, if known
            status: success, failure, ...
            message: Human-readable message
            details: Extra non-secret data

        Returns:
            AuditEntry that was logged
        """
        entry = AuditEntry(
            timestamp=datetime.now(timezone.utc),
            event_type=event_type.value,
            principal_id=principal_id,
            status=status,
            message=message,
            details=details,
        )

        if self.store is not None:
            self.store.append_entry("entries", entry.to_dict())
        else:
            self._entries.append(entry.to_dict())

        return entry

    def log_failure(
        self,
        event_type: EventType,
        reason: str,
        principal_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """Log a failed operation"""
        return self.log_event(
            event_type,
            principal_id=principal_id,
            status="failure",
            message=reason,
            details=details,
        )

    def _all(self) -> List[AuditEntry]:
        raw = self.store.load()["entries"] if self.store is not None else self._entries
        return [AuditEntry.from_dict(e) for e in raw]

    def query_by_principal(self, principal_id: str, limit: Optional[int] = None) -> List[AuditEntry]:
        """Entries for one principal, oldest first"""
        entries = [e for e in self._all() if e.principal_id == principal_id]
        return entries[-limit:] if limit else entries

    def query_by_event_type(self, event_type: EventType, limit: Optional[int] = None) -> List[AuditEntry]:
        """Entries of one type, oldest first"""
        entries = [e for e in self._all() if e.event_type == event_type.value]
        return entries[-limit:] if limit else entries

    def get_entry_count(self) -> int:
        return len(self._all())
