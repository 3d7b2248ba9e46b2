"""
Persistence module - JSON-based data storage

Provides:
- JSONStore: atomic JSON document with locked read-modify-write
- PrincipalStore: principal persistence boundary (memory / JSON file)
- AuditLogger: audit trail of authentication events
"""

from .json_store import JSONStore, JSONStoreError
from .principal_store import (
    InMemoryPrincipalStore,
    JSONPrincipalStore,
    PrincipalRecord,
    PrincipalStore,
)
from .audit_store import AuditLogger, AuditEntry, EventType

__all__ = [
    "JSONStore",
    "JSONStoreError",
    "PrincipalStore",
    "PrincipalRecord",
    "InMemoryPrincipalStore",
    "JSONPrincipalStore",
    "AuditLogger",
    "AuditEntry",
    "EventType",
]
