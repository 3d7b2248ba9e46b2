"""
Principal Store - Principal records and persistence boundary

Module: persistence.principal_store
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - PrincipalRecord with JSON (de)serialization
  - PrincipalStore boundary (find/save/compare-and-set)
  - In-memory and JSON file backends

ARCHITECTURE:
PrincipalStore is the only seam between credential logic and storage:
  - find_by_id / find_by_credential_lookup / find_by_reset_digest
  - save (whole record, registration)
  - mutate (atomic field-level change of one stored record), and on top
    of it update_fields, swap_refresh_token, complete_reset, clear_reset
Backends hand out copies: a record changes in storage only through save()
or mutate().

SECURITY NOTES:
- to_public_dict() never includes hashes, tokens or reset digests
- Reset lookup matches digest AND unexpired in one condition
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..core.constants import PRINCIPAL_USER, STATUS_ACTIVE
from .json_store import JSONStore

LOOKUP_FIELDS = ("email", "phone")


class PrincipalRecord:
    """Represents a stored principal"""

    def __init__(
        self,
        principal_id: str,
        credential_hash: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: str = PRINCIPAL_USER,
        account_status: str = STATUS_ACTIVE,
        active_refresh_token: Optional[str] = None,
        reset_token_digest: Optional[str] = None,
        reset_token_expiry: Optional[float] = None,
        created_at: Optional[datetime] = None,
        last_login: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.principal_id = principal_id
        self.credential_hash = credential_hash
        self.email = email
        self.phone = phone
        self.first_name = first_name
        self.last_name = last_name
        self.role = role
        self.account_status = account_status
        self.active_refresh_token = active_refresh_token
        self.reset_token_digest = reset_token_digest
        self.reset_token_expiry = reset_token_expiry
        self.created_at = created_at or datetime.now(timezone.utc)
        self.last_login = last_login
        self.metadata = metadata or {}

    @classmethod
    def new(cls, credential_hash: str, **fields: Any) -> "PrincipalRecord":
        """Create a record with a fresh id"""
        return cls(principal_id=uuid.uuid4().hex, credential_hash=credential_hash, **fields)

    @property
    def is_active(self) -> bool:
        return self.account_status == STATUS_ACTIVE

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or (self.email or "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON storage"""
        return {
            "principal_id": self.principal_id,
            "credential_hash": self.credential_hash,
            "email": self.email,
            "phone": self.phone,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "account_status": self.account_status,
            "active_refresh_token": self.active_refresh_token,
            "reset_token_digest": self.reset_token_digest,
            "reset_token_expiry": self.reset_token_expiry,
            "created_at": self.created_at.isoformat(),
            "last_login": self.last_login.isoformat() if self.last_login else None,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrincipalRecord":
        """Create from dictionary (from JSON)"""
        return cls(
            principal_id=data["principal_id"],
            credential_hash=data["credential_hash"],
            email=data.get("email"),
            phone=data.get("phone"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            role=data.get("role", PRINCIPAL_USER),
            account_status=data.get("account_status", STATUS_ACTIVE),
            active_refresh_token=data.get("active_refresh_token"),
            reset_token_digest=data.get("reset_token_digest"),
            reset_token_expiry=data.get("reset_token_expiry"),
            created_at=datetime.fromisoformat(data["created_at"]),
            last_login=datetime.fromisoformat(data["last_login"]) if data.get("last_login") else None,
            metadata=dict(data.get("metadata") or {}),
        )

    def to_public_dict(self) -> Dict[str, Any]:
        """Fields safe to return to the principal"""
        return {
            "id": self.principal_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "accountStatus": self.account_status,
            "createdAt": self.created_at.isoformat(),
        }


# Fields a field-scoped update may touch (principal_id and created_at are fixed)
MUTABLE_FIELDS = (
    "credential_hash",
    "email",
    "phone",
    "first_name",
    "last_name",
    "role",
    "account_status",
    "active_refresh_token",
    "reset_token_digest",
    "reset_token_expiry",
    "last_login",
    "metadata",
)

Mutator = Callable[[Dict[str, Any]], bool]


def _matches_lookup(data: Dict[str, Any], fields: Dict[str, Optional[str]]) -> bool:
    return any(
        value and data.get(name) == value
        for name, value in fields.items()
        if name in LOOKUP_FIELDS
    )


def _matches_reset(data: Dict[str, Any], digest: str, now: float) -> bool:
    expiry = data.get("reset_token_expiry")
    return (
        data.get("reset_token_digest") == digest
        and expiry is not None
        and expiry > now
    )


def _stored_value(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


class PrincipalStore(ABC):
    """
    Persistence boundary for principals

    Backends implement the lookups, save() and mutate(). Everything that
    changes an existing principal after a lookup goes through mutate(), so
    a slow caller holding an old snapshot only writes the fields it owns.
    """

    @abstractmethod
    def find_by_id(self, principal_id: str) -> Optional[PrincipalRecord]:
        """Principal with this id, or None"""

    @abstractmethod
    def find_by_credential_lookup(self, fields: Dict[str, Optional[str]]) -> Optional[PrincipalRecord]:
        """First principal matching ANY of the given lookup fields (email, phone)"""

    @abstractmethod
    def find_by_reset_digest(self, digest: str, now: float) -> Optional[PrincipalRecord]:
        """Principal holding this reset digest with expiry strictly after now"""

    @abstractmethod
    def save(self, principal: PrincipalRecord) -> None:
        """Insert or replace the whole principal (registration)"""

    @abstractmethod
    def mutate(self, principal_id: str, mutator: Mutator) -> bool:
        """
        Apply mutator to the stored dict of one principal, atomically

        The mutator returns True to commit its changes, False to discard
        them. Unknown principals return False without calling it.
        """

    def update_fields(
        self,
        principal_id: str,
        changes: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Write only the given fields, optionally compare-and-set

        Args:
            principal_id: Principal to update
            changes: Field name -> new value
            expected: Field name -> value each must currently hold

        Returns:
            True if the principal exists, every expected value matched and
            the changes were written

        Raises:
            ValueError: On a field that is not updatable
        """
        for name in list(changes) + list(expected or {}):
            if name not in MUTABLE_FIELDS:
                raise ValueError(f"Field cannot be updated: {name}")

        def _apply(data: Dict[str, Any]) -> bool:
            for name, value in (expected or {}).items():
                if data.get(name) != _stored_value(value):
                    return False
            for name, value in changes.items():
                data[name] = _stored_value(value)
            return True

        return self.mutate(principal_id, _apply)

    def swap_refresh_token(self, principal_id: str, expected: Optional[str], new: Optional[str]) -> bool:
        """
        Compare-and-set the active refresh token

        Returns:
            True if the stored value equalled `expected` and is now `new`
        """
        return self.update_fields(
            principal_id,
            {"active_refresh_token": new},
            expected={"active_refresh_token": expected},
        )

    def complete_reset(self, principal_id: str, digest: str, now: float, credential_hash: str) -> bool:
        """
        Redeem a reset digest in one step

        Sets the new credential, clears the refresh slot and both reset
        fields, but only while the digest is still stored and unexpired.

        Returns:
            True if this call redeemed the digest
        """
        def _redeem(data: Dict[str, Any]) -> bool:
            if not _matches_reset(data, digest, now):
                return False
            data["credential_hash"] = credential_hash
            data["active_refresh_token"] = None
            data["reset_token_digest"] = None
            data["reset_token_expiry"] = None
            return True

        return self.mutate(principal_id, _redeem)

    def clear_reset(self, principal_id: str, digest: str) -> bool:
        """Clear both reset fields if `digest` is still the pending one"""
        return self.update_fields(
            principal_id,
            {"reset_token_digest": None, "reset_token_expiry": None},
            expected={"reset_token_digest": digest},
        )


class InMemoryPrincipalStore(PrincipalStore):
    """Process-local store (tests, development)"""

    def __init__(self):
        self.logger = logging.getLogger("persistence.principal_store.memory")
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def find_by_id(self, principal_id: str) -> Optional[PrincipalRecord]:
        with self._lock:
            data = self._records.get(principal_id)
            return PrincipalRecord.from_dict(data) if data else None

    def find_by_credential_lookup(self, fields: Dict[str, Optional[str]]) -> Optional[PrincipalRecord]:
        with self._lock:
            for data in self._records.values():
                if _matches_lookup(data, fields):
                    return PrincipalRecord.from_dict(data)
        return None

    def find_by_reset_digest(self, digest: str, now: float) -> Optional[PrincipalRecord]:
        with self._lock:
            for data in self._records.values():
                if _matches_reset(data, digest, now):
                    return PrincipalRecord.from_dict(data)
        return None

    def save(self, principal: PrincipalRecord) -> None:
        with self._lock:
            self._records[principal.principal_id] = principal.to_dict()
        self.logger.debug(f"Principal saved: {principal.principal_id[:8]}")

    def mutate(self, principal_id: str, mutator: Mutator) -> bool:
        with self._lock:
            data = self._records.get(principal_id)
            if data is None:
                return False
            working = dict(data)
            if not mutator(working):
                return False
            self._records[principal_id] = working
            return True

    def list_principals(self) -> List[PrincipalRecord]:
        with self._lock:
            return [PrincipalRecord.from_dict(d) for d in self._records.values()]


class JSONPrincipalStore(PrincipalStore):
    """
    Principals in principals.json.

    Every mutation is a JSONStore.update() cycle, which gives mutate() its
    compare-and-set guarantee within the process.
    """

    def __init__(self, data_dir: str = "./data"):
        """
        Initialize JSON principal store

        Args:
            data_dir: Directory for data files
        """
        self.logger = logging.getLogger("persistence.principal_store")
        self.data_dir = Path(data_dir)
        self.principals_file = self.data_dir / "principals.json"
        self.store = JSONStore(str(self.principals_file), {"principals": {}})
        self.logger.info(f"JSONPrincipalStore initialized (file={self.principals_file})")

    def find_by_id(self, principal_id: str) -> Optional[PrincipalRecord]:
        data = self.store.load()["principals"].get(principal_id)
        return PrincipalRecord.from_dict(data) if data else None

    def find_by_credential_lookup(self, fields: Dict[str, Optional[str]]) -> Optional[PrincipalRecord]:
        for data in self.store.load()["principals"].values():
            if _matches_lookup(data, fields):
                return PrincipalRecord.from_dict(data)
        return None

    def find_by_reset_digest(self, digest: str, now: float) -> Optional[PrincipalRecord]:
        for data in self.store.load()["principals"].values():
            if _matches_reset(data, digest, now):
                return PrincipalRecord.from_dict(data)
        return None

    def save(self, principal: PrincipalRecord) -> None:
        def _put(doc: Dict[str, Any]) -> None:
            doc["principals"][principal.principal_id] = principal.to_dict()

        self.store.update(_put)
        self.logger.debug(f"Principal saved: {principal.principal_id[:8]}")

    def mutate(self, principal_id: str, mutator: Mutator) -> bool:
        def _apply(doc: Dict[str, Any]) -> bool:
            data = doc["principals"].get(principal_id)
            if data is None:
                return False
            working = dict(data)
            if not mutator(working):
                return False
            doc["principals"][principal_id] = working
            return True

        return self.store.update(_apply)

    def list_principals(self) -> List[PrincipalRecord]:
        return [PrincipalRecord.from_dict(d) for d in self.store.load()["principals"].values()]
