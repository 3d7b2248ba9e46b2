"""
JSON Store - Atomic JSON file persistence

Module: persistence.json_store
Date: 2026-10-17
Version: 0.1.0

CHANGELOG:
[2026-10-17 v0.1.0] Initial implementation
  - Atomic writes (temp file + rename), 0600 permissions
  - Locked read-modify-write via update()
  - Append helper for list-shaped documents

ARCHITECTURE:
JSONStore holds one JSON document per file. Every mutation goes through
update(), which loads, applies a mutator and writes back while holding the
store lock, so concurrent callers in one process never interleave.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")


class JSONStoreError(Exception):
    """Base JSON store error"""
    pass


class JSONStoreIOError(JSONStoreError):
    """File I/O error"""
    pass


class JSONStoreFormatError(JSONStoreError):
    """JSON format error"""
    pass


class JSONStore:
    """
    One JSON document on disk.

    Handles:
    - Directory and file creation
    - Atomic writes
    - Serialized read-modify-write cycles
    """

    def __init__(self, file_path: str, default_data: Optional[Dict[str, Any]] = None):
        """
        Initialize JSON store

        Args:
            file_path: Path to JSON file
            default_data: Document written when the file does not exist
        """
        self.logger = logging.getLogger(f"persistence.{self.__class__.__name__}")
        self.file_path = Path(file_path)
        self.default_data = default_data or {}
        self._lock = threading.RLock()

        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.file_path.exists():
            self._write_atomic(self.default_data)
            self.logger.info(f"Created new store: {self.file_path}")

    def load(self) -> Dict[str, Any]:
        """
        Load the document

        Raises:
            JSONStoreIOError: If file cannot be read
            JSONStoreFormatError: If JSON is invalid
        """
        with self._lock:
            try:
                with open(self.file_path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except FileNotFoundError:
                self.logger.warning("File not found, returning default data")
                return json.loads(json.dumps(self.default_data))
            except json.JSONDecodeError as e:
                raise JSONStoreFormatError(f"Invalid JSON in {self.file_path}: {e}")
            except OSError as e:
                raise JSONStoreIOError(f"Failed to read {self.file_path}: {e}")

    def save(self, data: Dict[str, Any]) -> None:
        """Replace the document (atomic)"""
        with self._lock:
            self._write_atomic(data)

    def update(self, mutator: Callable[[Dict[str, Any]], T]) -> T:
        """
        Load, mutate and save under the store lock

        Args:
            mutator: Receives the document, mutates it in place and
                returns a value handed back to the caller

        Returns:
            The mutator's return value
        """
        with self._lock:
            data = self.load()
            result = mutator(data)
            self._write_atomic(data)
            return result

    def append_entry(self, entries_key: str, entry: Dict[str, Any]) -> None:
        """Append entry to a list in the document (audit logs, etc)"""
        def _append(data: Dict[str, Any]) -> None:
            data.setdefault(entries_key, []).append(entry)

        self.update(_append)

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        temp_path = self.file_path.with_suffix(".tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            temp_path.replace(self.file_path)
            self.file_path.chmod(0o600)
        except (OSError, TypeError, ValueError) as e:
            raise JSONStoreIOError(f"Failed to write {self.file_path}: {e}")
