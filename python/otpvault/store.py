"""
Secret stores.

Accounts are persisted through a small key-value interface so the backing
storage (an OS keychain, a database, a file) can be swapped freely.

Example:
    >>> from otpvault.store import MemorySecretStore
    >>> store = MemorySecretStore()
    >>> store.set("key", b"value", "alice", "OTP access token")
    >>> store.get_data("key")
    b'value'
"""

import base64
import binascii
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from otpvault.exceptions import StorageError

logger = logging.getLogger(__name__)


class SecretStore(ABC):
    """Abstract key-value store for secret material."""

    @abstractmethod
    def set(self, key: str, value: bytes, label: str = "", comment: str = "") -> None:
        """
        Create or replace an entry.

        Args:
            key: Entry key
            value: Raw bytes to store
            label: Human-readable name shown by keychain tools
            comment: Free-form annotation

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def get_data(self, key: str) -> bytes:
        """
        Read an entry.

        Raises:
            StorageError: If the key does not exist or cannot be read
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Delete an entry.

        Raises:
            StorageError: If the key does not exist or cannot be deleted
        """
        pass

    @abstractmethod
    def all_keys(self) -> List[str]:
        """All keys, in the store's own order."""
        pass

    def __contains__(self, key: str) -> bool:
        return key in self.all_keys()


class MemorySecretStore(SecretStore):
    """
    In-process store.

    Keeps insertion order. Useful for tests and short-lived sessions;
    nothing survives the process.
    """

    def __init__(self):
        self._items: Dict[str, bytes] = {}
        self._attributes: Dict[str, Dict[str, str]] = {}
        self._lock = threading.RLock()

    def set(self, key: str, value: bytes, label: str = "", comment: str = "") -> None:
        with self._lock:
            self._items[key] = bytes(value)
            self._attributes[key] = {"label": label, "comment": comment}

    def get_data(self, key: str) -> bytes:
        with self._lock:
            try:
                return self._items[key]
            except KeyError:
                raise StorageError(f"No entry for key {key}", key=key) from None

    def remove(self, key: str) -> None:
        with self._lock:
            if key not in self._items:
                raise StorageError(f"No entry for key {key}", key=key)
            del self._items[key]
            del self._attributes[key]

    def all_keys(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def attributes(self, key: str) -> Dict[str, str]:
        """Label and comment recorded with an entry."""
        with self._lock:
            try:
                return dict(self._attributes[key])
            except KeyError:
                raise StorageError(f"No entry for key {key}", key=key) from None


class FileSecretStore(SecretStore):
    """
    Store backed by a single JSON file.

    Layout:
        {"<key>": {"value": "<base64>", "label": "...", "comment": "..."}}

    Every change rewrites the whole file through a temporary file and an
    atomic rename. The file is created with mode 0600.

    Security:
        Values are only base64 encoded, not encrypted. Protect the file
        with filesystem permissions or keep it on an encrypted volume.
    """

    def __init__(self, path: str):
        """
        Initialize file store.

        Args:
            path: Location of the JSON file (created on first write)
        """
        self.path = os.path.expanduser(path)
        self._lock = threading.RLock()

    def set(self, key: str, value: bytes, label: str = "", comment: str = "") -> None:
        with self._lock:
            entries = self._read()
            entries[key] = {
                "value": base64.b64encode(value).decode("ascii"),
                "label": label,
                "comment": comment,
            }
            self._write(entries)

    def get_data(self, key: str) -> bytes:
        with self._lock:
            entry = self._read().get(key)
        if entry is None:
            raise StorageError(f"No entry for key {key}", key=key)
        try:
            return base64.b64decode(entry["value"], validate=True)
        except (KeyError, TypeError, binascii.Error) as e:
            raise StorageError(f"Corrupted entry for key {key}", key=key) from e

    def remove(self, key: str) -> None:
        with self._lock:
            entries = self._read()
            if key not in entries:
                raise StorageError(f"No entry for key {key}", key=key)
            del entries[key]
            self._write(entries)

    def all_keys(self) -> List[str]:
        with self._lock:
            return list(self._read())

    def label(self, key: str) -> Optional[str]:
        """Label recorded with an entry, if any."""
        with self._lock:
            entry = self._read().get(key)
        if not isinstance(entry, dict):
            return None
        return entry.get("label")

    def _read(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read store {self.path}: {e}") from e
        if not isinstance(entries, dict):
            raise StorageError(f"Cannot read store {self.path}: not a JSON object")
        return entries

    def _write(self, entries: Dict[str, dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".otpvault-", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(entries, f, indent=2)
                os.chmod(tmp_path, 0o600)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Cannot write store {self.path}: {e}") from e
        logger.debug("Wrote %d entries to %s", len(entries), self.path)
