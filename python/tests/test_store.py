"""Tests for secret stores."""

import json
import os
import stat

import pytest
from otpvault.account import Account
from otpvault.algorithm import Algorithm
from otpvault.exceptions import StorageError
from otpvault.factor import Counter
from otpvault.generator import Generator
from otpvault.store import FileSecretStore, MemorySecretStore, SecretStore


class TestMemorySecretStore:
    """Test MemorySecretStore."""

    def test_set_get(self):
        """Stored bytes are returned unchanged."""
        store = MemorySecretStore()
        store.set("k", b"\x00\xffdata", "label", "comment")
        assert store.get_data("k") == b"\x00\xffdata"

    def test_get_missing(self):
        """Missing keys raise StorageError."""
        with pytest.raises(StorageError) as exc:
            MemorySecretStore().get_data("nope")
        assert exc.value.key == "nope"
        assert exc.value.code == "STORAGE_FAILED"

    def test_remove_missing(self):
        """Removing a missing key raises StorageError."""
        with pytest.raises(StorageError):
            MemorySecretStore().remove("nope")

    def test_insertion_order(self):
        """Keys come back in insertion order."""
        store = MemorySecretStore()
        for key in ["c", "a", "b"]:
            store.set(key, b"x")
        assert store.all_keys() == ["c", "a", "b"]

    def test_contains(self):
        """Membership checks keys."""
        store = MemorySecretStore()
        store.set("k", b"x")
        assert "k" in store
        assert "other" not in store

    def test_abstract(self):
        """SecretStore cannot be instantiated."""
        with pytest.raises(TypeError):
            SecretStore()


class TestFileSecretStore:
    """Test FileSecretStore."""

    def test_set_get(self, tmp_path):
        """Values persist across store instances."""
        path = str(tmp_path / "store.json")
        FileSecretStore(path).set("k", b"\x01\x02", "alice", "OTP access token")

        store = FileSecretStore(path)
        assert store.get_data("k") == b"\x01\x02"
        assert store.label("k") == "alice"

    def test_missing_file_is_empty(self, tmp_path):
        """A store with no file has no keys."""
        store = FileSecretStore(str(tmp_path / "absent.json"))
        assert store.all_keys() == []
        with pytest.raises(StorageError):
            store.get_data("k")

    def test_file_mode(self, tmp_path):
        """Store file is private to the owner."""
        path = tmp_path / "store.json"
        FileSecretStore(str(path)).set("k", b"x")
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_remove(self, tmp_path):
        """Removed keys are gone from disk."""
        path = tmp_path / "store.json"
        store = FileSecretStore(str(path))
        store.set("a", b"1")
        store.set("b", b"2")
        store.remove("a")

        assert store.all_keys() == ["b"]
        assert list(json.loads(path.read_text())) == ["b"]

    def test_remove_missing(self, tmp_path):
        """Removing a missing key raises StorageError."""
        with pytest.raises(StorageError):
            FileSecretStore(str(tmp_path / "store.json")).remove("nope")

    def test_corrupted_file(self, tmp_path):
        """Unreadable store files raise StorageError."""
        path = tmp_path / "store.json"
        path.write_text("{not json")
        with pytest.raises(StorageError, match="Cannot read"):
            FileSecretStore(str(path)).all_keys()

    def test_corrupted_entry(self, tmp_path):
        """Entries without valid base64 raise StorageError."""
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"k": {"value": "***"}}))
        with pytest.raises(StorageError, match="Corrupted"):
            FileSecretStore(str(path)).get_data("k")

    def test_unwritable_directory(self, tmp_path):
        """Write failures raise StorageError."""
        store = FileSecretStore(str(tmp_path / "missing-dir" / "store.json"))
        with pytest.raises(StorageError, match="Cannot write"):
            store.set("k", b"x")

    def test_accounts_roundtrip(self, tmp_path):
        """Accounts saved to a file load back equal."""
        path = str(tmp_path / "store.json")
        gen = Generator(Algorithm.SHA1, b"12345678901234567890", Counter(0))
        account = Account.create("alice", gen, issuer="Example")
        account.save(FileSecretStore(path))
        account = account.increment_counter(FileSecretStore(path))

        assert Account.load_all(FileSecretStore(path)) == [account]
