"""
otpvault Account - named OTP credentials kept in a secret store.

Example:
    >>> from otpvault import Account, Algorithm, Counter, Generator, MemorySecretStore
    >>> store = MemorySecretStore()
    >>> gen = Generator(Algorithm.SHA1, b"12345678901234567890", Counter(0))
    >>> account = Account.create("alice@example.com", gen, issuer="Example")
    >>> account.save(store)
    >>> account.generate(0)
    '755224'
    >>> account = account.increment_counter(store)
    >>> account.generate(0)
    '287082'
"""

import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from otpvault.algorithm import OTPType
from otpvault.exceptions import ConstructionError, DecodeError, StorageError
from otpvault.factor import Timestamp
from otpvault.generator import Generator
from otpvault.record import parse_record
from otpvault.store import SecretStore

logger = logging.getLogger(__name__)

STORE_COMMENT = "OTP access token"


@dataclass(frozen=True)
class Account:
    """
    An OTP account: who the code is for, who issued it, and how to make it.

    Accounts are snapshots. Advancing an HOTP counter returns a new Account
    with the same id; the caller must keep the returned value and drop the
    old one.
    """
    label: str
    issuer: Optional[str]
    generator: Generator
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self):
        if not isinstance(self.label, str) or not self.label:
            raise ConstructionError("Account label must be a non-empty string")
        if self.issuer is not None and not isinstance(self.issuer, str):
            raise ConstructionError("Account issuer must be a string or None")
        if not isinstance(self.generator, Generator):
            raise ConstructionError("Account generator must be a Generator")
        if not isinstance(self.id, uuid.UUID):
            try:
                object.__setattr__(self, "id", uuid.UUID(str(self.id)))
            except ValueError as e:
                raise ConstructionError(f"Invalid account id: {self.id!r}") from e

    @classmethod
    def create(
        cls,
        label: str,
        generator: Generator,
        issuer: Optional[str] = None,
    ) -> "Account":
        """
        Provision a new account with a fresh id.

        Args:
            label: Account name, usually an email address or username
            generator: Code generator holding the shared secret
            issuer: Service that issued the secret

        Returns:
            New, unsaved account
        """
        return cls(label=label, issuer=issuer, generator=generator)

    @property
    def otp_type(self) -> OTPType:
        return self.generator.otp_type

    def generate(self, timestamp: Optional[Timestamp] = None) -> str:
        """
        Current code for this account.

        TOTP accounts return the same code for every timestamp inside one
        period. HOTP accounts return the code for the stored counter
        regardless of timestamp.
        """
        return self.generator.compute(timestamp)

    def increment_counter(self, store: SecretStore, strict: bool = False) -> "Account":
        """
        Advance the counter and persist the result.

        Treats the call as consuming one HOTP code. There is no
        compare-and-swap: two callers that start from the same stale snapshot
        produce the same counter and the last write wins. Reload with
        Account.load() before advancing if other writers may exist.

        Args:
            store: Store to save the advanced account into
            strict: Raise when the save fails instead of logging it

        Returns:
            Account with the advanced generator. With strict=False it is
            returned even if it could not be saved.

        Raises:
            StorageError: If strict is set and the save fails
        """
        account = replace(self, generator=self.generator.successor())
        try:
            account.save(store)
        except StorageError as e:
            if strict:
                raise
            logger.warning(
                "Counter for account %s advanced in memory but not saved: %s",
                self.id,
                e.message,
            )
        return account

    def next_code(
        self,
        store: SecretStore,
        timestamp: Optional[Timestamp] = None,
        strict: bool = False,
    ) -> Tuple[str, "Account"]:
        """
        Produce a code and consume it.

        HOTP accounts are advanced and saved after the code is computed;
        TOTP accounts are returned unchanged.

        Returns:
            (code, account to keep using)
        """
        code = self.generate(timestamp)
        if self.otp_type is OTPType.HOTP:
            return code, self.increment_counter(store, strict=strict)
        return code, self

    def save(self, store: SecretStore) -> None:
        """
        Write the full account, secret included, to the store under its id.

        Raises:
            StorageError: If encoding or the write fails
        """
        try:
            payload = self.encode()
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot encode account {self.id}: {e}", key=str(self.id)) from e
        try:
            store.set(str(self.id), payload, self.label, STORE_COMMENT)
        except OSError as e:
            raise StorageError(f"Cannot save account {self.id}: {e}", key=str(self.id)) from e
        logger.debug("Saved account %s", self.id)

    def remove(self, store: SecretStore) -> None:
        """
        Delete this account from the store.

        Raises:
            StorageError: If the account is not stored or the delete fails
        """
        try:
            store.remove(str(self.id))
        except OSError as e:
            raise StorageError(f"Cannot remove account {self.id}: {e}", key=str(self.id)) from e
        logger.debug("Removed account %s", self.id)

    @classmethod
    def load(cls, store: SecretStore, account_id: Union[str, uuid.UUID]) -> "Account":
        """
        Read one account.

        Raises:
            StorageError: If the account is not stored
            DecodeError: If the stored record is malformed
        """
        return cls.decode(store.get_data(str(account_id)))

    @classmethod
    def load_all(cls, store: SecretStore) -> List["Account"]:
        """
        Read every account in the store.

        Entries that cannot be read or decoded are skipped.

        Returns:
            Accounts in the store's key order
        """
        accounts = []
        for key in store.all_keys():
            try:
                accounts.append(cls.decode(store.get_data(key)))
            except (StorageError, DecodeError) as e:
                logger.debug("Skipping store entry %s: %s", key, e.message)
        return accounts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for storage)."""
        return {
            "id": str(self.id),
            "label": self.label,
            "issuer": self.issuer,
            "generator": self.generator.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Account":
        """
        Create from dictionary.

        Raises:
            DecodeError: If a field is missing or invalid
        """
        try:
            return cls(
                label=data["label"],
                issuer=data.get("issuer"),
                generator=Generator.from_dict(data["generator"]),
                id=data["id"],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Malformed account record: {e!r}") from e
        except ConstructionError as e:
            raise DecodeError(f"Invalid account record: {e.message}") from e

    def encode(self) -> bytes:
        """Serialize to the stored JSON document."""
        return json.dumps(self.to_dict()).encode("utf-8")

    @classmethod
    def decode(cls, data: Union[bytes, str]) -> "Account":
        """
        Parse a stored JSON document.

        Raises:
            DecodeError: If the document is malformed
        """
        return cls.from_dict(parse_record(data))
