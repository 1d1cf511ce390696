"""
otpvault - HOTP/TOTP One-Time Password Accounts

Generates RFC 4226 (counter) and RFC 6238 (time) one-time passwords and
keeps the accounts that produce them in a pluggable secret store.

Usage:
    from otpvault import Account, Algorithm, Generator, Timer, FileSecretStore

    store = FileSecretStore("~/.otpvault.json")
    secret = Generator.secret_from_base32("JBSWY3DPEHPK3PXP")
    account = Account.create("alice@example.com", Generator(Algorithm.SHA1, secret, Timer(30)))
    account.save(store)
    print(account.generate())

Security:
    Codes are derived with HMAC-SHA1/SHA256/SHA512 and 31-bit dynamic
    truncation. Secrets are never logged or included in repr().
"""

__version__ = "0.1.0"
__license__ = "CC0-1.0"

from otpvault.algorithm import Algorithm, OTPType
from otpvault.factor import Counter, Timer, MovingFactor
from otpvault.generator import Generator
from otpvault.account import Account
from otpvault.store import SecretStore, MemorySecretStore, FileSecretStore
from otpvault.exceptions import OTPVaultError, ConstructionError, StorageError, DecodeError

__all__ = [
    # Algorithms
    "Algorithm",
    "OTPType",
    # Moving factors
    "Counter",
    "Timer",
    "MovingFactor",
    # Codes
    "Generator",
    # Accounts
    "Account",
    # Storage
    "SecretStore",
    "MemorySecretStore",
    "FileSecretStore",
    # Errors
    "OTPVaultError",
    "ConstructionError",
    "StorageError",
    "DecodeError",
]
