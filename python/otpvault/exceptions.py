"""
otpvault errors.

All errors share a base class carrying a short machine-readable code.
"""

from typing import Optional


class OTPVaultError(Exception):
    """Base class for otpvault errors."""

    def __init__(self, message: str, code: str = "OTPVAULT_ERROR"):
        super().__init__(message)
        self.code = code
        self.message = message


class ConstructionError(OTPVaultError, ValueError):
    """Raised when a factor, generator or account is built from invalid parameters."""

    def __init__(self, message: str):
        super().__init__(message, code="INVALID_PARAMETERS")


class StorageError(OTPVaultError):
    """Raised when the secret store cannot read, write or delete an entry."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message, code="STORAGE_FAILED")
        self.key = key


class DecodeError(OTPVaultError, ValueError):
    """Raised when a persisted record is malformed."""

    def __init__(self, message: str):
        super().__init__(message, code="DECODE_FAILED")
