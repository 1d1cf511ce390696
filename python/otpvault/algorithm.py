"""
Hash algorithms and OTP types.
"""

import hashlib
from enum import Enum
from typing import Any, Callable, Optional


class Algorithm(Enum):
    """Keyed-hash function used to derive codes."""
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @classmethod
    def from_string(cls, name: Optional[str]) -> "Algorithm":
        """
        Look up an algorithm by name.

        Unknown names fall back to SHA1, which is what authenticator apps
        assume when an issuer does not say otherwise.

        Args:
            name: Algorithm name, e.g. "SHA256" or "sha256"

        Returns:
            Matching Algorithm, or Algorithm.SHA1
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return cls.SHA1
        try:
            return cls(name.strip().upper())
        except ValueError:
            return cls.SHA1

    @property
    def digest(self) -> Callable[..., Any]:
        """hashlib constructor for this algorithm."""
        return _DIGESTS[self]

    @property
    def digest_size(self) -> int:
        """MAC length in bytes."""
        return self.digest().digest_size


_DIGESTS = {
    Algorithm.SHA1: hashlib.sha1,
    Algorithm.SHA256: hashlib.sha256,
    Algorithm.SHA512: hashlib.sha512,
}


class OTPType(Enum):
    """Counter-based or time-based password."""
    TOTP = "TOTP"
    HOTP = "HOTP"

    @classmethod
    def from_string(cls, name: Optional[str]) -> "OTPType":
        """Look up a type by name, defaulting to TOTP."""
        if isinstance(name, cls):
            return name
        if isinstance(name, str) and name.strip().lower() == "hotp":
            return cls.HOTP
        return cls.TOTP
