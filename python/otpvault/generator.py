"""
otpvault Generator - HOTP (RFC 4226) and TOTP (RFC 6238) codes.

Compatible with Google Authenticator, Authy, Microsoft Authenticator, etc.

Example:
    >>> from otpvault.algorithm import Algorithm
    >>> from otpvault.generator import Generator
    >>> from otpvault.factor import Counter
    >>> gen = Generator(Algorithm.SHA1, b"12345678901234567890", Counter(0))
    >>> gen.compute(0)
    '755224'
    >>> gen.successor().compute(0)
    '287082'
"""

import base64
import binascii
import hmac
import secrets
import struct
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from otpvault import factor as factors
from otpvault.algorithm import Algorithm, OTPType
from otpvault.exceptions import ConstructionError, DecodeError
from otpvault.factor import Counter, MovingFactor, Timer, Timestamp

DEFAULT_DIGITS = 6
MIN_DIGITS = 6
# 10**9 is the largest power of ten below 2**31
MAX_DIGITS = 9
DEFAULT_SECRET_LENGTH = 20


@dataclass(frozen=True)
class Generator:
    """
    Immutable one-time password generator.

    Combines the shared secret with a hash algorithm, a moving factor and
    a code length. Advancing a counter yields a new Generator; instances
    are never modified.

    Security:
        The secret is excluded from repr() so it does not end up in logs
        or tracebacks.
    """
    algorithm: Algorithm
    secret: bytes = field(repr=False)
    factor: MovingFactor
    digits: int = DEFAULT_DIGITS

    def __post_init__(self):
        if not isinstance(self.algorithm, Algorithm):
            object.__setattr__(self, "algorithm", Algorithm.from_string(self.algorithm))

        if isinstance(self.secret, bytearray):
            object.__setattr__(self, "secret", bytes(self.secret))
        if not isinstance(self.secret, bytes):
            raise ConstructionError("Secret must be bytes")
        if not self.secret:
            raise ConstructionError("Secret must not be empty")

        if not isinstance(self.factor, (Counter, Timer)):
            raise ConstructionError(f"Unknown moving factor: {self.factor!r}")

        if isinstance(self.digits, bool) or not isinstance(self.digits, int):
            raise ConstructionError(f"Digits must be an integer, got {self.digits!r}")
        if not MIN_DIGITS <= self.digits <= MAX_DIGITS:
            raise ConstructionError(
                f"Digits must be between {MIN_DIGITS} and {MAX_DIGITS}, got {self.digits}"
            )

    @property
    def otp_type(self) -> OTPType:
        """HOTP for counters, TOTP for timers."""
        return factors.otp_type(self.factor)

    @property
    def period(self) -> float:
        return factors.period(self.factor)

    def compute(self, timestamp: Optional[Timestamp] = None) -> str:
        """
        Generate the code for a moment in time.

        Args:
            timestamp: Unix timestamp or datetime (default: current time).
                Counter-based generators ignore it.

        Returns:
            OTP code as string (zero-padded to `digits`)

        Raises:
            ValueError: If the timestamp is before the epoch or its time step
                does not fit in 64 bits
        """
        if timestamp is None:
            timestamp = time.time()
        return self._hotp(factors.counter_value(self.factor, timestamp))

    def successor(self) -> "Generator":
        """
        Generator for the next code.

        Returns:
            A copy with the counter advanced by one, or self for timers
        """
        if isinstance(self.factor, Timer):
            return self
        return Generator(
            algorithm=self.algorithm,
            secret=self.secret,
            factor=factors.successor(self.factor),
            digits=self.digits,
        )

    def verify(
        self,
        code: str,
        timestamp: Optional[Timestamp] = None,
        window: int = 0,
    ) -> bool:
        """
        Check a code against this generator.

        Args:
            code: User-provided code
            timestamp: Time to verify against (default: now)
            window: Number of steps to check before/after

        Returns:
            True if code is valid
        """
        if timestamp is None:
            timestamp = time.time()

        counter = factors.counter_value(self.factor, timestamp)
        code_bytes = str(code).strip().encode("utf-8")

        # Check current and adjacent steps (handles clock skew / counter drift)
        for offset in range(-window, window + 1):
            candidate = counter + offset
            if not 0 <= candidate <= factors.MAX_COUNTER:
                continue
            if hmac.compare_digest(code_bytes, self._hotp(candidate).encode("ascii")):
                return True
        return False

    def remaining_seconds(self, timestamp: Optional[Timestamp] = None) -> float:
        """
        Seconds until the current TOTP code rolls over.

        Raises:
            ValueError: For counter-based generators
        """
        if not isinstance(self.factor, Timer):
            raise ValueError("Counter-based generators do not expire")
        if timestamp is None:
            timestamp = time.time()
        step = factors.counter_value(self.factor, timestamp)
        return (step + 1) * self.factor.period - factors.to_seconds(timestamp)

    def _hotp(self, counter: int) -> str:
        """
        HOTP algorithm (RFC 4226).

        Args:
            counter: Counter value

        Returns:
            OTP code as string
        """
        # Counter as 8-byte big-endian
        counter_bytes = struct.pack(">Q", counter)

        h = hmac.new(self.secret, counter_bytes, self.algorithm.digest).digest()

        # Dynamic truncation
        offset = h[-1] & 0x0F
        code_int = struct.unpack(">I", h[offset : offset + 4])[0] & 0x7FFFFFFF

        # Modulo to get digits
        code = str(code_int % (10**self.digits))
        return code.zfill(self.digits)

    @classmethod
    def generate_secret(cls, length: int = DEFAULT_SECRET_LENGTH) -> bytes:
        """
        Generate random secret for a new account.

        Args:
            length: Secret length in bytes (default: 20)

        Returns:
            Random secret bytes
        """
        return secrets.token_bytes(length)

    @classmethod
    def secret_to_base32(cls, secret: bytes) -> str:
        """
        Convert secret to the base32 form authenticator apps display.

        Returns:
            Base32 encoded string (without padding)
        """
        return base64.b32encode(secret).decode("ascii").rstrip("=")

    @classmethod
    def secret_from_base32(cls, b32: str) -> bytes:
        """
        Parse base32 secret as issued by a service.

        Accepts lowercase, spaces and missing padding.

        Raises:
            ConstructionError: If the text is not valid base32
        """
        b32 = "".join(b32.split()).upper()
        # Add padding if needed
        padding = 8 - (len(b32) % 8)
        if padding != 8:
            b32 += "=" * padding
        try:
            secret = base64.b32decode(b32)
        except (binascii.Error, ValueError) as e:
            raise ConstructionError(f"Invalid base32 secret: {e}") from e
        if not secret:
            raise ConstructionError("Secret must not be empty")
        return secret

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (for storage)."""
        return {
            "algorithm": self.algorithm.value,
            "secret": base64.b64encode(self.secret).decode("ascii"),
            "factor": factors.factor_to_dict(self.factor),
            "digits": self.digits,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Generator":
        """
        Create from dictionary.

        Raises:
            DecodeError: If a field is missing or invalid
        """
        try:
            secret = base64.b64decode(data["secret"], validate=True)
            return cls(
                algorithm=Algorithm.from_string(data["algorithm"]),
                secret=secret,
                factor=factors.factor_from_dict(data["factor"]),
                digits=data["digits"],
            )
        except (KeyError, TypeError, binascii.Error) as e:
            raise DecodeError(f"Malformed generator record: {e!r}") from e
        except ConstructionError as e:
            raise DecodeError(f"Invalid generator record: {e.message}") from e
