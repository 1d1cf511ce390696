"""
Moving factors.

A moving factor is either an explicit HOTP counter or a TOTP time step.
Both variants are plain frozen values; the functions below match on the
variant instead of dispatching through a class hierarchy.

Example:
    >>> from otpvault.factor import Counter, Timer, counter_value
    >>> counter_value(Counter(5), 1234567890)
    5
    >>> counter_value(Timer(30), 59)
    1
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Union

from otpvault.algorithm import OTPType
from otpvault.exceptions import ConstructionError, DecodeError

DEFAULT_PERIOD = 30
MAX_COUNTER = 2**64 - 1


@dataclass(frozen=True)
class Counter:
    """Explicit HOTP counter."""
    value: int = 0

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ConstructionError(f"Counter must be an integer, got {self.value!r}")
        if not 0 <= self.value <= MAX_COUNTER:
            raise ConstructionError(f"Counter out of range: {self.value}")


@dataclass(frozen=True)
class Timer:
    """TOTP time step in seconds."""
    period: float = DEFAULT_PERIOD

    def __post_init__(self):
        if isinstance(self.period, bool) or not isinstance(self.period, (int, float)):
            raise ConstructionError(f"Timer period must be a number, got {self.period!r}")
        if not math.isfinite(self.period) or self.period <= 0:
            raise ConstructionError(f"Timer period must be positive, got {self.period}")


MovingFactor = Union[Counter, Timer]

Timestamp = Union[int, float, datetime]


def to_seconds(timestamp: Timestamp) -> float:
    """
    Normalize a timestamp to seconds since the Unix epoch.

    Args:
        timestamp: Unix time, or a datetime (naive values are read as UTC)

    Returns:
        Seconds since the epoch

    Raises:
        ValueError: If the timestamp is before the epoch or not finite
    """
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        timestamp = timestamp.timestamp()
    if not math.isfinite(timestamp) or timestamp < 0:
        raise ValueError(f"Timestamp must be a finite, non-negative number, got {timestamp}")
    return timestamp


def counter_value(factor: MovingFactor, timestamp: Timestamp) -> int:
    """
    Counter fed to the HMAC for the given moment.

    Args:
        factor: Counter or Timer
        timestamp: Moment to compute for (ignored by Counter)

    Returns:
        Unsigned 64-bit counter

    Raises:
        ValueError: If the moment is before the epoch, or so far ahead that
            the time step no longer fits in 64 bits
    """
    if isinstance(factor, Counter):
        return factor.value
    if isinstance(factor, Timer):
        steps = math.floor(to_seconds(timestamp) / factor.period)
        if steps > MAX_COUNTER:
            raise ValueError(f"Time step {steps} does not fit in 64 bits")
        return steps
    raise TypeError(f"Unknown moving factor: {factor!r}")


def otp_type(factor: MovingFactor) -> OTPType:
    if isinstance(factor, Counter):
        return OTPType.HOTP
    if isinstance(factor, Timer):
        return OTPType.TOTP
    raise TypeError(f"Unknown moving factor: {factor!r}")


def period(factor: MovingFactor) -> float:
    """Time step of a Timer; counters report the default step."""
    if isinstance(factor, Counter):
        return DEFAULT_PERIOD
    if isinstance(factor, Timer):
        return factor.period
    raise TypeError(f"Unknown moving factor: {factor!r}")


def successor(factor: MovingFactor) -> MovingFactor:
    """
    Factor for the next code.

    Counters step by one. Timers are returned unchanged since time
    advances on its own.
    """
    if isinstance(factor, Counter):
        return Counter(factor.value + 1)
    if isinstance(factor, Timer):
        return factor
    raise TypeError(f"Unknown moving factor: {factor!r}")


def factor_to_dict(factor: MovingFactor) -> Dict[str, Any]:
    if isinstance(factor, Counter):
        return {"counter": factor.value}
    if isinstance(factor, Timer):
        return {"timer": float(factor.period)}
    raise TypeError(f"Unknown moving factor: {factor!r}")


def factor_from_dict(data: Dict[str, Any]) -> MovingFactor:
    """
    Parse the wire form of a factor.

    Args:
        data: {"counter": int} or {"timer": float}

    Raises:
        DecodeError: If the mapping is not exactly one of the two forms
    """
    if not isinstance(data, dict) or len(data) != 1:
        raise DecodeError(f"Unable to decode moving factor: {data!r}")
    try:
        if "counter" in data:
            return Counter(data["counter"])
        if "timer" in data:
            return Timer(data["timer"])
    except ConstructionError as e:
        raise DecodeError(f"Invalid moving factor: {e.message}") from e
    raise DecodeError(f"Unable to decode moving factor: {data!r}")
