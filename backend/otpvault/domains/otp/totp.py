"""
TOTP engine (RFC 6238) - 当前/下一个验证码与剩余有效时间

All functions are pure in ``(secret, now)``: the "next" code is the same
computation evaluated one period later, never a mutated generator.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import pyotp

from otpvault.common.errors import InvalidSecret, InvalidTimestamp

logger = logging.getLogger(__name__)

DEFAULT_DIGITS = 6
DEFAULT_PERIOD = 30
INVALID_CODE = "INVALID"


def _resolve_now(now: Optional[float]) -> float:
    if now is None:
        return time.time()
    if now < 0:
        raise InvalidTimestamp(f"now must not be before the Unix epoch, got {now}")
    return now


def normalize_secret(secret: str) -> str:
    """Remove all whitespace from a Base32 secret as typed or pasted by a user."""
    return "".join(secret.split())


@dataclass(frozen=True)
class OtpSnapshot:
    """Everything a vault entry view re-polls once per second."""

    current: str
    next: str
    seconds_remaining: int
    period: int
    digits: int


class TotpEngine:
    """Time-based one-time passcodes for Base32 shared secrets."""

    def __init__(
        self,
        digits: int = DEFAULT_DIGITS,
        period: int = DEFAULT_PERIOD,
        digest: Any = hashlib.sha1,
    ):
        if period <= 0:
            raise ValueError("period must be a positive number of seconds")
        if not 1 <= digits <= 10:
            raise ValueError("digits must be between 1 and 10")
        self.digits = digits
        self.period = period
        self.digest = digest

    def __repr__(self) -> str:
        return f"<TotpEngine digits={self.digits} period={self.period}>"

    def _generator(self, secret: str) -> pyotp.TOTP:
        cleaned = normalize_secret(secret or "")
        if not cleaned:
            raise InvalidSecret("TOTP secret is empty")

        totp = pyotp.TOTP(cleaned, digits=self.digits, digest=self.digest, interval=self.period)
        try:
            totp.byte_secret()
        except (ValueError, TypeError) as e:
            # binascii.Error is a ValueError subclass
            raise InvalidSecret(f"TOTP secret is not valid Base32: {e}") from e
        return totp

    def _counter(self, now: Optional[float]) -> int:
        return int(_resolve_now(now) // self.period)

    def _at_counter(self, secret: str, counter: int) -> str:
        totp = self._generator(secret)
        try:
            return totp.generate_otp(counter)
        except (ValueError, TypeError) as e:
            raise InvalidSecret(f"TOTP computation failed: {e}") from e

    def current_code(self, secret: str, now: Optional[float] = None) -> str:
        """Code for the window containing ``now``."""
        return self._at_counter(secret, self._counter(now))

    def next_code(self, secret: str, now: Optional[float] = None) -> str:
        """Code for the window after the one containing ``now``."""
        return self._at_counter(secret, self._counter(now) + 1)

    def seconds_remaining(self, now: Optional[float] = None) -> int:
        """Seconds until the current window ends, in ``(0, period]``."""
        now = _resolve_now(now)
        return self.period - (int(now) % self.period)

    def snapshot(self, secret: str, now: Optional[float] = None) -> OtpSnapshot:
        now = _resolve_now(now)
        return OtpSnapshot(
            current=self.current_code(secret, now),
            next=self.next_code(secret, now),
            seconds_remaining=self.seconds_remaining(now),
            period=self.period,
            digits=self.digits,
        )


def current_code(
    secret: str,
    now: Optional[float] = None,
    *,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
) -> str:
    return TotpEngine(digits=digits, period=period).current_code(secret, now)


def next_code(
    secret: str,
    now: Optional[float] = None,
    *,
    period: int = DEFAULT_PERIOD,
    digits: int = DEFAULT_DIGITS,
) -> str:
    return TotpEngine(digits=digits, period=period).next_code(secret, now)


def seconds_remaining(now: Optional[float] = None, period: int = DEFAULT_PERIOD) -> int:
    return TotpEngine(period=period).seconds_remaining(now)
