"""In-memory OTP store with expiry, plus the code generator."""

from __future__ import annotations

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# Inclusive bounds of the generated code. Four digits only, so codes are
# guessable in ~9000 attempts; rate limiting is the only brake.
OTP_MIN = 1000
OTP_MAX = 9999


class Action(str, Enum):
    """What a verified OTP is allowed to do."""

    VERIFY = "verify"
    RESET = "reset"


@dataclass(frozen=True)
class OTPRecord:
    """A stored code for one email address.

    ``expires_at`` is an absolute timestamp in milliseconds since the epoch.
    """

    code: str
    expires_at: int
    action: Action = Action.VERIFY

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_otp() -> str:
    """Return a uniformly random code in ``[OTP_MIN, OTP_MAX]``."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class OTPStore:
    """Thread-safe in-memory OTP store.

    Each entry maps ``email → OTPRecord``.  A new ``put`` for the same email
    replaces the previous record.  Expired entries are removed when a
    verification trips over them, and in bulk by :meth:`sweep_expired`.
    """

    def __init__(self) -> None:
        self._store: dict[str, OTPRecord] = {}
        self._lock = threading.Lock()

    def put(self, email: str, record: OTPRecord) -> None:
        with self._lock:
            self._store[email] = record
        logger.debug("OTP stored for %s (action=%s)", email, record.action.value)

    def get(self, email: str) -> OTPRecord | None:
        with self._lock:
            return self._store.get(email)

    def delete(self, email: str) -> None:
        """Remove the record for *email*; a missing record is not an error."""
        with self._lock:
            self._store.pop(email, None)

    def sweep_expired(self, now: int) -> int:
        """Delete every record with ``expires_at < now``.

        Returns the number of records removed.
        """
        with self._lock:
            expired = [k for k, rec in self._store.items() if rec.expires_at < now]
            for key in expired:
                del self._store[key]
        if expired:
            logger.info("Swept %d expired OTP(s)", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
