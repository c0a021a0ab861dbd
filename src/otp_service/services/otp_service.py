"""OTP service — issues and verifies one-time passcodes.

Issuance
--------
1. Check the email is roughly email-shaped.
2. For password resets, make sure the identity provider knows the email.
3. Store a fresh code (replacing any earlier one) and email it.

Verification
------------
1. The presented code must match the stored one exactly.
2. Expired records are dropped and rejected.
3. The stored action is applied through the identity provider and the
   record is consumed.

A wrong code leaves the record in place so the user can retry.  So do a
reset request without a new password and an identity provider failure.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from otp_service.errors import (
    IdentityNotFoundError,
    InvalidInputError,
    InvalidOTPError,
    InvalidRequestError,
    NotificationFailedError,
    OTPExpiredError,
    ProviderError,
)
from otp_service.identity.base import IdentityProvider, IdentityProviderError
from otp_service.services.email_service import EmailService
from otp_service.services.otp_store import (
    Action,
    OTPRecord,
    OTPStore,
    generate_otp,
    now_ms,
)

logger = logging.getLogger(__name__)

# Deliberately loose: something, "@", something, ".", something; no spaces.
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.fullmatch(email) is not None


class OTPService:
    """Glue between the OTP store, the identity provider and the mailer."""

    def __init__(
        self,
        store: OTPStore,
        identity_provider: IdentityProvider,
        email_service: EmailService,
        expiry_minutes: int = 5,
        clock: Callable[[], int] = now_ms,
        code_generator: Callable[[], str] = generate_otp,
    ) -> None:
        self._store = store
        self._identity = identity_provider
        self._email = email_service
        self._expiry_minutes = expiry_minutes
        self._clock = clock
        self._generate = code_generator

    @property
    def store(self) -> OTPStore:
        return self._store

    @property
    def identity_provider(self) -> IdentityProvider:
        return self._identity

    # ── Issuance ─────────────────────────────────────────

    async def issue(self, email: str | None, action: Action = Action.VERIFY) -> None:
        """Generate, store and email a code for *email*."""
        if not is_valid_email(email):
            raise InvalidInputError()

        if action is Action.RESET:
            try:
                await self._identity.get_by_email(email)
            except Exception as exc:
                logger.info("Reset requested for unknown email %s: %s", email, exc)
                raise IdentityNotFoundError() from exc

        code = self._generate()
        expires_at = self._clock() + self._expiry_minutes * 60_000
        self._store.put(email, OTPRecord(code=code, expires_at=expires_at, action=action))
        logger.debug("OTP for %s: %s", email, code)

        try:
            await self._email.send_otp(email, code, action, self._expiry_minutes)
        except Exception as exc:
            # The record stays; the sweep removes it once it expires.
            logger.exception("Failed to send OTP to %s: %s", email, exc)
            raise NotificationFailedError() from exc

        logger.info("OTP issued for %s (action=%s)", email, action.value)

    # ── Verification ─────────────────────────────────────

    async def verify(
        self,
        email: str | None,
        otp: str | None,
        new_password: str | None = None,
    ) -> None:
        """Check *otp* for *email* and apply the stored action."""
        record = self._store.get(email) if email else None
        if record is None or record.code != otp:
            logger.info("Invalid OTP presented for %s", email)
            raise InvalidOTPError()

        if record.is_expired(self._clock()):
            self._store.delete(email)
            logger.info("OTP expired for %s", email)
            raise OTPExpiredError()

        if record.action is Action.RESET and not new_password:
            raise InvalidRequestError()

        try:
            identity = await self._identity.get_by_email(email)
            if record.action is Action.VERIFY:
                await self._identity.update_user(identity.uid, email_verified=True)
            else:
                await self._identity.update_user(identity.uid, password=new_password)
        except IdentityProviderError as exc:
            logger.error("Identity provider failed for %s: %s", email, exc)
            raise ProviderError(str(exc)) from exc
        except Exception as exc:
            logger.exception("Unexpected identity provider error for %s", email)
            raise ProviderError(str(exc)) from exc

        self._store.delete(email)
        logger.info("OTP verified for %s (action=%s)", email, record.action.value)
