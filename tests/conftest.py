"""Shared fakes and fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from otp_service.identity.base import Identity, IdentityProvider, UserNotFoundError
from otp_service.services.email_service import EmailService
from otp_service.services.otp_service import OTPService
from otp_service.services.otp_store import OTPStore

KNOWN_EMAIL = "alice@example.com"


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeIdentityProvider(IdentityProvider):
    """In-memory identity provider that records every update."""

    def __init__(self, emails: list[str] | None = None) -> None:
        self.users = {
            email: Identity(uid=f"uid-{i}", email=email)
            for i, email in enumerate(emails or [])
        }
        self.updates: list[tuple[str, dict]] = []
        self.update_error: Exception | None = None

    @property
    def name(self) -> str:
        return "fake"

    async def get_by_email(self, email: str) -> Identity:
        if email not in self.users:
            raise UserNotFoundError(
                "There is no user record corresponding to the provided identifier."
            )
        return self.users[email]

    async def update_user(self, uid, *, email_verified=None, password=None) -> None:
        if self.update_error is not None:
            raise self.update_error
        changes = {}
        if email_verified is not None:
            changes["email_verified"] = email_verified
        if password is not None:
            changes["password"] = password
        self.updates.append((uid, changes))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider([KNOWN_EMAIL])


@pytest.fixture
def email_service():
    """Mocked email service — never actually sends emails."""
    svc = EmailService()
    svc.send_otp = AsyncMock()
    svc.verify_connection = AsyncMock(return_value=True)
    return svc


@pytest.fixture
def store():
    return OTPStore()


@pytest.fixture
def otp_service(store, identity_provider, email_service, clock):
    return OTPService(
        store=store,
        identity_provider=identity_provider,
        email_service=email_service,
        expiry_minutes=5,
        clock=clock,
    )


def sent_code(email_service) -> str:
    """The code passed to the most recent ``send_otp`` call."""
    return email_service.send_otp.call_args.args[1]


