"""Firebase Authentication identity provider."""

from __future__ import annotations

import asyncio
import json
import logging

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from otp_service.errors import ConfigurationError
from otp_service.identity.base import (
    Identity,
    IdentityProvider,
    IdentityProviderError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


def parse_service_account(raw: str) -> dict:
    """Decode the ``FIREBASE_SERVICE_ACCOUNT`` JSON blob."""
    if not raw:
        raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT is not set")
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"FIREBASE_SERVICE_ACCOUNT is not valid JSON: {exc}") from exc
    if not isinstance(info, dict) or "project_id" not in info:
        raise ConfigurationError("FIREBASE_SERVICE_ACCOUNT has no project_id")
    return info


class FirebaseIdentityProvider(IdentityProvider):
    """Looks up and updates users through the Firebase Admin SDK.

    The SDK is synchronous, so every call runs in a worker thread to keep the
    event loop free.
    """

    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    @classmethod
    def from_service_account(cls, raw: str) -> FirebaseIdentityProvider:
        info = parse_service_account(raw)
        try:
            cred = credentials.Certificate(info)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid Firebase credentials: {exc}") from exc
        app = firebase_admin.initialize_app(
            cred,
            {"databaseURL": f"https://{info['project_id']}.firebaseio.com"},
            name=f"otp-service-{info['project_id']}",
        )
        logger.info("Firebase app initialised for project %s", info["project_id"])
        return cls(app)

    @property
    def name(self) -> str:
        return "firebase"

    async def get_by_email(self, email: str) -> Identity:
        try:
            user = await asyncio.to_thread(auth.get_user_by_email, email, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFoundError(str(exc)) from exc
        except (FirebaseError, ValueError) as exc:
            raise IdentityProviderError(str(exc)) from exc
        return Identity(uid=user.uid, email=user.email, email_verified=user.email_verified)

    async def update_user(
        self,
        uid: str,
        *,
        email_verified: bool | None = None,
        password: str | None = None,
    ) -> None:
        changes: dict = {}
        if email_verified is not None:
            changes["email_verified"] = email_verified
        if password is not None:
            changes["password"] = password
        try:
            await asyncio.to_thread(auth.update_user, uid, app=self._app, **changes)
        except auth.UserNotFoundError as exc:
            raise UserNotFoundError(str(exc)) from exc
        except (FirebaseError, ValueError) as exc:
            raise IdentityProviderError(str(exc)) from exc
        logger.info("Firebase user %s updated (%s)", uid, ", ".join(changes))
