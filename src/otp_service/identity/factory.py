"""Build the identity provider selected by configuration."""

from __future__ import annotations

import logging

from otp_service.config import Settings
from otp_service.identity.base import IdentityProvider

logger = logging.getLogger(__name__)


async def create_identity_provider(config: Settings) -> IdentityProvider:
    """Return the configured backend, initialising it as needed.

    Raises :class:`~otp_service.errors.ConfigurationError` when the backend's
    required settings are missing or malformed.
    """
    if config.identity_provider == "local":
        from otp_service.database.engine import async_session_factory, init_db
        from otp_service.identity.local import LocalIdentityProvider

        await init_db()
        logger.info("Database initialised")
        return LocalIdentityProvider(async_session_factory)

    from otp_service.identity.firebase import FirebaseIdentityProvider

    return FirebaseIdentityProvider.from_service_account(config.firebase_service_account)
