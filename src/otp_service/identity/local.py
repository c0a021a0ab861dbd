"""Database-backed identity provider for local development and tests."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from otp_service.database.repository import UserRepository, hash_password
from otp_service.identity.base import (
    Identity,
    IdentityProvider,
    IdentityProviderError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class LocalIdentityProvider(IdentityProvider):
    """Reads and writes users in the service's own SQL database."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @property
    def name(self) -> str:
        return "local"

    async def get_by_email(self, email: str) -> Identity:
        try:
            async with self._session_factory() as session:
                user = await UserRepository(session).find_by_email(email)
        except SQLAlchemyError as exc:
            raise IdentityProviderError(str(exc)) from exc

        if user is None:
            raise UserNotFoundError(
                "There is no user record corresponding to the provided identifier."
            )
        return Identity(uid=user.uid, email=user.email, email_verified=user.email_verified)

    async def update_user(
        self,
        uid: str,
        *,
        email_verified: bool | None = None,
        password: str | None = None,
    ) -> None:
        try:
            async with self._session_factory() as session:
                user = await UserRepository(session).find_by_uid(uid)
                if user is None:
                    raise UserNotFoundError(f"No user record found for uid {uid}")
                if email_verified is not None:
                    user.email_verified = email_verified
                if password is not None:
                    user.password_hash = hash_password(password)
                await session.commit()
        except SQLAlchemyError as exc:
            raise IdentityProviderError(str(exc)) from exc
        logger.info("Local user %s updated", uid)
