"""User repository — data access layer for the local identity provider."""

import bcrypt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from otp_service.models.user import User


def hash_password(password: str) -> str:
    """bcrypt-hash *password*; input beyond bcrypt's 72-byte limit is cut off."""
    pwd_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pwd_bytes, bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))


class UserRepository:
    """Encapsulates all database queries related to users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> User | None:
        """Look up an active user by email address."""
        stmt = select(User).where(User.email == email, User.is_active.is_(True))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_uid(self, uid: str) -> User | None:
        stmt = select(User).where(User.uid == uid, User.is_active.is_(True))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, email: str, password: str | None = None) -> User:
        """Add a new user to the session and flush it so ``uid`` is populated."""
        user = User(
            email=email,
            password_hash=hash_password(password) if password else None,
        )
        self._session.add(user)
        await self._session.flush()
        return user
