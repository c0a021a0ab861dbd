"""Seed script — populates the local identity database with sample users.

Only useful with ``IDENTITY_PROVIDER=local``.
"""

import asyncio

from otp_service.database.engine import async_session_factory, init_db
from otp_service.database.repository import UserRepository

SAMPLE_USERS = [
    ("alice@example.com", "alice-password"),
    ("bob@example.com", "bob-password"),
    ("carol@example.com", None),
]


async def seed() -> None:
    """Insert sample users into the database."""
    await init_db()
    async with async_session_factory() as session:
        repo = UserRepository(session)
        for email, password in SAMPLE_USERS:
            if await repo.find_by_email(email) is None:
                await repo.create(email, password)
        await session.commit()
    print(f"✅ Seeded {len(SAMPLE_USERS)} users into the database.")


if __name__ == "__main__":
    asyncio.run(seed())
