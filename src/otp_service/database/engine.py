"""Database engine and async session factory."""

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from otp_service.config import settings
from otp_service.models.user import Base

engine = create_async_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    """Create all tables that don't yet exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
