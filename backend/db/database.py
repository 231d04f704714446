from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from core.config import settings
from .base import Base
from .users import User
from .wine import Wine
from .bottle import Bottle
from .event import DinnerEvent, ConfirmedWine
from .movement import CellarMovement

engine = create_async_engine(settings.database_url, echo=settings.database_echo)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def create_db_and_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine():
    await engine.dispose()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


__all__ = [
    "Base",
    "User",
    "Wine",
    "Bottle",
    "DinnerEvent",
    "ConfirmedWine",
    "CellarMovement",
    "engine",
    "async_session_maker",
    "create_db_and_tables",
    "dispose_engine",
    "get_async_session",
]
