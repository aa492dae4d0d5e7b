# backend/src/database.py
"""
Подключение к базе данных и фабрика сессий
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from shared.config import Config, config
from shared.models import Base


def create_engine(settings: Config = config, **kwargs) -> AsyncEngine:
    """Создать асинхронный движок по настройкам"""
    return create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Фабрика сессий; объекты не протухают после commit"""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def session_scope(factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """Сессия на один запрос; незавершённая транзакция откатывается"""
    async with factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


__all__ = [
    'Base',
    'create_engine',
    'create_session_factory',
    'create_tables',
    'session_scope',
]
