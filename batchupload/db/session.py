from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker

from batchupload.config import config
from batchupload.db.base import Base

DATABASE_URL = config.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")


def make_engine(url: str, **kwargs: Any) -> AsyncEngine:
    # asyncpg and aiosqlite name their timeouts differently
    if url.startswith("postgresql+asyncpg://"):
        connect_args = {"timeout": config.STORE_TIMEOUT_SECONDS, "command_timeout": config.STORE_TIMEOUT_SECONDS}
    elif url.startswith("sqlite"):
        connect_args = {"timeout": config.STORE_TIMEOUT_SECONDS}
    else:
        connect_args = {}

    return create_async_engine(url, future=True, connect_args=connect_args, **kwargs)


engine = make_engine(DATABASE_URL, pool_pre_ping=True, pool_timeout=config.STORE_TIMEOUT_SECONDS)
SessionLocal = async_sessionmaker(
    bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=AsyncSession
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session


async def create_tables(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
