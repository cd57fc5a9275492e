from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from clinisched.db.meta import meta
from clinisched.settings import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Engine for a PostgreSQL or SQLite URL."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine(str(settings.db_url), echo=settings.DB_ECHO)

session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def create_tables() -> None:
    """Create the tables of every record that is not there yet."""
    from clinisched.db.models import load_all_models

    load_all_models()
    async with engine.begin() as conn:
        await conn.run_sync(meta.create_all)
    logger.info(f"Tables ready: {', '.join(sorted(meta.tables))}")


async def close_engine() -> None:
    await engine.dispose()
    logger.info("Database engine closed")
