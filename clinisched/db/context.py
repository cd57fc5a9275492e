from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@asynccontextmanager
async def get_or_create_session(
    existing_session: AsyncSession | None = None,
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession, Any]:
    """
    Run a unit of work against the schedule store.

    A session opened here commits when the block succeeds and rolls back
    on any exception. A passed-in session is left to its owner.

    Args:
        existing_session: Session to reuse as is.
        factory: Session factory, the configured engine's one by default.

    Yields:
        The session.
    """

    if existing_session is not None:
        yield existing_session
        return

    if factory is None:
        from clinisched.db.engine import session_factory

        factory = session_factory

    async with factory() as session:
        await session.begin()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Schedule store transaction rolled back: {e}")
            raise
        except Exception:
            await session.rollback()
            raise
        else:
            await session.commit()
        finally:
            await session.close()
