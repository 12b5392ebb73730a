import asyncio
import logging

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from tenacity import retry, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Owns the engine and session factory for one application instance.

    ``connect`` is safe to await from many requests at once: the first
    caller builds and pings the engine while the rest wait on the lock and
    then reuse the result.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self.session_factory is not None

    async def connect(self) -> async_sessionmaker[AsyncSession]:
        if self.session_factory is not None:
            return self.session_factory

        async with self._lock:
            if self.session_factory is None:
                engine = create_async_engine(
                    self.url,
                    echo=self.echo,
                    pool_pre_ping=True,
                )
                await self._ping(engine)
                self.engine = engine
                self.session_factory = async_sessionmaker(
                    bind=engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
                logger.info("Database engine initialised.")

        return self.session_factory

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        reraise=True,
    )
    async def _ping(self, engine: AsyncEngine):
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self):
        await self.connect()
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        async with self._lock:
            if self.engine is not None:
                await self.engine.dispose()
            self.engine = None
            self.session_factory = None


async def get_db_async(request: Request):
    database: Database = request.app.state.database
    session_factory = await database.connect()
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()
