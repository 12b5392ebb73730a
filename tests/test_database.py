import asyncio

from sqlalchemy import text

from campus_stay.core.get_db import Database


async def test_concurrent_connect_builds_one_engine(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'single_flight.db'}")
    assert not database.is_connected

    factories = await asyncio.gather(*(database.connect() for _ in range(10)))

    assert all(factory is factories[0] for factory in factories)
    engine = database.engine
    assert await database.connect() is factories[0]
    assert database.engine is engine

    await database.dispose()
    assert not database.is_connected


async def test_reconnects_after_dispose(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'reconnect.db'}")
    first = await database.connect()
    await database.dispose()

    second = await database.connect()
    async with second() as session:
        assert (await session.execute(text("SELECT 1"))).scalar_one() == 1

    assert second is not first
    await database.dispose()
