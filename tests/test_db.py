"""Database manager lifecycle against a temporary SQLite file."""

import pytest

from brainwash.database.connection import DatabaseManager


@pytest.mark.asyncio
async def test_health_check(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'health.db'}")
    assert not await manager.health_check()

    await manager.initialize()
    assert await manager.health_check()

    await manager.close()
    assert not await manager.health_check()


@pytest.mark.asyncio
async def test_session_requires_initialize(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'health.db'}")
    with pytest.raises(RuntimeError):
        async with manager.get_session():
            pass
