"""
Tests for the Reading Store

These tests run against a throwaway SQLite file per test.

Run with: pytest tests/test_database.py -v
"""

import pytest

from api.database import PersistenceStore
from core.exceptions import PersistenceUnavailable
from core.reading import Reading
from tests.doubles import make_readings


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'readings.db'}"


class TestOpen:
    """Tests for store initialization."""

    @pytest.mark.asyncio
    async def test_open_creates_table(self, database_url):
        store = PersistenceStore(database_url)

        assert await store.open() is True
        assert store.available
        assert await store.count() == 0
        await store.close()

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self, database_url):
        store = PersistenceStore(database_url)

        assert await store.open() is True
        assert await store.open() is True
        await store.close()

    @pytest.mark.asyncio
    async def test_open_failure_reported_not_raised(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'readings.db'}"
        store = PersistenceStore(url)

        assert await store.open() is False
        assert not store.available
        with pytest.raises(PersistenceUnavailable):
            await store.put(make_readings(1)[0])
        with pytest.raises(PersistenceUnavailable):
            await store.get_all()

    @pytest.mark.asyncio
    async def test_missing_driver_reported_not_raised(self, monkeypatch):
        def no_driver(*args, **kwargs):
            raise ModuleNotFoundError("No module named 'asyncpg'")

        monkeypatch.setattr("api.database.create_async_engine", no_driver)
        store = PersistenceStore("postgresql+asyncpg://u:p@localhost/db")

        assert await store.open() is False
        assert not store.available

    @pytest.mark.asyncio
    async def test_malformed_url_reported_not_raised(self):
        assert await PersistenceStore("not a database url").open() is False

    @pytest.mark.asyncio
    async def test_operations_after_close_raise(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()
        await store.close()

        with pytest.raises(PersistenceUnavailable):
            await store.count()

    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()
        await store.put_many(make_readings(3))
        await store.close()

        reopened = PersistenceStore(database_url)
        await reopened.open()

        assert await reopened.count() == 3
        await reopened.close()


class TestReadingOperations:
    """Tests for put/get semantics."""

    @pytest.mark.asyncio
    async def test_put_and_get_all(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()
        readings = make_readings(3)

        for reading in readings:
            await store.put(reading)
        stored = await store.get_all()

        assert sorted(stored, key=lambda r: r.timestamp) == readings
        await store.close()

    @pytest.mark.asyncio
    async def test_put_overwrites_same_timestamp(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()

        await store.put(Reading(timestamp=5, sensor_ppm=1.0, normalized_aqi=10.0))
        await store.put(Reading(timestamp=5, sensor_ppm=2.0, normalized_aqi=20.0))

        assert await store.get_all() == [Reading(timestamp=5, sensor_ppm=2.0, normalized_aqi=20.0)]
        await store.close()

    @pytest.mark.asyncio
    async def test_put_many(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()

        assert await store.put_many(make_readings(10)) == 10
        assert await store.put_many([]) == 0
        assert await store.count() == 10
        await store.close()

    @pytest.mark.asyncio
    async def test_get_recent_oldest_first(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()
        readings = make_readings(10)
        await store.put_many(reversed(readings))

        recent = await store.get_recent(limit=3)

        assert recent == readings[-3:]
        await store.close()

    @pytest.mark.asyncio
    async def test_unstorable_timestamp_wrapped(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()

        with pytest.raises(PersistenceUnavailable):
            await store.put(Reading(timestamp=10 ** 20, sensor_ppm=1.0, normalized_aqi=1.0))
        assert await store.count() == 0
        await store.close()

    @pytest.mark.asyncio
    async def test_large_timestamps(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()
        reading = Reading(timestamp=1_735_000_000_123, sensor_ppm=150.0, normalized_aqi=100.0)

        await store.put(reading)

        assert await store.get_all() == [reading]
        await store.close()


class TestHealth:
    """Tests for health reporting."""

    @pytest.mark.asyncio
    async def test_healthy(self, database_url):
        store = PersistenceStore(database_url)
        await store.open()
        await store.put_many(make_readings(2))

        health = await store.health()

        assert health["status"] == "healthy"
        assert health["connected"] is True
        assert health["reading_count"] == 2
        await store.close()

    @pytest.mark.asyncio
    async def test_unavailable(self, database_url):
        health = await PersistenceStore(database_url).health()

        assert health == {"status": "unavailable", "connected": False}
