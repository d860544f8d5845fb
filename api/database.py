"""
Reading Store - Durable Persistence

This module persists readings in a single keyed table through
SQLAlchemy's asyncio extension (SQLite via aiosqlite by default,
any async SQLAlchemy URL otherwise).

Contract:
- open() is idempotent and reports success instead of raising;
  a failed open leaves the store unavailable and every operation
  raises PersistenceUnavailable
- put() inserts or overwrites by timestamp
- get_all() returns every stored reading; callers sort and trim

The acquisition engine treats every call as fire-and-forget or
cancellable and degrades to in-memory operation when the store
is unavailable.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import BigInteger, Column, Float, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import declarative_base

from core.config import get_settings
from core.exceptions import PersistenceUnavailable
from core.reading import Reading

logger = logging.getLogger(__name__)

# Base class for ORM models
Base = declarative_base()

STORE_NAME = "readings"


class ReadingRecord(Base):
    """Storage schema: one row per reading, keyed by timestamp."""
    __tablename__ = STORE_NAME

    timestamp = Column(BigInteger, primary_key=True, autoincrement=False)
    sensor_ppm = Column(Float, nullable=False, default=0.0)
    normalized_aqi = Column(Float, nullable=False, default=0.0)


# SQLAlchemy errors plus driver failures it passes through unwrapped (sqlite integer overflow)
STORE_ERRORS = (SQLAlchemyError, OverflowError, ValueError)

UPSERT_SQL = text(f"""
    INSERT INTO {STORE_NAME} (timestamp, sensor_ppm, normalized_aqi)
    VALUES (:timestamp, :sensor_ppm, :normalized_aqi)
    ON CONFLICT (timestamp) DO UPDATE SET
        sensor_ppm = excluded.sensor_ppm,
        normalized_aqi = excluded.normalized_aqi
""")


class PersistenceStore:
    """
    Process-wide reading store.

    Example:
        store = PersistenceStore("sqlite+aiosqlite:///./aqi.db")
        if await store.open():
            await store.put(reading)
            history = await store.get_all()
        await store.close()
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        """
        Args:
            database_url: Async SQLAlchemy URL (defaults to DATABASE_URL setting)
            echo: Log emitted SQL
        """
        self.database_url = database_url or get_settings().database_url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._opened: Optional[bool] = None
        self._open_lock = asyncio.Lock()

    @property
    def available(self) -> bool:
        """True once open() has succeeded and until close()."""
        return bool(self._opened) and self._engine is not None

    # =========================================
    # Lifecycle
    # =========================================

    async def open(self) -> bool:
        """
        Connect and create the readings table if absent.

        Idempotent: the outcome of the first attempt is returned on
        every later call.

        Returns:
            True if the store is usable
        """
        async with self._open_lock:
            if self._opened is not None:
                return self._opened

            engine = None
            try:
                engine = create_async_engine(self.database_url, echo=self.echo)
                async with engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
            except (SQLAlchemyError, OSError, ImportError, ValueError) as e:
                # ImportError: driver named in the URL is not installed
                logger.error(f"Reading store unavailable, running in-memory only: {e}")
                if engine is not None:
                    await engine.dispose()
                self._opened = False
                return False

            self._engine = engine
            self._opened = True
            logger.info(f"Reading store initialized ({STORE_NAME})")
            return True

    async def close(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        self._opened = None

    def _require_engine(self) -> AsyncEngine:
        if not self.available:
            raise PersistenceUnavailable("Reading store is not open")
        return self._engine

    # =========================================
    # Reading Operations
    # =========================================

    async def put(self, reading: Reading) -> None:
        """
        Insert or overwrite a reading by timestamp.

        Raises:
            PersistenceUnavailable: If the store is closed or the write fails
        """
        engine = self._require_engine()
        try:
            async with engine.begin() as conn:
                await conn.execute(UPSERT_SQL, reading.to_dict())
        except STORE_ERRORS as e:
            raise PersistenceUnavailable(f"Failed to store reading {reading.timestamp}: {e}") from e

    async def put_many(self, readings: Iterable[Reading]) -> int:
        """
        Insert or overwrite a batch of readings in one transaction.

        Returns:
            Number of readings written
        """
        rows = [r.to_dict() for r in readings]
        if not rows:
            return 0
        engine = self._require_engine()
        try:
            async with engine.begin() as conn:
                await conn.execute(UPSERT_SQL, rows)
        except STORE_ERRORS as e:
            raise PersistenceUnavailable(f"Failed to store {len(rows)} readings: {e}") from e
        return len(rows)

    async def get_all(self) -> List[Reading]:
        """
        Return every stored reading.

        Rows are read inside a single transaction so a write landing
        mid-read cannot produce a torn result.
        """
        engine = self._require_engine()
        try:
            async with engine.connect() as conn:
                result = await conn.execute(text(f"""
                    SELECT timestamp, sensor_ppm, normalized_aqi
                    FROM {STORE_NAME}
                """))
                rows = result.mappings().all()
        except STORE_ERRORS as e:
            raise PersistenceUnavailable(f"Failed to read readings: {e}") from e
        return [Reading.from_dict(row) for row in rows]

    async def get_recent(self, limit: int = 100) -> List[Reading]:
        """
        Return the most recent ``limit`` readings, oldest first.
        """
        engine = self._require_engine()
        try:
            async with engine.connect() as conn:
                result = await conn.execute(text(f"""
                    SELECT timestamp, sensor_ppm, normalized_aqi
                    FROM {STORE_NAME}
                    ORDER BY timestamp DESC
                    LIMIT :limit
                """), {"limit": limit})
                rows = result.mappings().all()
        except STORE_ERRORS as e:
            raise PersistenceUnavailable(f"Failed to read recent readings: {e}") from e
        return [Reading.from_dict(row) for row in reversed(rows)]

    async def count(self) -> int:
        """Number of stored readings."""
        engine = self._require_engine()
        try:
            async with engine.connect() as conn:
                result = await conn.execute(text(f"SELECT COUNT(*) FROM {STORE_NAME}"))
                return result.scalar() or 0
        except STORE_ERRORS as e:
            raise PersistenceUnavailable(f"Failed to count readings: {e}") from e

    # =========================================
    # Health
    # =========================================

    async def health(self) -> Dict[str, Any]:
        """
        Check store health.

        Returns:
            Dictionary with status information (never raises)
        """
        if not self.available:
            return {"status": "unavailable", "connected": False}
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "connected": True,
                "store": STORE_NAME,
                "reading_count": await self.count(),
            }
        except STORE_ERRORS + (PersistenceUnavailable,) as e:
            logger.error(f"Reading store health check failed: {e}")
            return {"status": "unhealthy", "connected": False, "error": str(e)}
