"""
Data Engine - Acquisition Facade

Composes the mode state machine, the synthetic generator, the live
feed, the replay buffer and the reading store behind one call:

    reading = engine.get_packet()

get_packet() is synchronous and never waits on I/O, so it can run
in a tight per-frame loop:

- LIVE: the live cell, or a synthetic reading if nothing has arrived
- REPLAY: the next buffered reading, or a synthetic reading while
  the buffer is empty or still loading
- SIMULATION: a fresh synthetic reading

Outside replay, each returned reading is written to the store as a
fire-and-forget background task. Store failures are logged and
counted; they never reach the caller.
"""

import asyncio
import logging
from typing import Any, Coroutine, Dict, List, Optional, Protocol, Set, Union

from core.exceptions import PersistenceUnavailable
from core.reading import Reading

from .generator import SyntheticGenerator
from .modes import AcquisitionMode, ModeController, SideEffect
from .replay import ReplayBuffer
from .stream import StreamIngest

logger = logging.getLogger(__name__)


class ReadingStore(Protocol):
    """What the engine needs from persistence."""

    async def open(self) -> bool:
        ...

    async def put(self, reading: Reading) -> None:
        ...

    async def get_all(self) -> List[Reading]:
        ...

    async def close(self) -> None:
        ...


class DataEngine:
    """
    Single entry point for reading acquisition.

    Example:
        engine = DataEngine(store=PersistenceStore())
        await engine.start()
        engine.set_mode("replay")
        reading = engine.get_packet()
        await engine.close()
    """

    def __init__(
        self,
        store: Optional[ReadingStore] = None,
        generator: Optional[SyntheticGenerator] = None,
        stream: Optional[StreamIngest] = None,
        replay: Optional[ReplayBuffer] = None,
        initial_mode: AcquisitionMode = AcquisitionMode.SIMULATION,
    ):
        """
        Args:
            store: Reading store (None runs in-memory only)
            generator: Synthetic source (default generator if None)
            stream: Live feed ingest (unconnected ingest if None)
            replay: Replay buffer (empty buffer if None)
            initial_mode: Mode before any set_mode() call
        """
        self.store = store
        self.generator = generator or SyntheticGenerator()
        self.stream = stream or StreamIngest()
        self.replay = replay or ReplayBuffer()
        self.modes = ModeController(initial_mode)
        self._store_ready = False
        self._tasks: Set[asyncio.Task] = set()

        self.packets_served = 0
        self.writes_failed = 0
        self.reloads_discarded = 0

    @property
    def mode(self) -> AcquisitionMode:
        return self.modes.mode

    @property
    def store_ready(self) -> bool:
        return self._store_ready

    # =========================================
    # Lifecycle
    # =========================================

    async def start(self) -> bool:
        """
        Open the store and enter the initial mode.

        Returns:
            True if persistence is available
        """
        if self.store is not None:
            self._store_ready = await self.store.open()
        if not self._store_ready:
            logger.warning("Persistence unavailable: writes disabled, replay will use synthetic data")
        if self.mode is AcquisitionMode.REPLAY:
            # the buffer can only be filled once the store is open
            self.set_mode(AcquisitionMode.REPLAY)
        return self._store_ready

    async def drain(self) -> None:
        """Wait for all pending writes and reloads."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.stream.disconnect()
        if self.store is not None:
            await self.store.close()
        self._store_ready = False

    # =========================================
    # Mode Control
    # =========================================

    def set_mode(self, mode: Union[AcquisitionMode, str]) -> None:
        """
        Switch acquisition mode.

        Entering REPLAY clears the buffer and starts a background
        reload from the store; packets fall back to synthetic data
        until the reload lands.

        Raises:
            ValueError: If ``mode`` is not a known mode name
        """
        target = AcquisitionMode.parse(mode)
        result = self.modes.set_mode(target)
        for effect in result.effects:
            if effect is SideEffect.CLEAR_REPLAY:
                self.replay.clear()
            elif effect is SideEffect.RELOAD_REPLAY:
                self._spawn(self._reload_replay(result.state.generation))

    async def _reload_replay(self, generation: int) -> None:
        if self.store is None or not self._store_ready:
            logger.info("Replay requested without persistence; using synthetic data")
            return
        try:
            readings = await self.store.get_all()
        except PersistenceUnavailable as e:
            logger.error(f"Replay reload failed: {e}")
            return

        if not self.modes.is_current_replay(generation):
            self.reloads_discarded += 1
            logger.info(f"Discarding stale replay reload (generation {generation})")
            return
        self.replay.load(readings)

    # =========================================
    # Packet Production
    # =========================================

    def get_packet(self) -> Reading:
        """
        Produce the reading for this tick.

        Never blocks and never raises.
        """
        mode = self.mode
        packet: Optional[Reading] = None

        if mode is AcquisitionMode.LIVE:
            packet = self.stream.latest
        elif mode is AcquisitionMode.REPLAY:
            packet = self.replay.next()

        if packet is None:
            packet = self.generator.generate_reading()

        if mode is not AcquisitionMode.REPLAY:
            self._spawn(self._persist(packet))

        self.packets_served += 1
        return packet

    async def _persist(self, reading: Reading) -> None:
        if self.store is None or not self._store_ready:
            return
        try:
            await self.store.put(reading)
        except PersistenceUnavailable as e:
            self.writes_failed += 1
            logger.warning(f"Reading not persisted: {e}")

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> Optional[asyncio.Task]:
        """Schedule background work on the running loop, if any."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("No running event loop; skipping background task")
            return None
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # =========================================
    # Status
    # =========================================

    def status(self) -> Dict[str, Any]:
        """Snapshot of engine state for health reporting."""
        return {
            "mode": self.mode.value,
            "generation": self.modes.generation,
            "store_available": self._store_ready,
            "replay_size": len(self.replay),
            "replay_cursor": self.replay.cursor,
            "live_connected": self.stream.connected,
            "live_reading_available": self.stream.latest is not None,
            "packets_served": self.packets_served,
            "writes_failed": self.writes_failed,
            "reloads_discarded": self.reloads_discarded,
            "pending_tasks": len(self._tasks),
        }
