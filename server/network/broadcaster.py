"""
Snapshot broadcaster.

Pushes the authoritative world state to every connection on a fixed
timer, and on demand when a discrete event (join, collect, chat,
disconnect) should reach clients without waiting for the next tick.
"""

import asyncio
import logging

from server.config import settings
from server.network.connection_manager import ConnectionManager
from server.world import WorldState
from shared.protocol import StateMessage


logger = logging.getLogger(__name__)


class SnapshotBroadcaster:
    """Periodic and event-triggered state fan-out."""

    def __init__(
        self,
        world: WorldState,
        connections: ConnectionManager,
        interval: float | None = None
    ):
        self._world = world
        self._connections = connections
        self.interval = interval if interval is not None else settings.BROADCAST_INTERVAL
        self.ticks = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the broadcast timer on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="snapshot-broadcaster")
        logger.info(f"Broadcasting state every {self.interval * 1000:.0f} ms")

    async def stop(self) -> None:
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def broadcast_now(self) -> int:
        """
        Snapshot the world and queue it on every connection.

        Runs without yielding to the event loop, so successive generations
        are queued in the same order on every connection.

        Returns:
            Number of connections the snapshot was queued on
        """
        snapshot = self._world.snapshot()
        message = StateMessage.create(players=snapshot.players, coins=snapshot.coins)
        self.ticks += 1
        return self._connections.broadcast_to_all(message)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            try:
                self.broadcast_now()
            except Exception as e:
                logger.exception(f"Broadcast tick failed: {e}")

            next_tick += self.interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Fell behind; skip missed ticks rather than bursting
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)
