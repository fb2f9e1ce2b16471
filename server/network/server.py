"""
WebSocket server for Coin Sky.

Main entry point that ties together the world state, connection
management, message handling and the snapshot broadcaster, and owns the
per-connection session lifecycle.
"""

import asyncio
import itertools
import logging
import signal
from typing import Any

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from server.config import settings
from server.network.broadcaster import SnapshotBroadcaster
from server.network.connection_manager import ConnectionManager, PlayerConnection
from server.network.message_handler import MessageHandler
from server.world import WorldBounds, WorldState
from shared.constants import PLAYER_ID_PREFIX
from shared.protocol import WelcomeMessage


logger = logging.getLogger(__name__)


def build_world() -> WorldState:
    """Create the world described by the configuration."""
    return WorldState(
        bounds=WorldBounds(
            width=settings.WORLD_WIDTH,
            height=settings.WORLD_HEIGHT,
            ground_offset=settings.GROUND_OFFSET,
        ),
        coin_count=settings.COIN_COUNT,
        seed=settings.COIN_SEED,
    )


class CoinSkyServer:
    """
    WebSocket host for one shared Coin Sky world.

    Every connection becomes one player for exactly as long as the
    connection lives. There is no reconnection: a dropped connection is a
    permanently removed player.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        world: WorldState | None = None,
        broadcast_interval: float | None = None
    ):
        self.host = host or settings.HOST
        self.port = port if port is not None else settings.PORT

        self._world = world or build_world()
        self._connections = ConnectionManager()
        self._handler = MessageHandler(self._world, self._connections)
        self._broadcaster = SnapshotBroadcaster(
            self._world, self._connections, broadcast_interval
        )

        # Player ids are never reused for the life of the process
        self._ids = itertools.count(1)

        # Server state
        self._server: Server | None = None
        self._running = False
        self._started = asyncio.Event()
        self._shutdown_event = asyncio.Event()
        self._shutdown_task: asyncio.Task | None = None

    @property
    def world(self) -> WorldState:
        return self._world

    @property
    def connections(self) -> ConnectionManager:
        return self._connections

    @property
    def broadcaster(self) -> SnapshotBroadcaster:
        return self._broadcaster

    async def start(self) -> None:
        """Start serving and block until stop() is called."""
        self._running = True
        self._shutdown_event.clear()

        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=30,
            ping_timeout=10,
        )
        # Resolve an ephemeral port (port=0) to the one actually bound
        self.port = self._server.sockets[0].getsockname()[1]

        self._broadcaster.start()
        logger.info(f"Coin Sky server started on ws://{self.host}:{self.port}")
        self._started.set()

        await self._shutdown_event.wait()

    async def wait_started(self) -> None:
        await self._started.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        logger.info("Shutting down server...")
        self._running = False

        await self._broadcaster.stop()

        if self._server:
            self._server.close()
            await self._server.wait_closed()

        self._started.clear()
        self._shutdown_event.set()
        logger.info("Server stopped")

    def request_shutdown(self) -> None:
        """Request server shutdown (can be called from signal handler)."""
        self._shutdown_task = asyncio.create_task(self.stop())

    # =========================================================================
    # Session Lifecycle
    # =========================================================================

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection from open to close.

        Messages from one connection are handled strictly in arrival order.
        """
        connection = None

        try:
            connection = await self._handle_connect(websocket)

            async for raw_message in websocket:
                if not self._running:
                    break
                await self._handle_message(connection, raw_message)

        except ConnectionClosed:
            logger.debug(f"Connection closed for player {connection and connection.player_id}")
        except Exception as e:
            logger.exception(f"Error handling client: {e}")
        finally:
            if connection:
                await self._handle_disconnect(connection)

    async def _handle_connect(self, websocket: ServerConnection) -> PlayerConnection:
        """Register the connection, create the player and send the welcome."""
        player_id = f"{PLAYER_ID_PREFIX}{next(self._ids)}"

        # Register before creating the player so a failure here never leaves
        # a player without a connection
        connection = await self._connections.connect(websocket, player_id)
        try:
            self._world.create_player(player_id)
        except Exception:
            await self._connections.disconnect(player_id)
            raise

        self._connections.send_to_player(
            player_id,
            WelcomeMessage.create(
                player_id=player_id,
                world=self._world.bounds.to_dict(),
                coins=self._world.coins(),
            ),
        )
        self._connections.activate(player_id)

        # Let everyone else learn about the newcomer
        self._broadcaster.broadcast_now()
        return connection

    async def _handle_message(self, connection: PlayerConnection, raw_message: str | bytes) -> None:
        """Dispatch one inbound frame and perform the sends it calls for."""
        if not connection.is_active:
            return

        try:
            result = await self._handler.handle_message(connection.player_id, raw_message)

            for target_id, message in result.relays:
                self._connections.send_to_player(target_id, message)

            for message in result.broadcasts:
                self._connections.broadcast_to_all(message)

            if result.broadcast_state:
                self._broadcaster.broadcast_now()

        except Exception as e:
            logger.exception(f"Error handling message from {connection.player_id}: {e}")

    async def _handle_disconnect(self, connection: PlayerConnection) -> None:
        """Remove the player and tell the remaining clients right away."""
        await self._connections.disconnect(connection.player_id)
        self._world.remove_player(connection.player_id)
        self._broadcaster.broadcast_now()

    def get_stats(self) -> dict[str, Any]:
        """Get server statistics."""
        return {
            "running": self._running,
            "players": self._world.player_count,
            "broadcast_ticks": self._broadcaster.ticks,
            "connections": self._connections.get_stats(),
        }


async def run_server(host: str | None = None, port: int | None = None) -> None:
    """
    Run the Coin Sky server.

    Sets up signal handlers for graceful shutdown.
    """
    server = CoinSkyServer(host, port)

    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, server.request_shutdown)

    try:
        await server.start()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main():
    """Entry point for running the server."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print(f"Starting Coin Sky server on ws://{settings.HOST}:{settings.PORT}")
    print("Press Ctrl+C to stop")

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    main()
