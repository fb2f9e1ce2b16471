"""
Connection manager for WebSocket clients.

Tracks connected clients and their player IDs, and owns one outbound
queue plus one writer task per connection so that sending never blocks
the caller. A slow or dead client only ever backs up its own queue.
"""

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from typing import Any

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed

from server.config import settings
from shared.enums import ConnectionState
from shared.protocol import Message


logger = logging.getLogger(__name__)


@dataclass
class PlayerConnection:
    """Tracks a connected player's transport state."""
    player_id: str
    websocket: ServerConnection
    outbox: asyncio.Queue
    state: ConnectionState = ConnectionState.CONNECTING
    writer: asyncio.Task | None = None
    dropped_frames: int = 0

    @property
    def is_writable(self) -> bool:
        return self.state is not ConnectionState.CLOSED

    @property
    def is_active(self) -> bool:
        return self.state is ConnectionState.ACTIVE


class ConnectionManager:
    """
    Registry of live connections, keyed by player id.

    Provides methods for:
    - Registering and unregistering connections
    - Fire-and-forget sends to one player or to everyone
    - Waiting for queued frames to reach the transport
    """

    def __init__(self, queue_size: int | None = None):
        self._queue_size = queue_size or settings.SEND_QUEUE_SIZE

        # player_id -> PlayerConnection
        self._connections: dict[str, PlayerConnection] = {}

        self._lock = asyncio.Lock()

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    async def connect(self, websocket: ServerConnection, player_id: str) -> PlayerConnection:
        """
        Register a new connection in the CONNECTING state and start its writer.

        Raises:
            ValueError: if the player id is already registered
        """
        async with self._lock:
            if player_id in self._connections:
                raise ValueError(f"Player {player_id} is already connected")

            connection = PlayerConnection(
                player_id=player_id,
                websocket=websocket,
                outbox=asyncio.Queue(maxsize=self._queue_size),
            )
            connection.writer = asyncio.create_task(
                self._pump(connection), name=f"writer-{player_id}"
            )
            self._connections[player_id] = connection

        logger.info(f"Player {player_id} connected")
        return connection

    def activate(self, player_id: str) -> bool:
        """Move a CONNECTING connection to ACTIVE."""
        connection = self._connections.get(player_id)
        if not connection or connection.state is not ConnectionState.CONNECTING:
            return False
        connection.state = ConnectionState.ACTIVE
        return True

    async def disconnect(self, player_id: str) -> PlayerConnection | None:
        """
        Unregister a connection and cancel its pending sends.

        Returns:
            The PlayerConnection if found, None otherwise
        """
        async with self._lock:
            connection = self._connections.pop(player_id, None)
            if not connection:
                return None
            connection.state = ConnectionState.CLOSED

        if connection.writer:
            connection.writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await connection.writer

        # Release anyone waiting on flush()
        while not connection.outbox.empty():
            connection.outbox.get_nowait()
            connection.outbox.task_done()

        logger.info(f"Player {player_id} disconnected")
        return connection

    # =========================================================================
    # Queries
    # =========================================================================

    def get_connection(self, player_id: str) -> PlayerConnection | None:
        return self._connections.get(player_id)

    def is_player_connected(self, player_id: str) -> bool:
        connection = self._connections.get(player_id)
        return connection is not None and connection.is_writable

    def player_ids(self) -> list[str]:
        return list(self._connections)

    @property
    def count(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Messaging
    # =========================================================================

    def send_to_player(self, player_id: str, message: Message | dict | str) -> bool:
        """
        Queue a message for one player.

        Returns:
            True if queued, False if the player is not connected or its
            queue is full
        """
        connection = self._connections.get(player_id)
        if not connection:
            return False
        return self._enqueue(connection, self._encode(message))

    def broadcast_to_all(self, message: Message | dict | str) -> int:
        """
        Queue the same frame for every writable connection.

        The message is serialized once. Returns the number of connections
        it was queued on.
        """
        data = self._encode(message)
        sent_count = 0
        for connection in list(self._connections.values()):
            if self._enqueue(connection, data):
                sent_count += 1
        return sent_count

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to its websocket."""
        await asyncio.gather(
            *(connection.outbox.join() for connection in list(self._connections.values()))
        )

    @staticmethod
    def _encode(message: Message | dict | str) -> str:
        if isinstance(message, Message):
            return message.to_json()
        if isinstance(message, dict):
            return json.dumps(message, separators=(",", ":"))
        return message

    def _enqueue(self, connection: PlayerConnection, data: str) -> bool:
        if not connection.is_writable:
            return False
        try:
            connection.outbox.put_nowait(data)
        except asyncio.QueueFull:
            connection.dropped_frames += 1
            logger.debug(f"Send queue full for {connection.player_id}, frame dropped")
            return False
        return True

    async def _pump(self, connection: PlayerConnection) -> None:
        """Writer task: drain one connection's queue into its websocket."""
        while True:
            data = await connection.outbox.get()
            try:
                await connection.websocket.send(data)
            except ConnectionClosed:
                logger.debug(f"Dropping frame for closed connection {connection.player_id}")
            except Exception as e:
                logger.warning(f"Failed to send message to {connection.player_id}: {e}")
            finally:
                connection.outbox.task_done()

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        return {
            "total_connections": len(self._connections),
            "active_connections": sum(
                1 for c in self._connections.values() if c.is_active
            ),
            "queued_frames": sum(c.outbox.qsize() for c in self._connections.values()),
            "dropped_frames": sum(c.dropped_frames for c in self._connections.values()),
        }
