"""
Network layer for the Coin Sky server.

Provides the WebSocket server, connection registry, message handling and
the snapshot broadcaster.
"""

from server.network.connection_manager import ConnectionManager, PlayerConnection
from server.network.message_handler import MessageHandler, HandleResult
from server.network.broadcaster import SnapshotBroadcaster
from server.network.server import CoinSkyServer, run_server


__all__ = [
    "ConnectionManager",
    "PlayerConnection",
    "MessageHandler",
    "HandleResult",
    "SnapshotBroadcaster",
    "CoinSkyServer",
    "run_server",
]
