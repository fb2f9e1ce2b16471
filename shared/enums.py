"""
Enumerations shared by the server and its clients.
"""
from enum import Enum


class MessageType(str, Enum):
    """Types of messages between client and server."""
    # Client -> Server
    JOIN = "join"
    UPDATE = "update"
    COLLECT = "collect"

    # Both directions
    SIGNAL = "signal"
    CHAT = "chat"

    # Server -> Client
    WELCOME = "welcome"
    STATE = "state"


class ConnectionState(str, Enum):
    """Lifecycle of a client connection. CLOSED is absorbing."""
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
