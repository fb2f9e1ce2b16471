"""
Message protocol for client-server communication.

All messages are flat JSON objects with a "type" field; every other key
is a message field. One WebSocket frame carries one message.
"""

from dataclasses import dataclass, field
from typing import Any
import json
import time

from shared.enums import MessageType


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Message:
    """Base message structure for all client-server communication."""
    type: MessageType
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Shortcut for reading a message field."""
        return self.data.get(key, default)

    def to_dict(self) -> dict:
        """Convert to the flat wire dictionary."""
        return {"type": self.type.value, **self.data}

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json(cls, json_str: str | bytes) -> "Message":
        """Deserialize message from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def from_dict(cls, raw: dict) -> "Message":
        """
        Create message from a wire dictionary.

        Raises:
            ValueError: payload is not an object or its type is unknown
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Expected a JSON object, got {type(raw).__name__}")
        kind = raw.get("type")
        if not kind:
            raise ValueError("Message has no type")
        return cls(
            type=MessageType(kind),
            data={k: v for k, v in raw.items() if k != "type"},
        )


# =============================================================================
# Client -> Server
# =============================================================================

def _present(**fields: Any) -> dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


@dataclass
class JoinRequest(Message):
    """Announce a display name and optionally a starting position."""
    type: MessageType = MessageType.JOIN

    @classmethod
    def create(
        cls,
        name: str | None = None,
        x: float | None = None,
        y: float | None = None
    ) -> "JoinRequest":
        return cls(data=_present(name=name, x=x, y=y))


@dataclass
class UpdateRequest(Message):
    """Report the player's position and bubble radius."""
    type: MessageType = MessageType.UPDATE

    @classmethod
    def create(
        cls,
        x: float | None = None,
        y: float | None = None,
        bubble_radius: float | None = None
    ) -> "UpdateRequest":
        return cls(data=_present(x=x, y=y, bubbleRadius=bubble_radius))


@dataclass
class CollectRequest(Message):
    """Attempt to pick up a coin."""
    type: MessageType = MessageType.COLLECT

    @classmethod
    def create(cls, coin_id: str) -> "CollectRequest":
        return cls(data={"coinId": coin_id})


@dataclass
class SignalRequest(Message):
    """Opaque peer-signaling payload addressed to another player."""
    type: MessageType = MessageType.SIGNAL

    @classmethod
    def create(cls, to: str, data: Any) -> "SignalRequest":
        return cls(data={"to": to, "data": data})


@dataclass
class ChatRequest(Message):
    """Send a line of chat."""
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(cls, text: str) -> "ChatRequest":
        return cls(data={"text": text})


# =============================================================================
# Server -> Client
# =============================================================================

@dataclass
class WelcomeMessage(Message):
    """Sent once per connection, right after it is accepted."""
    type: MessageType = MessageType.WELCOME

    @classmethod
    def create(cls, player_id: str, world: dict, coins: list[dict]) -> "WelcomeMessage":
        return cls(data={"id": player_id, "world": world, "coins": coins})


@dataclass
class StateMessage(Message):
    """Authoritative world snapshot, sent periodically and on discrete events."""
    type: MessageType = MessageType.STATE

    @classmethod
    def create(
        cls,
        players: list[dict],
        coins: list[dict],
        timestamp: int | None = None
    ) -> "StateMessage":
        return cls(data={
            "t": timestamp if timestamp is not None else now_ms(),
            "players": players,
            "coins": coins,
        })


@dataclass
class SignalMessage(Message):
    """Relayed signaling payload; `data` is passed through untouched."""
    type: MessageType = MessageType.SIGNAL

    @classmethod
    def create(cls, from_id: str, data: Any) -> "SignalMessage":
        return cls(data={"from": from_id, "data": data})


@dataclass
class ChatMessage(Message):
    """Chat line fanned out to every connected client."""
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(cls, from_id: str, name: str, text: str) -> "ChatMessage":
        return cls(data={"from": from_id, "name": name, "text": text, "t": now_ms()})


def parse_message(payload: str | bytes) -> Message:
    """
    Parse a raw frame into a Message.

    Raises ValueError (json.JSONDecodeError included) for anything that is
    not a JSON object with a known type, and RecursionError for frames
    nested too deeply to decode.
    """
    return Message.from_json(payload)
