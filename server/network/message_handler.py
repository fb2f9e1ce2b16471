"""
Message handler for routing client messages to world mutations.

Parses incoming frames, validates them and applies them to the world.
Nothing a client sends ever produces an error reply: malformed input,
unknown kinds and references to missing coins or players are no-ops.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from server.network.connection_manager import ConnectionManager
from server.world import WorldState
from shared.constants import MAX_CHAT_LENGTH
from shared.enums import MessageType
from shared.protocol import (
    Message,
    ChatMessage,
    SignalMessage,
    parse_message,
)


logger = logging.getLogger(__name__)


@dataclass
class HandleResult:
    """Result of handling a message."""
    # Whether to push a state snapshot to everyone right away
    broadcast_state: bool = False
    # Event messages to send to every connected player
    broadcasts: list[Message] = field(default_factory=list)
    # (target player id, message) pairs to deliver to single players
    relays: list[tuple[str, Message]] = field(default_factory=list)


class MessageHandler:
    """
    Routes incoming messages to the world state.

    Each handler method returns a HandleResult; the server performs the
    sends it describes.
    """

    def __init__(self, world: WorldState, connection_manager: ConnectionManager):
        self._world = world
        self._connections = connection_manager

    async def handle_message(
        self,
        player_id: str,
        message: Message | str | bytes | dict
    ) -> HandleResult:
        """
        Handle an incoming message from a player.

        Args:
            player_id: ID of the player whose connection sent the message
            message: The message (Message object, raw frame, or dict)

        Returns:
            HandleResult describing what to send; empty for dropped messages
        """
        if isinstance(message, (str, bytes)):
            try:
                message = parse_message(message)
            except Exception as e:
                logger.debug(f"Dropping unparseable message from {player_id}: {e}")
                return HandleResult()
        elif isinstance(message, dict):
            try:
                message = Message.from_dict(message)
            except Exception as e:
                logger.debug(f"Dropping invalid message from {player_id}: {e}")
                return HandleResult()

        handler = self._get_handler(message.type)
        if not handler:
            return HandleResult()

        try:
            return await handler(player_id, message)
        except Exception as e:
            logger.exception(f"Error handling {message.type.value} from {player_id}: {e}")
            return HandleResult()

    def _get_handler(self, message_type: MessageType):
        """Get the handler method for a client message type."""
        handlers = {
            MessageType.JOIN: self._handle_join,
            MessageType.UPDATE: self._handle_update,
            MessageType.COLLECT: self._handle_collect,
            MessageType.SIGNAL: self._handle_signal,
            MessageType.CHAT: self._handle_chat,
        }
        return handlers.get(message_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _handle_join(self, player_id: str, message: Message) -> HandleResult:
        """Set display name and starting position, then announce immediately."""
        self._world.update_player(player_id, {
            "name": message.get("name"),
            "x": message.get("x"),
            "y": message.get("y"),
        })
        return HandleResult(broadcast_state=True)

    async def _handle_update(self, player_id: str, message: Message) -> HandleResult:
        """Movement reaches other clients on the next periodic tick."""
        self._world.update_player(player_id, {
            "x": message.get("x"),
            "y": message.get("y"),
            "bubbleRadius": message.get("bubbleRadius"),
        })
        return HandleResult()

    async def _handle_collect(self, player_id: str, message: Message) -> HandleResult:
        collected = self._world.try_collect(message.get("coinId"), player_id)
        return HandleResult(broadcast_state=collected)

    async def _handle_signal(self, player_id: str, message: Message) -> HandleResult:
        """Forward an opaque signaling payload to one live player."""
        target_id = message.get("to")
        if not isinstance(target_id, str) or not self._connections.is_player_connected(target_id):
            logger.debug(f"Signal from {player_id} to unknown player {target_id!r} dropped")
            return HandleResult()

        return HandleResult(
            relays=[(target_id, SignalMessage.create(player_id, message.get("data")))]
        )

    async def _handle_chat(self, player_id: str, message: Message) -> HandleResult:
        text = _chat_text(message.get("text"))
        result = HandleResult(broadcast_state=True)
        if text:
            player = self._world.get_player(player_id)
            if player:
                with player.lock:
                    name = player.name
                result.broadcasts.append(ChatMessage.create(player_id, name, text))
        return result


def _chat_text(value: Any) -> str:
    if isinstance(value, str):
        return value[:MAX_CHAT_LENGTH]
    return ""
