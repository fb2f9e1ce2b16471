"""
Authoritative world state: players, coins and the world rectangle.

All mutations go through WorldState. Each player record has its own lock
and the coin list has one shared lock, so updates to different players
never serialize behind each other while snapshots still read whole records.
"""
from dataclasses import dataclass
import logging
import math
import random
import threading
from typing import Any

from shared import constants
from server.world.coins import Coin, seed_coins
from server.world.player import Player


logger = logging.getLogger(__name__)


def is_number(value: Any) -> bool:
    """True for finite ints and floats. Booleans are not numbers on the wire."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


@dataclass(frozen=True)
class WorldBounds:
    """Fixed world rectangle."""
    width: int = constants.WORLD_WIDTH
    height: int = constants.WORLD_HEIGHT
    ground_offset: int = constants.GROUND_OFFSET

    @property
    def ground_y(self) -> int:
        return self.height - self.ground_offset

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2

    def to_dict(self) -> dict:
        return {"w": self.width, "h": self.height, "groundY": self.ground_y}


@dataclass
class WorldSnapshot:
    """Read-consistent copy of the world, already in wire form."""
    players: list[dict]
    coins: list[dict]


class WorldState:
    """
    Canonical store of players and coins.

    Coins are seeded once at construction and never re-seeded.
    """

    def __init__(
        self,
        bounds: WorldBounds | None = None,
        coin_count: int = constants.COIN_COUNT,
        seed: int | None = None,
        coins: list[Coin] | None = None
    ):
        self.bounds = bounds or WorldBounds()

        self._players: dict[str, Player] = {}
        self._players_lock = threading.Lock()

        if coins is None:
            coins = seed_coins(
                coin_count,
                self.bounds.width,
                self.bounds.height,
                random.Random(seed),
            )
        self._coins: list[Coin] = coins
        self._coins_by_id: dict[str, Coin] = {coin.id: coin for coin in coins}
        self._coins_lock = threading.Lock()

        logger.info(
            f"World {self.bounds.width}x{self.bounds.height} seeded with {len(coins)} coins"
        )

    # =========================================================================
    # Players
    # =========================================================================

    def create_player(self, player_id: str) -> Player:
        """
        Create a player at the world centre with default name and radius.

        Raises:
            ValueError: if the id is already in use
        """
        x, y = self.bounds.center
        player = Player(id=player_id, x=x, y=y)
        with self._players_lock:
            if player_id in self._players:
                raise ValueError(f"Player {player_id} already exists")
            self._players[player_id] = player
        return player

    def remove_player(self, player_id: str) -> Player | None:
        """Remove a player. Returns the removed record, or None if unknown."""
        with self._players_lock:
            return self._players.pop(player_id, None)

    def get_player(self, player_id: str) -> Player | None:
        with self._players_lock:
            return self._players.get(player_id)

    def player_ids(self) -> list[str]:
        with self._players_lock:
            return list(self._players)

    @property
    def player_count(self) -> int:
        with self._players_lock:
            return len(self._players)

    def update_player(self, player_id: str, fields: dict[str, Any]) -> bool:
        """
        Apply the valid subset of `fields` to a player.

        Recognised keys are name, x, y and bubbleRadius. Values of the wrong
        type are ignored for that field and the previous value is kept.
        Positions are clamped to the world, the radius to its allowed range.

        Returns:
            False if the player does not exist, True otherwise
        """
        player = self.get_player(player_id)
        if player is None:
            return False

        name = fields.get("name")
        x = fields.get("x")
        y = fields.get("y")
        radius = fields.get("bubbleRadius")

        with player.lock:
            if isinstance(name, str):
                player.rename(name)
            player.move_to(
                x if is_number(x) else None,
                y if is_number(y) else None,
                self.bounds.width,
                self.bounds.height,
            )
            if is_number(radius):
                player.resize_bubble(radius)
        return True

    # =========================================================================
    # Coins
    # =========================================================================

    def try_collect(self, coin_id: Any, player_id: str) -> bool:
        """
        Collect a coin on behalf of a player.

        Uses the player's last validated server-side position, never a
        position supplied alongside the request. Succeeds only if the coin
        exists, is not yet taken and lies strictly within the collect radius.
        """
        if not isinstance(coin_id, str):
            return False

        player = self.get_player(player_id)
        if player is None:
            return False
        with player.lock:
            px, py = player.x, player.y

        with self._coins_lock:
            coin = self._coins_by_id.get(coin_id)
            if coin is None or coin.taken:
                return False
            dx = coin.x - px
            dy = coin.y - py
            if dx * dx + dy * dy >= constants.COLLECT_RADIUS_SQUARED:
                return False
            coin.taken = True

        logger.info(f"Player {player_id} collected coin {coin_id}")
        return True

    def coins(self) -> list[dict]:
        """Wire copies of every coin."""
        with self._coins_lock:
            return [coin.to_dict() for coin in self._coins]

    # =========================================================================
    # Snapshot
    # =========================================================================

    def snapshot(self) -> WorldSnapshot:
        """Copy every player (each under its own lock) and every coin."""
        with self._players_lock:
            players = list(self._players.values())

        player_views = []
        for player in players:
            with player.lock:
                player_views.append(player.to_dict())

        return WorldSnapshot(players=player_views, coins=self.coins())
