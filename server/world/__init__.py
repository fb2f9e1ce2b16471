"""
World state package.
"""
from .player import Player
from .coins import Coin, seed_coins
from .state import WorldBounds, WorldSnapshot, WorldState

__all__ = [
    "Player",
    "Coin",
    "seed_coins",
    "WorldBounds",
    "WorldSnapshot",
    "WorldState",
]
