"""
Collectible coins.
"""
from dataclasses import dataclass
import random

from shared.constants import (
    COIN_ID_PREFIX,
    COIN_MARGIN_X,
    COIN_MARGIN_Y,
    COIN_SPAN_INSET_X,
    COIN_SPAN_INSET_Y,
)


@dataclass
class Coin:
    """A coin floating somewhere in the sky. `taken` never goes back to False."""
    id: str
    x: int
    y: int
    taken: bool = False

    def to_dict(self) -> dict:
        return {"id": self.id, "x": self.x, "y": self.y, "taken": self.taken}


def seed_coins(
    count: int,
    width: int,
    height: int,
    rng: random.Random | None = None
) -> list[Coin]:
    """
    Scatter `count` coins over the playable area.

    Coins stay 80 units away from the left, right and top edges and above
    the ground band at the bottom of the world.
    """
    rng = rng or random.Random()
    span_x = max(1, width - COIN_SPAN_INSET_X)
    span_y = max(1, height - COIN_SPAN_INSET_Y)
    return [
        Coin(
            id=f"{COIN_ID_PREFIX}{i}",
            x=COIN_MARGIN_X + rng.randrange(span_x),
            y=COIN_MARGIN_Y + rng.randrange(span_y),
        )
        for i in range(count)
    ]
