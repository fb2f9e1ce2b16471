"""
Player state.
"""
from dataclasses import dataclass, field
import threading

from shared.constants import (
    DEFAULT_BUBBLE_RADIUS,
    DEFAULT_NAME_PREFIX,
    MAX_BUBBLE_RADIUS,
    MAX_NAME_LENGTH,
    MIN_BUBBLE_RADIUS,
)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


@dataclass
class Player:
    """
    A pilot in the shared world.

    Every read or write of the mutable fields must hold `lock`, so that a
    snapshot never mixes fields from before and after an update.
    """

    id: str
    x: float
    y: float
    name: str = ""
    bubble_radius: float = DEFAULT_BUBBLE_RADIUS
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __post_init__(self):
        if not self.name:
            self.name = f"{DEFAULT_NAME_PREFIX}{self.id}"

    def rename(self, name: str) -> None:
        """Set display name, truncated to the maximum length."""
        self.name = name[:MAX_NAME_LENGTH]

    def move_to(self, x: float | None, y: float | None, width: float, height: float) -> None:
        """
        Move to a position clamped into the world rectangle.

        Either coordinate may be None to leave it unchanged.
        """
        if x is not None:
            self.x = clamp(x, 0, width)
        if y is not None:
            self.y = clamp(y, 0, height)

    def resize_bubble(self, radius: float) -> None:
        """Set the interaction radius, clamped to its allowed range."""
        self.bubble_radius = clamp(radius, MIN_BUBBLE_RADIUS, MAX_BUBBLE_RADIUS)

    def to_dict(self) -> dict:
        """Minimal wire representation used in state broadcasts."""
        return {
            "id": self.id,
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "bubbleRadius": self.bubble_radius,
        }
