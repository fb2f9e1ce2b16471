"""
Server configuration loaded from environment variables.
"""
import os
from dotenv import load_dotenv

from shared import constants

load_dotenv()


def _optional_int(name: str) -> int | None:
    value = os.getenv(name)
    return int(value) if value not in (None, "") else None


class Config:
    """Server configuration."""

    # Server settings
    HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("SERVER_PORT", os.getenv("PORT", "3000")))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # World
    WORLD_WIDTH: int = int(os.getenv("WORLD_WIDTH", str(constants.WORLD_WIDTH)))
    WORLD_HEIGHT: int = int(os.getenv("WORLD_HEIGHT", str(constants.WORLD_HEIGHT)))
    GROUND_OFFSET: int = int(os.getenv("GROUND_OFFSET", str(constants.GROUND_OFFSET)))
    COIN_COUNT: int = int(os.getenv("COIN_COUNT", str(constants.COIN_COUNT)))
    COIN_SEED: int | None = _optional_int("COIN_SEED")

    # Broadcasting
    BROADCAST_INTERVAL: float = float(
        os.getenv("BROADCAST_INTERVAL", str(constants.BROADCAST_INTERVAL))
    )
    SEND_QUEUE_SIZE: int = int(os.getenv("SEND_QUEUE_SIZE", str(constants.SEND_QUEUE_SIZE)))


config = Config()
settings = config  # Alias used across the server package
