"""
World and protocol constants for Coin Sky.
Distances are in world units, durations in seconds.
"""

# World
WORLD_WIDTH = 1600
WORLD_HEIGHT = 900
GROUND_OFFSET = 120  # groundY = height - offset

# Players
DEFAULT_BUBBLE_RADIUS = 120
MIN_BUBBLE_RADIUS = 30
MAX_BUBBLE_RADIUS = 400
MAX_NAME_LENGTH = 32
DEFAULT_NAME_PREFIX = "Pilot"
PLAYER_ID_PREFIX = "p"

# Coins
COIN_COUNT = 20
COIN_ID_PREFIX = "c"
COIN_MARGIN_X = 80
COIN_MARGIN_Y = 80
COIN_SPAN_INSET_X = 160
COIN_SPAN_INSET_Y = 240
COLLECT_RADIUS = 20
COLLECT_RADIUS_SQUARED = COLLECT_RADIUS * COLLECT_RADIUS

# Chat
MAX_CHAT_LENGTH = 500

# Broadcasting
BROADCAST_INTERVAL = 0.05  # 20 Hz
SEND_QUEUE_SIZE = 64
