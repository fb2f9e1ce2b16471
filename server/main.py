"""
Main entry point for the Coin Sky server.

Usage:
    python -m server.main

Or:
    coin-sky-server
"""

from server.network.server import main


if __name__ == "__main__":
    main()
