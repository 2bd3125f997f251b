"""
WebSocket server and event handling for the TeraDeck game.
"""

from .server import app

__all__ = ["app"]
