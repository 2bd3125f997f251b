"""
TeraDeck rules engine: rooms, deck, card interactions, turn order and AI players.
"""

from .engine import process_action
from .models import Action, GameState
from .registry import RoomRegistry
from .rules import GameSettings, create_settings

__all__ = [
    "Action",
    "GameSettings",
    "GameState",
    "RoomRegistry",
    "create_settings",
    "process_action",
]
