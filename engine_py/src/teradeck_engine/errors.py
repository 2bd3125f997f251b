# engine_py/src/teradeck_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ValidationError(GameError):
    """An action was rejected; the state it targeted is unchanged."""


class LifecycleError(GameError):
    """A room lifecycle call (create/join/leave/start/rebind) failed."""


# Validation error codes
NOT_YOUR_TURN = "NOT_YOUR_TURN"
GAME_NOT_STARTED = "GAME_NOT_STARTED"
GAME_FINISHED = "GAME_FINISHED"
CARD_NOT_IN_HAND = "CARD_NOT_IN_HAND"
INVALID_DISCARD_COUNT = "INVALID_DISCARD_COUNT"
INVALID_DISCARD_SELECTION = "INVALID_DISCARD_SELECTION"
NOT_ENOUGH_TARGETS = "NOT_ENOUGH_TARGETS"
TOO_MANY_TARGETS = "TOO_MANY_TARGETS"
INVALID_TARGET = "INVALID_TARGET"
COLOR_MISMATCH = "COLOR_MISMATCH"
DUPLICATE_COLOR = "DUPLICATE_COLOR"
STABILIZED_TARGET = "STABILIZED_TARGET"
DUPLICATE_COLORS_AFTER_SWAP = "DUPLICATE_COLORS_AFTER_SWAP"
PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
INVALID_ACTION = "INVALID_ACTION"

# Lifecycle error codes
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
GAME_IN_PROGRESS = "GAME_IN_PROGRESS"
ROOM_FULL = "ROOM_FULL"
NOT_HOST = "NOT_HOST"
NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
PLAYER_NOT_IN_ROOM = "PLAYER_NOT_IN_ROOM"
IDENTITY_IN_USE = "IDENTITY_IN_USE"


# Helper functions to raise common errors
def raise_error(code: str, message: str):
    raise ValidationError(code, message)


def raise_lifecycle_error(code: str, message: str):
    raise LifecycleError(code, message)
