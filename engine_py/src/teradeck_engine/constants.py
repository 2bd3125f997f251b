"""Game constants and enums"""

import string
from enum import Enum


class CardType(str, Enum):
    MODULE = "module"
    BUG = "bug"
    PATCH = "patch"
    OPERATION = "operation"


class Color(str, Enum):
    BACKEND = "backend"
    FRONTEND = "frontend"
    MOBILE = "mobile"
    DATA_SCIENCE = "data_science"
    MULTICOLOR = "multicolor"  # wildcard, matches every color


class ModuleState(str, Enum):
    FREE = "free"
    PATCHED = "patched"
    BUGGED = "bugged"
    STABILIZED = "stabilized"


class OperationEffect(str, Enum):
    ARCHITECT_CHANGE = "architect_change"
    RECRUIT_ACE = "recruit_ace"
    INTERNAL_PHISHING = "internal_phishing"
    END_YEAR_PARTY = "end_year_party"
    PROJECT_SWAP = "project_swap"


class GamePhase(str, Enum):
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class ActionType(str, Enum):
    PLAY_CARD = "play_card"
    DISCARD_CARDS = "discard_cards"
    PASS_TURN = "pass_turn"


class AIDifficulty(str, Enum):
    EASY = "easy"      # random legal actions
    NORMAL = "normal"  # fixed priority list, attacks the leader
    HARD = "hard"      # phase / threat / opportunity analysis


class Language(str, Enum):
    SPANISH = "es"
    ENGLISH = "en"


class TargetType(str, Enum):
    NONE = "none"
    OWN_MODULE = "own_module"
    ENEMY_MODULE = "enemy_module"
    ANY_MODULE = "any_module"
    ENEMY_PLAYER = "enemy_player"


BASE_COLORS = [Color.BACKEND, Color.FRONTEND, Color.MOBILE, Color.DATA_SCIENCE]

# Hand and table limits
HAND_SIZE = 3
WIN_MODULE_COUNT = 4
MIN_PLAYERS = 2
MAX_PLAYERS = 6
MIN_DISCARD = 1
MAX_DISCARD = 3

# Room codes
ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

# Upper bound on AI turns resolved inside a single engine call
MAX_AI_TURNS_PER_CALL = 500

# Lines of game_log kept on the state
GAME_LOG_LIMIT = 50
