"""Game models and data structures"""

import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import (
    ActionType, CardType, Color, GamePhase, ModuleState, OperationEffect,
)
from .rules import GameSettings


@dataclass
class Card:
    id: str
    type: CardType
    color: Optional[Color] = None  # MODULE / BUG / PATCH only
    effect: Optional[OperationEffect] = None  # OPERATION only
    name: Dict[str, str] = field(default_factory=dict)  # locale -> text
    description: Dict[str, str] = field(default_factory=dict)


@dataclass
class ModuleInstance:
    """A module card placed on the table by its owner."""
    card: Card
    state: ModuleState = ModuleState.FREE
    bugs: List[Card] = field(default_factory=list)
    patches: List[Card] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.card.id

    @property
    def color(self) -> Color:
        return self.card.color

    @property
    def is_stabilized(self) -> bool:
        return self.state == ModuleState.STABILIZED


@dataclass
class Player:
    id: str
    name: str
    is_ai: bool = False
    is_host: bool = False
    connected: bool = True
    hand: List[Card] = field(default_factory=list)
    modules: List[ModuleInstance] = field(default_factory=list)
    skipped_turns: int = 0  # pending skip-turn credits

    def find_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None

    def find_module(self, module_id: str) -> Optional[ModuleInstance]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None


@dataclass
class Target:
    """A (player, module) pair chosen by the client; module_id is None for player targets."""
    player_id: str
    module_id: Optional[str] = None


@dataclass
class ActionPayload:
    card_id: Optional[str] = None
    targets: List[Target] = field(default_factory=list)
    bug_transfers: Dict[str, Target] = field(default_factory=dict)  # bug card id -> destination
    card_ids: List[str] = field(default_factory=list)  # DISCARD_CARDS


@dataclass
class Action:
    type: ActionType
    player_id: str
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def play(cls, player_id: str, card_id: str, targets: Optional[List[Target]] = None,
             bug_transfers: Optional[Dict[str, Target]] = None) -> 'Action':
        """Create a play action."""
        return cls(ActionType.PLAY_CARD, player_id, ActionPayload(
            card_id=card_id,
            targets=list(targets or []),
            bug_transfers=dict(bug_transfers or {}),
        ))

    @classmethod
    def discard(cls, player_id: str, card_ids: List[str]) -> 'Action':
        """Create a discard action."""
        return cls(ActionType.DISCARD_CARDS, player_id, ActionPayload(card_ids=list(card_ids)))

    @classmethod
    def pass_turn(cls, player_id: str) -> 'Action':
        """Create a pass action."""
        return cls(ActionType.PASS_TURN, player_id)


@dataclass
class GameState:
    code: str
    settings: GameSettings = field(default_factory=GameSettings)
    players: List[Player] = field(default_factory=list)  # list order is turn order
    current_player_index: int = 0
    turn: int = 0
    deck: List[Card] = field(default_factory=list)  # draw from the end
    discard: List[Card] = field(default_factory=list)  # most recent last
    phase: GamePhase = GamePhase.WAITING
    winner: Optional[str] = None
    version: int = 0
    last_action: Optional[Action] = None
    game_log: List[str] = field(default_factory=list)
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    @property
    def current_player(self) -> Optional[Player]:
        if not self.players:
            return None
        return self.players[self.current_player_index % len(self.players)]

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def find_module(self, module_id: str):
        """Return (owner, module) for a module on the table, or (None, None)."""
        for player in self.players:
            module = player.find_module(module_id)
            if module is not None:
                return player, module
        return None, None

    def opponents_of(self, player_id: str) -> List[Player]:
        return [p for p in self.players if p.id != player_id]

    def increment_version(self):
        self.version += 1
