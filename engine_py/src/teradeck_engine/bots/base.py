"""
Base bot interface and utilities.
"""

from abc import ABC, abstractmethod
from itertools import combinations
from typing import Dict, List, Optional

from ..constants import (
    ActionType, CardType, MAX_DISCARD, MIN_DISCARD, ModuleState, OperationEffect, TargetType,
)
from ..engine import bug_free_modules, is_legal
from ..models import Action, Card, GameState, Player, Target
from ..validate import colors_compatible, get_target_requirements, get_valid_targets


def _phishing_transfers(state: GameState, actor: Player) -> Dict[str, Target]:
    """Greedy transfer map: each bug goes to the first free, compatible rival module not yet taken."""
    transfers = {}
    taken = set()
    for source in actor.modules:
        for bug in source.bugs:
            for opponent in state.opponents_of(actor.id):
                destination = next(
                    (m for m in opponent.modules
                     if m.state == ModuleState.FREE
                     and m.id not in taken
                     and colors_compatible(bug.color, m.color)),
                    None,
                )
                if destination is not None:
                    transfers[bug.id] = Target(opponent.id, destination.id)
                    taken.add(destination.id)
                    break
    return transfers


def _card_plays(state: GameState, actor: Player, card: Card) -> List[Action]:
    requirements = get_target_requirements(card)

    if card.effect == OperationEffect.INTERNAL_PHISHING:
        return [Action.play(actor.id, card.id, bug_transfers=_phishing_transfers(state, actor))]

    if requirements.max_targets == 0:
        return [Action.play(actor.id, card.id)]

    valid = [d for d in get_valid_targets(card, state, actor.id) if d.is_valid]

    if requirements.target_type == TargetType.ANY_MODULE:
        # Architect Change only does something useful across two owners
        return [
            Action.play(actor.id, card.id, [Target(a.player_id, a.module_id), Target(b.player_id, b.module_id)])
            for a, b in combinations(valid, 2)
            if a.player_id != b.player_id
        ]

    return [Action.play(actor.id, card.id, [Target(d.player_id, d.module_id)]) for d in valid]


def legal_actions(state: GameState, player_id: str) -> List[Action]:
    """
    Enumerate every legal action for a player.

    Plays are expanded over each valid target, discards over every 1-3 card
    combination of the hand. PASS_TURN is returned alone, and only when
    nothing else is legal.

    Args:
        state: Current game state
        player_id: Player to enumerate for

    Returns:
        Actions that pass the engine's own validation
    """
    actor = state.get_player(player_id)
    if actor is None:
        return []

    candidates = []
    for card in actor.hand:
        candidates.extend(_card_plays(state, actor, card))

    hand_ids = [card.id for card in actor.hand]
    for size in range(MIN_DISCARD, min(MAX_DISCARD, len(hand_ids)) + 1):
        for card_ids in combinations(hand_ids, size):
            candidates.append(Action.discard(player_id, list(card_ids)))

    actions = [action for action in candidates if is_legal(state, action)]
    if not actions:
        pass_action = Action.pass_turn(player_id)
        return [pass_action] if is_legal(state, pass_action) else []
    return actions


def played_card(state: GameState, action: Action) -> Optional[Card]:
    if action.type != ActionType.PLAY_CARD:
        return None
    player = state.get_player(action.player_id)
    return player.find_card(action.payload.card_id) if player else None


def target_player_id(action: Action) -> Optional[str]:
    targets = action.payload.targets
    return targets[0].player_id if targets else None


def stabilized_count(player: Player) -> int:
    return sum(1 for m in player.modules if m.state == ModuleState.STABILIZED)


def find_leader(state: GameState, player_id: str) -> Optional[Player]:
    """Opponent with the most stabilized modules; ties go to bug-free modules, then turn order."""
    leader = None
    for opponent in state.opponents_of(player_id):
        if leader is None:
            leader = opponent
            continue
        key = (stabilized_count(opponent), len(bug_free_modules(opponent)))
        best = (stabilized_count(leader), len(bug_free_modules(leader)))
        if key > best:
            leader = opponent
    return leader


class BaseBot(ABC):
    """Abstract base class for bot players."""

    def __init__(self, player_id: str):
        self.player_id = player_id

    @abstractmethod
    def choose_action(self, state: GameState) -> Action:
        """
        Choose an action based on the current game state.

        Args:
            state: Current game state

        Returns:
            A legal action for this bot
        """
        pass

    def get_player(self, state: GameState) -> Player:
        return state.get_player(self.player_id)

    def get_legal_actions(self, state: GameState) -> List[Action]:
        return legal_actions(state, self.player_id)

    def actions_of_type(self, state: GameState, actions: List[Action], card_type: CardType) -> List[Action]:
        """Filter PLAY_CARD actions by the family of the card played."""
        result = []
        for action in actions:
            card = played_card(state, action)
            if card is not None and card.type == card_type:
                result.append(action)
        return result

    def discard_actions(self, actions: List[Action]) -> List[Action]:
        return [a for a in actions if a.type == ActionType.DISCARD_CARDS]

    def random_choice(self, state: GameState, actions: List[Action]) -> Action:
        return state.rng.choice(actions)

    def fallback(self) -> Action:
        return Action.pass_turn(self.player_id)
