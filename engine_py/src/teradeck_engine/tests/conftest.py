"""
Shared fixtures and table-building helpers.
"""

import itertools
import random

import pytest

from teradeck_engine.constants import (
    AIDifficulty, CardType, Color, GamePhase, ModuleState, OperationEffect,
)
from teradeck_engine.models import Card, GameState, ModuleInstance, Player
from teradeck_engine.registry import RoomRegistry
from teradeck_engine.rules import create_settings
from teradeck_engine.shuffle import create_deck, shuffle_deck

_ids = itertools.count(1)


def make_card(card_type: CardType, color: Color = None, effect: OperationEffect = None) -> Card:
    """A card with an id that never collides with the factory deck."""
    tag = effect.value if effect else color.value
    return Card(id=f"t_{card_type.value}_{tag}_{next(_ids)}", type=card_type, color=color, effect=effect)


def module(color: Color) -> Card:
    return make_card(CardType.MODULE, color)


def bug(color: Color) -> Card:
    return make_card(CardType.BUG, color)


def patch(color: Color) -> Card:
    return make_card(CardType.PATCH, color)


def operation(effect: OperationEffect) -> Card:
    return make_card(CardType.OPERATION, effect=effect)


def place_module(player: Player, color: Color, state: ModuleState = ModuleState.FREE) -> ModuleInstance:
    """Put a module straight on the table, with cards attached to match `state`."""
    instance = ModuleInstance(card=module(color), state=state)
    if state == ModuleState.BUGGED:
        instance.bugs.append(bug(color))
    elif state == ModuleState.PATCHED:
        instance.patches.append(patch(color))
    elif state == ModuleState.STABILIZED:
        instance.patches.extend([patch(color), patch(color)])
    player.modules.append(instance)
    return instance


def give(player: Player, *cards: Card) -> Card:
    """Add cards to a hand and return the last one."""
    player.hand.extend(cards)
    return cards[-1]


def make_game(num_players: int = 2, ai_seats=(), difficulty: AIDifficulty = AIDifficulty.EASY,
              seed: int = 7) -> GameState:
    """
    An in-progress game with empty hands and tables, player p1 to move.

    The draw pile holds a shuffled factory deck so refills always succeed.
    """
    players = [
        Player(id=f"p{i + 1}", name=f"Player {i + 1}", is_ai=(i in ai_seats), is_host=(i == 0))
        for i in range(num_players)
    ]
    rng = random.Random(seed)
    return GameState(
        code="TEST01",
        settings=create_settings(max_players=max(num_players, 2), ai_difficulty=difficulty),
        players=players,
        current_player_index=0,
        turn=1,
        deck=shuffle_deck(create_deck(), rng),
        phase=GamePhase.IN_PROGRESS,
        rng=rng,
    )


@pytest.fixture
def game():
    return make_game()


@pytest.fixture
def three_player_game():
    return make_game(3)


@pytest.fixture
def registry():
    return RoomRegistry(rng=random.Random(1234))
