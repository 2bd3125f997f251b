"""
Card pool construction, shuffling and drawing.
"""

import random
from typing import Dict, List, Optional

from .constants import BASE_COLORS, CardType, Color, HAND_SIZE, OperationEffect
from .models import Card, GameState, Player


MODULE_NAMES = {
    Color.MULTICOLOR: {'es': 'Módulo Comodín', 'en': 'Wildcard Module'},
    Color.BACKEND: {'es': 'Módulo Backend', 'en': 'Backend Module'},
    Color.FRONTEND: {'es': 'Módulo Frontend', 'en': 'Frontend Module'},
    Color.MOBILE: {'es': 'Módulo Mobile', 'en': 'Mobile Module'},
    Color.DATA_SCIENCE: {'es': 'Módulo Data Science', 'en': 'Data Science Module'},
}

BUG_NAMES = {
    Color.MULTICOLOR: {'es': 'Bug Universal', 'en': 'Universal Bug'},
    Color.BACKEND: {'es': 'Bug de Backend', 'en': 'Backend Bug'},
    Color.FRONTEND: {'es': 'Bug de Frontend', 'en': 'Frontend Bug'},
    Color.MOBILE: {'es': 'Bug de Mobile', 'en': 'Mobile Bug'},
    Color.DATA_SCIENCE: {'es': 'Bug de Data Science', 'en': 'Data Science Bug'},
}

PATCH_NAMES = {
    Color.MULTICOLOR: {'es': 'Parche Universal', 'en': 'Universal Patch'},
    Color.BACKEND: {'es': 'Parche de Backend', 'en': 'Backend Patch'},
    Color.FRONTEND: {'es': 'Parche de Frontend', 'en': 'Frontend Patch'},
    Color.MOBILE: {'es': 'Parche de Mobile', 'en': 'Mobile Patch'},
    Color.DATA_SCIENCE: {'es': 'Parche de Data Science', 'en': 'Data Science Patch'},
}

OPERATION_NAMES = {
    OperationEffect.ARCHITECT_CHANGE: {'es': 'Cambio de Arquitecto', 'en': 'Architect Change'},
    OperationEffect.RECRUIT_ACE: {'es': 'Reclutamiento del Groso', 'en': 'Ace Recruitment'},
    OperationEffect.INTERNAL_PHISHING: {'es': 'Phishing Interno', 'en': 'Internal Phishing'},
    OperationEffect.END_YEAR_PARTY: {'es': 'Fiesta de Fin de Año', 'en': 'End of Year Party'},
    OperationEffect.PROJECT_SWAP: {'es': 'Project Swap', 'en': 'Project Swap'},
}

# Copies per card kind: 21 modules, 17 bugs, 20 patches, 10 operations
MODULE_COUNTS = {Color.MULTICOLOR: 1, **{color: 5 for color in BASE_COLORS}}
BUG_COUNTS = {Color.MULTICOLOR: 1, **{color: 4 for color in BASE_COLORS}}
PATCH_COUNTS = {Color.MULTICOLOR: 4, **{color: 4 for color in BASE_COLORS}}
OPERATION_COUNTS = {
    OperationEffect.ARCHITECT_CHANGE: 3,
    OperationEffect.RECRUIT_ACE: 3,
    OperationEffect.INTERNAL_PHISHING: 2,
    OperationEffect.END_YEAR_PARTY: 1,
    OperationEffect.PROJECT_SWAP: 1,
}


def _colored_cards(card_type: CardType, counts: Dict[Color, int],
                   names: Dict[Color, Dict[str, str]]) -> List[Card]:
    cards = []
    for color, count in counts.items():
        for i in range(count):
            cards.append(Card(
                id=f"{card_type.value}_{color.value}_{i + 1}",
                type=card_type,
                color=color,
                name=dict(names[color]),
            ))
    return cards


def create_deck() -> List[Card]:
    """Create the full, unshuffled 68-card pool."""
    deck = []
    deck.extend(_colored_cards(CardType.MODULE, MODULE_COUNTS, MODULE_NAMES))
    deck.extend(_colored_cards(CardType.BUG, BUG_COUNTS, BUG_NAMES))
    deck.extend(_colored_cards(CardType.PATCH, PATCH_COUNTS, PATCH_NAMES))

    for effect, count in OPERATION_COUNTS.items():
        for i in range(count):
            deck.append(Card(
                id=f"op_{effect.value}_{i + 1}",
                type=CardType.OPERATION,
                effect=effect,
                name=dict(OPERATION_NAMES[effect]),
            ))

    return deck


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None,
                 seed: Optional[int] = None) -> List[Card]:
    """
    Shuffle a deck with a Fisher-Yates pass.

    Args:
        deck: Cards to shuffle (left untouched)
        rng: Random source to draw swaps from
        seed: Seed for a fresh random source when no rng is given

    Returns:
        Shuffled copy of the deck
    """
    if rng is None:
        rng = random.Random(seed)

    deck_copy = list(deck)
    for i in range(len(deck_copy) - 1, 0, -1):
        j = rng.randint(0, i)
        deck_copy[i], deck_copy[j] = deck_copy[j], deck_copy[i]
    return deck_copy


def recycle_discard(state: GameState) -> int:
    """Shuffle the whole discard pile underneath the draw pile. Returns cards moved."""
    moved = len(state.discard)
    if moved:
        state.deck = shuffle_deck(state.discard, state.rng) + state.deck
        state.discard = []
    return moved


def draw_cards(state: GameState, count: int) -> List[Card]:
    """
    Draw up to `count` cards from the draw pile.

    When the draw pile runs out mid-draw the discard pile is shuffled into it
    and drawing continues, so the caller gets as many cards as both piles hold
    together.
    """
    drawn = []
    while len(drawn) < count:
        if not state.deck:
            if not recycle_discard(state):
                break
        drawn.append(state.deck.pop())
    return drawn


def refill_hand(state: GameState, player: Player, size: int = HAND_SIZE) -> int:
    """Top a player's hand up to `size` cards. Returns the number drawn."""
    missing = size - len(player.hand)
    if missing <= 0:
        return 0
    drawn = draw_cards(state, missing)
    player.hand.extend(drawn)
    return len(drawn)


def deal_cards(state: GameState, hand_size: int = HAND_SIZE):
    """Deal a fresh hand to every player in turn order."""
    for player in state.players:
        player.hand = draw_cards(state, hand_size)
