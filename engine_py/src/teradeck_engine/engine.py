"""Game state machine: card interactions, turn order and win detection"""

import copy
import logging
import random
from typing import List, Optional

from .constants import (
    ActionType, CardType, GAME_LOG_LIMIT, GamePhase, MAX_AI_TURNS_PER_CALL,
    MAX_DISCARD, MIN_DISCARD, ModuleState, WIN_MODULE_COUNT,
)
from .effects import resolve_operation
from .errors import (
    CARD_NOT_IN_HAND, DUPLICATE_COLOR, GAME_FINISHED, GAME_NOT_STARTED,
    INVALID_ACTION, INVALID_DISCARD_COUNT, INVALID_DISCARD_SELECTION,
    NOT_YOUR_TURN, PLAYER_NOT_FOUND, ValidationError, raise_error,
)
from .models import Action, ActionPayload, Card, GameState, ModuleInstance, Player
from .shuffle import create_deck, deal_cards, draw_cards, refill_hand, shuffle_deck
from .validate import owns_color, validate_targets

logger = logging.getLogger(__name__)


def _card_label(card: Card) -> str:
    return card.name.get('en', card.id)


def _log(state: GameState, message: str):
    state.game_log.append(message)


def initialize_game(state: GameState, seed: Optional[int] = None) -> GameState:
    """Shuffle a fresh deck, deal three cards each and hand the first turn out."""
    state.rng = random.Random(seed)
    state.deck = shuffle_deck(create_deck(), state.rng)
    state.discard = []
    for player in state.players:
        player.hand = []
        player.modules = []
        player.skipped_turns = 0

    deal_cards(state)
    state.phase = GamePhase.IN_PROGRESS
    state.current_player_index = 0
    state.turn = 1
    state.winner = None
    state.last_action = None
    state.game_log = [f"Game started! {state.players[0].name} goes first"]
    state.increment_version()
    logger.info(f"Game started in room {state.code} with {len(state.players)} players")

    run_ai_turns(state)
    return state


# ---------------------------------------------------------------- validation

def validate_action(state: GameState, action: Action):
    """
    Raise ValidationError unless the action is legal right now.

    Nothing is mutated; the same checks gate human and AI actions.
    """
    if state.phase == GamePhase.WAITING:
        raise_error(GAME_NOT_STARTED, "Game not started")
    if state.phase == GamePhase.FINISHED:
        raise_error(GAME_FINISHED, "Game is already finished")

    player = state.get_player(action.player_id)
    if player is None:
        raise_error(PLAYER_NOT_FOUND, "Player not found")
    if state.current_player.id != player.id:
        raise_error(NOT_YOUR_TURN, "Not your turn")

    if action.type == ActionType.PLAY_CARD:
        _validate_play(state, player, action.payload)
    elif action.type == ActionType.DISCARD_CARDS:
        _validate_discard(player, action.payload)
    elif action.type != ActionType.PASS_TURN:
        raise_error(INVALID_ACTION, f"Unknown action type: {action.type}")


def _validate_play(state: GameState, player: Player, payload: ActionPayload) -> Card:
    card = player.find_card(payload.card_id) if payload.card_id else None
    if card is None:
        raise_error(CARD_NOT_IN_HAND, "Card not in hand")

    result = validate_targets(card, payload.targets, state, player.id)
    if not result.valid:
        raise ValidationError(result.error_code, result.error_message)

    if card.type == CardType.MODULE and owns_color(player, card.color):
        raise_error(DUPLICATE_COLOR, "Already have this module color")
    if card.type == CardType.OPERATION:
        resolve_operation(state, player, card, payload, apply=False)
    return card


def _validate_discard(player: Player, payload: ActionPayload):
    card_ids = payload.card_ids
    if not MIN_DISCARD <= len(card_ids) <= MAX_DISCARD:
        raise_error(INVALID_DISCARD_COUNT, f"Must discard between {MIN_DISCARD} and {MAX_DISCARD} cards")
    if len(set(card_ids)) != len(card_ids):
        raise_error(INVALID_DISCARD_SELECTION, "The same card was selected twice")
    for card_id in card_ids:
        if player.find_card(card_id) is None:
            raise_error(CARD_NOT_IN_HAND, f"Card {card_id} not found in hand")


def is_legal(state: GameState, action: Action) -> bool:
    try:
        validate_action(state, action)
    except ValidationError:
        return False
    return True


# ---------------------------------------------------------------- actions

def process_action(state: GameState, action: Action) -> GameState:
    """
    Apply one action and any AI turns it leads to.

    The input state is never modified: work happens on a copy that is
    returned on success, so a rejected action leaves the caller's state
    exactly as it was.
    """
    new_state = copy.deepcopy(state)
    apply_action(new_state, action)
    run_ai_turns(new_state)
    return new_state


def preview_action(state: GameState, action: Action) -> GameState:
    """Return the state right after `action`, without resolving AI turns."""
    new_state = copy.deepcopy(state)
    apply_action(new_state, action)
    return new_state


def apply_action(state: GameState, action: Action):
    """Validate and apply a single action in place."""
    validate_action(state, action)
    player = state.get_player(action.player_id)

    if action.type == ActionType.PLAY_CARD:
        _play_card(state, player, action.payload)
    elif action.type == ActionType.DISCARD_CARDS:
        _discard_cards(state, player, action.payload)
    else:
        _log(state, f"{player.name} passed")
        advance_turn(state)

    state.last_action = action
    state.game_log = state.game_log[-GAME_LOG_LIMIT:]
    state.increment_version()


def _play_card(state: GameState, player: Player, payload: ActionPayload):
    card = player.find_card(payload.card_id)
    player.hand.remove(card)
    logger.debug(f"{player.id} plays {card.id} targets={payload.targets}")

    if card.type == CardType.MODULE:
        stays_on_table = _play_module(player, card)
    elif card.type == CardType.BUG:
        stays_on_table = _play_bug(state, card, payload)
    elif card.type == CardType.PATCH:
        stays_on_table = _play_patch(state, card, payload)
    else:
        resolve_operation(state, player, card, payload)
        stays_on_table = False

    if not stays_on_table:
        state.discard.append(card)
    _log(state, f"{player.name} played {_card_label(card)}")

    refill_hand(state, player)
    if _check_game_end(state):
        return
    advance_turn(state)


def _play_module(player: Player, card: Card) -> bool:
    player.modules.append(ModuleInstance(card=card))
    return True


def _play_bug(state: GameState, card: Card, payload: ActionPayload) -> bool:
    target = payload.targets[0]
    owner = state.get_player(target.player_id)
    module = owner.find_module(target.module_id)

    if module.state == ModuleState.PATCHED:
        # Bug cancels the patch: both go to the discard pile
        state.discard.extend(module.patches)
        module.patches = []
        module.state = ModuleState.FREE
        _log(state, f"Bug and patch cancelled out on {owner.name}'s {module.id}")
        return False

    if module.state == ModuleState.BUGGED:
        # Second bug destroys the module
        owner.modules.remove(module)
        state.discard.append(module.card)
        state.discard.extend(module.bugs)
        module.bugs = []
        _log(state, f"{owner.name}'s {module.id} was destroyed")
        return False

    module.bugs.append(card)
    module.state = ModuleState.BUGGED
    return True


def _play_patch(state: GameState, card: Card, payload: ActionPayload) -> bool:
    target = payload.targets[0]
    owner = state.get_player(target.player_id)
    module = owner.find_module(target.module_id)

    if module.state == ModuleState.BUGGED:
        # Patch fixes the bug: both go to the discard pile
        state.discard.extend(module.bugs)
        module.bugs = []
        module.state = ModuleState.FREE
        return False

    module.patches.append(card)
    if module.state == ModuleState.PATCHED:
        module.state = ModuleState.STABILIZED
        _log(state, f"{owner.name}'s {module.id} is now stabilized")
    else:
        module.state = ModuleState.PATCHED
    return True


def _discard_cards(state: GameState, player: Player, payload: ActionPayload):
    discarded = []
    for card_id in payload.card_ids:
        card = player.find_card(card_id)
        player.hand.remove(card)
        discarded.append(card)
    state.discard.extend(discarded)

    drawn = draw_cards(state, len(discarded))
    player.hand.extend(drawn)
    _log(state, f"{player.name} discarded {len(discarded)} card(s) and drew {len(drawn)}")

    if _check_game_end(state):
        return
    advance_turn(state)


# ---------------------------------------------------------------- turns

def advance_turn(state: GameState):
    """
    Move the turn pointer to the next player who is not skipping.

    Each skip consumes one credit. The walk is bounded by the player count,
    so a table where everyone is skipping still terminates.
    """
    count = len(state.players)
    if count == 0:
        return

    for _ in range(count):
        state.current_player_index = (state.current_player_index + 1) % count
        if state.current_player_index == 0:
            state.turn += 1
        if not _skip_current(state):
            break

    refill_hand(state, state.current_player)


def _skip_current(state: GameState) -> bool:
    """Use up one skip credit of the player who is up, if they have one."""
    player = state.current_player
    if player.skipped_turns <= 0:
        return False
    player.skipped_turns -= 1
    _log(state, f"{player.name} skips this turn")
    return True


def run_ai_turns(state: GameState):
    """Play AI turns in place until a human is up or the game ends."""
    from .bots.policy import decide

    for _ in range(MAX_AI_TURNS_PER_CALL):
        if state.phase != GamePhase.IN_PROGRESS:
            return
        player = state.current_player
        if player is None or not player.is_ai:
            return

        action = decide(state, player.id, state.settings.ai_difficulty)
        try:
            apply_action(state, action)
        except ValidationError as e:
            logger.warning(f"AI {player.id} chose an illegal action ({e.code}: {e.message}); passing")
            apply_action(state, Action.pass_turn(player.id))

    logger.warning(f"Room {state.code}: stopped after {MAX_AI_TURNS_PER_CALL} consecutive AI turns")


def remove_player(state: GameState, player_id: str, resume_ai: bool = True) -> Optional[Player]:
    """
    Take a player out of the turn order.

    Mid-game their hand and table go to the discard pile and the turn
    pointer is repaired so it keeps pointing at the same player, or at the
    next one when the leaver was up. With resume_ai, AI turns reached that
    way are played out before returning.
    """
    player = state.get_player(player_id)
    if player is None:
        return None

    index = state.players.index(player)
    was_current = index == state.current_player_index
    state.players.pop(index)

    if state.phase != GamePhase.IN_PROGRESS:
        if state.current_player_index >= len(state.players):
            state.current_player_index = 0
        return player

    state.discard.extend(player.hand)
    for module in player.modules:
        state.discard.append(module.card)
        state.discard.extend(module.bugs)
        state.discard.extend(module.patches)
    logger.info(f"Returned {len(player.hand)} cards from {player.name} to the discard pile")
    player.hand = []
    player.modules = []
    _log(state, f"{player.name} left the game")

    if not state.players:
        state.current_player_index = 0
        return player

    if index < state.current_player_index:
        state.current_player_index -= 1
    elif was_current:
        # The next seat slides into the leaver's index; only leaving from the
        # last seat completes a round
        if index == len(state.players):
            state.current_player_index = 0
            state.turn += 1
        else:
            state.current_player_index = index
        if _skip_current(state):
            advance_turn(state)
        else:
            refill_hand(state, state.current_player)
        if resume_ai:
            run_ai_turns(state)

    state.increment_version()
    return player


# ---------------------------------------------------------------- winning

def bug_free_modules(player: Player) -> List[ModuleInstance]:
    return [m for m in player.modules if not m.bugs]


def check_winner(state: GameState) -> Optional[Player]:
    """First player in turn order with enough bug-free modules, if any."""
    for player in state.players:
        if len(bug_free_modules(player)) >= WIN_MODULE_COUNT:
            return player
    return None


def _check_game_end(state: GameState) -> bool:
    winner = check_winner(state)
    if winner is None:
        return False
    state.phase = GamePhase.FINISHED
    state.winner = winner.id
    _log(state, f"{winner.name} completed their project and wins!")
    logger.info(f"Room {state.code}: {winner.id} wins on turn {state.turn}")
    return True
