"""
Tests for the five operation cards.
"""

import pytest

from teradeck_engine.constants import Color, ModuleState, OperationEffect
from teradeck_engine.engine import process_action
from teradeck_engine.errors import (
    DUPLICATE_COLOR, DUPLICATE_COLORS_AFTER_SWAP, INVALID_TARGET, STABILIZED_TARGET,
    ValidationError,
)
from teradeck_engine.models import Action, Target

from conftest import give, make_game, operation, place_module


def module_ids(state, player_id):
    return [m.id for m in state.get_player(player_id).modules]


# ---------------------------------------------------------------- architect change

def test_architect_change_swaps_two_owners():
    game = make_game()
    mine = place_module(game.players[0], Color.BACKEND)
    kept = place_module(game.players[0], Color.MOBILE)
    theirs = place_module(game.players[1], Color.FRONTEND, ModuleState.STABILIZED)
    card = give(game.players[0], operation(OperationEffect.ARCHITECT_CHANGE))

    state = process_action(game, Action.play("p1", card.id, [Target("p1", mine.id), Target("p2", theirs.id)]))

    assert module_ids(state, "p1") == [theirs.id, kept.id]
    assert module_ids(state, "p2") == [mine.id]
    assert state.get_player("p1").find_module(theirs.id).is_stabilized
    assert card.id in [c.id for c in state.discard]


def test_architect_change_rejects_duplicate_colors():
    game = make_game()
    mine = place_module(game.players[0], Color.BACKEND)
    place_module(game.players[0], Color.FRONTEND)
    theirs = place_module(game.players[1], Color.FRONTEND)
    card = give(game.players[0], operation(OperationEffect.ARCHITECT_CHANGE))

    with pytest.raises(ValidationError) as exc_info:
        process_action(game, Action.play("p1", card.id, [Target("p1", mine.id), Target("p2", theirs.id)]))

    assert exc_info.value.code == DUPLICATE_COLORS_AFTER_SWAP
    assert exc_info.value.message == "Cannot swap: would create duplicate module colors"


def test_architect_change_between_two_opponents(three_player_game):
    a = place_module(three_player_game.players[1], Color.BACKEND)
    b = place_module(three_player_game.players[2], Color.MOBILE)
    card = give(three_player_game.players[0], operation(OperationEffect.ARCHITECT_CHANGE))

    state = process_action(three_player_game, Action.play("p1", card.id, [Target("p2", a.id), Target("p3", b.id)]))

    assert module_ids(state, "p2") == [b.id]
    assert module_ids(state, "p3") == [a.id]


def test_architect_change_needs_two_distinct_modules():
    game = make_game()
    mine = place_module(game.players[0], Color.BACKEND)
    card = give(game.players[0], operation(OperationEffect.ARCHITECT_CHANGE))

    with pytest.raises(ValidationError) as exc_info:
        process_action(game, Action.play("p1", card.id, [Target("p1", mine.id), Target("p1", mine.id)]))

    assert exc_info.value.code == INVALID_TARGET


# ---------------------------------------------------------------- recruit ace

def test_recruit_ace_steals_module_with_its_cards():
    game = make_game()
    target = place_module(game.players[1], Color.DATA_SCIENCE, ModuleState.PATCHED)
    card = give(game.players[0], operation(OperationEffect.RECRUIT_ACE))

    state = process_action(game, Action.play("p1", card.id, [Target("p2", target.id)]))

    assert module_ids(state, "p1") == [target.id]
    assert module_ids(state, "p2") == []
    assert state.get_player("p1").modules[0].state == ModuleState.PATCHED


def test_recruit_ace_rejects_stabilized():
    game = make_game()
    target = place_module(game.players[1], Color.BACKEND, ModuleState.STABILIZED)
    card = give(game.players[0], operation(OperationEffect.RECRUIT_ACE))

    with pytest.raises(ValidationError) as exc_info:
        process_action(game, Action.play("p1", card.id, [Target("p2", target.id)]))

    assert exc_info.value.code == STABILIZED_TARGET
    assert exc_info.value.message == "Cannot steal stabilized modules"


def test_recruit_ace_rejects_owned_color():
    game = make_game()
    place_module(game.players[0], Color.BACKEND)
    target = place_module(game.players[1], Color.BACKEND)
    card = give(game.players[0], operation(OperationEffect.RECRUIT_ACE))

    with pytest.raises(ValidationError) as exc_info:
        process_action(game, Action.play("p1", card.id, [Target("p2", target.id)]))

    assert exc_info.value.code == DUPLICATE_COLOR


def test_recruit_ace_allows_multicolor_duplicates():
    game = make_game()
    place_module(game.players[0], Color.MULTICOLOR)
    target = place_module(game.players[1], Color.MULTICOLOR)
    card = give(game.players[0], operation(OperationEffect.RECRUIT_ACE))

    state = process_action(game, Action.play("p1", card.id, [Target("p2", target.id)]))

    assert len(state.get_player("p1").modules) == 2


# ---------------------------------------------------------------- internal phishing

def test_phishing_moves_bug_to_free_compatible_module():
    game = make_game()
    source = place_module(game.players[0], Color.BACKEND, ModuleState.BUGGED)
    bug_id = source.bugs[0].id
    destination = place_module(game.players[1], Color.BACKEND)
    card = give(game.players[0], operation(OperationEffect.INTERNAL_PHISHING))

    state = process_action(game, Action.play(
        "p1", card.id, bug_transfers={bug_id: Target("p2", destination.id)}))

    source_after = state.get_player("p1").find_module(source.id)
    destination_after = state.get_player("p2").find_module(destination.id)
    assert source_after.state == ModuleState.FREE
    assert source_after.bugs == []
    assert destination_after.state == ModuleState.BUGGED
    assert [c.id for c in destination_after.bugs] == [bug_id]


def test_phishing_skips_unsuitable_destinations():
    game = make_game()
    source = place_module(game.players[0], Color.BACKEND, ModuleState.BUGGED)
    bug_id = source.bugs[0].id
    patched = place_module(game.players[1], Color.BACKEND, ModuleState.PATCHED)
    card = give(game.players[0], operation(OperationEffect.INTERNAL_PHISHING))

    state = process_action(game, Action.play(
        "p1", card.id, bug_transfers={bug_id: Target("p2", patched.id)}))

    assert state.get_player("p1").find_module(source.id).state == ModuleState.BUGGED
    assert state.get_player("p2").find_module(patched.id).state == ModuleState.PATCHED


def test_phishing_color_mismatch_stays():
    game = make_game()
    source = place_module(game.players[0], Color.BACKEND, ModuleState.BUGGED)
    bug_id = source.bugs[0].id
    other = place_module(game.players[1], Color.MOBILE)
    card = give(game.players[0], operation(OperationEffect.INTERNAL_PHISHING))

    state = process_action(game, Action.play(
        "p1", card.id, bug_transfers={bug_id: Target("p2", other.id)}))

    assert state.get_player("p2").find_module(other.id).state == ModuleState.FREE


def test_phishing_rejects_foreign_bug():
    game = make_game()
    foreign = place_module(game.players[1], Color.BACKEND, ModuleState.BUGGED)
    free = place_module(game.players[1], Color.MOBILE)
    card = give(game.players[0], operation(OperationEffect.INTERNAL_PHISHING))

    with pytest.raises(ValidationError) as exc_info:
        process_action(game, Action.play(
            "p1", card.id, bug_transfers={foreign.bugs[0].id: Target("p2", free.id)}))

    assert exc_info.value.code == INVALID_TARGET


# ---------------------------------------------------------------- end of year party

def test_end_year_party(three_player_game):
    for player in three_player_game.players[1:]:
        give(player, *[operation(OperationEffect.RECRUIT_ACE) for _ in range(3)])
    card = give(three_player_game.players[0], operation(OperationEffect.END_YEAR_PARTY))
    discard_before = len(three_player_game.discard)

    state = process_action(three_player_game, Action.play("p1", card.id))

    # Both rivals skip, so the turn comes straight back to the actor
    assert state.current_player.id == "p1"
    assert state.turn == 2
    assert state.get_player("p2").hand == []
    assert state.get_player("p3").hand == []
    assert state.get_player("p2").skipped_turns == 0
    assert state.get_player("p3").skipped_turns == 0
    assert len(state.discard) == discard_before + 6 + 1


def test_end_year_party_skip_credits_accumulate():
    game = make_game(3)
    game.players[2].skipped_turns = 1
    card = give(game.players[0], operation(OperationEffect.END_YEAR_PARTY))

    state = process_action(game, Action.play("p1", card.id))

    assert state.get_player("p3").skipped_turns == 1


# ---------------------------------------------------------------- project swap

def test_project_swap_exchanges_everything():
    game = make_game()
    mine = [place_module(game.players[0], Color.BACKEND, ModuleState.BUGGED)]
    theirs = [
        place_module(game.players[1], Color.FRONTEND, ModuleState.STABILIZED),
        place_module(game.players[1], Color.MOBILE),
    ]
    card = give(game.players[0], operation(OperationEffect.PROJECT_SWAP))

    state = process_action(game, Action.play("p1", card.id, [Target("p2")]))

    assert module_ids(state, "p1") == [m.id for m in theirs]
    assert module_ids(state, "p2") == [m.id for m in mine]
    assert state.get_player("p1").modules[0].is_stabilized


def test_project_swap_rejects_disconnected_target():
    game = make_game()
    game.players[1].connected = False
    card = give(game.players[0], operation(OperationEffect.PROJECT_SWAP))

    with pytest.raises(ValidationError) as exc_info:
        process_action(game, Action.play("p1", card.id, [Target("p2")]))

    assert exc_info.value.code == INVALID_TARGET


def test_project_swap_rejects_self():
    game = make_game()
    card = give(game.players[0], operation(OperationEffect.PROJECT_SWAP))

    with pytest.raises(ValidationError):
        process_action(game, Action.play("p1", card.id, [Target("p1")]))
