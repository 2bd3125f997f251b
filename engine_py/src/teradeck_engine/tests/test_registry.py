"""
Tests for room lifecycle, disconnects and identity rebinding.
"""

import threading
import time

import pytest

from teradeck_engine.constants import GamePhase, ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH
from teradeck_engine.errors import (
    GAME_IN_PROGRESS, IDENTITY_IN_USE, LifecycleError, NOT_ENOUGH_PLAYERS, NOT_HOST,
    NOT_YOUR_TURN, PLAYER_NOT_IN_ROOM, ROOM_FULL, ROOM_NOT_FOUND, ValidationError,
)
from teradeck_engine.models import Action
from teradeck_engine.rules import create_settings


def two_player_room(registry, seed=None):
    code = registry.create_room(create_settings(max_players=3), "host", "Alice")
    registry.join_room(code, "guest", "Bob")
    if seed is not None:
        registry.start_game(code, "host", seed=seed)
    return code


def test_create_room(registry):
    code = registry.create_room(None, "host", "Alice")

    assert len(code) == ROOM_CODE_LENGTH
    assert all(ch in ROOM_CODE_ALPHABET for ch in code)
    state = registry.get_state(code)
    assert state.phase == GamePhase.WAITING
    assert [p.id for p in state.players] == ["host"]
    assert state.players[0].is_host
    assert registry.get_player_room("host") == code


def test_create_room_seats_ai_after_host(registry):
    code = registry.create_room(create_settings(ai_players=2), "host", "Alice")
    registry.join_room(code, "guest", "Bob")

    players = registry.get_state(code).players
    assert [p.is_ai for p in players] == [False, True, True, False]
    assert players[-1].id == "guest"


def test_room_codes_are_unique(registry):
    codes = {registry.create_room(None, f"host{i}", "H") for i in range(50)}
    assert len(codes) == 50
    assert set(registry.room_codes()) == codes


def test_join_errors(registry):
    with pytest.raises(LifecycleError) as exc_info:
        registry.join_room("NOROOM", "x", "X")
    assert exc_info.value.code == ROOM_NOT_FOUND

    code = registry.create_room(create_settings(max_players=2), "host", "Alice")
    registry.join_room(code, "guest", "Bob")
    with pytest.raises(LifecycleError) as exc_info:
        registry.join_room(code, "third", "Carol")
    assert exc_info.value.code == ROOM_FULL


def test_join_after_start_rejected(registry):
    code = two_player_room(registry, seed=1)
    with pytest.raises(LifecycleError) as exc_info:
        registry.join_room(code, "late", "Dave")
    assert exc_info.value.code == GAME_IN_PROGRESS


def test_rejoin_is_idempotent(registry):
    code = two_player_room(registry)
    before = registry.get_state(code)
    after = registry.join_room(code, "guest", "Bob")
    assert [p.id for p in after.players] == [p.id for p in before.players]


def test_start_game_rules(registry):
    code = registry.create_room(None, "host", "Alice")
    with pytest.raises(LifecycleError) as exc_info:
        registry.start_game(code, "host")
    assert exc_info.value.code == NOT_ENOUGH_PLAYERS

    registry.join_room(code, "guest", "Bob")
    with pytest.raises(LifecycleError) as exc_info:
        registry.start_game(code, "guest")
    assert exc_info.value.code == NOT_HOST

    state = registry.start_game(code, "host", seed=3)
    assert state.phase == GamePhase.IN_PROGRESS
    assert all(len(p.hand) == 3 for p in state.players)

    with pytest.raises(LifecycleError) as exc_info:
        registry.start_game(code, "host")
    assert exc_info.value.code == GAME_IN_PROGRESS


def test_snapshots_are_detached(registry):
    code = two_player_room(registry, seed=2)
    snapshot = registry.get_state(code)
    snapshot.players[0].hand.clear()
    assert len(registry.get_state(code).players[0].hand) == 3


def test_process_action(registry):
    code = two_player_room(registry, seed=5)

    state = registry.process_action(code, Action.pass_turn("host"))
    assert state.current_player.id == "guest"

    with pytest.raises(ValidationError) as exc_info:
        registry.process_action(code, Action.pass_turn("host"))
    assert exc_info.value.code == NOT_YOUR_TURN
    assert registry.get_state(code).version == state.version


def test_ai_room_resolves_ai_turns(registry):
    code = registry.create_room(create_settings(ai_players=2), "host", "Alice")
    registry.start_game(code, "host", seed=8)

    state = registry.process_action(code, Action.pass_turn("host"))

    assert state.phase == GamePhase.FINISHED or state.current_player.id == "host"


def test_leave_reassigns_host(registry):
    code = two_player_room(registry)
    registry.join_room(code, "third", "Carol")

    state = registry.leave_room(code, "host")

    assert [p.id for p in state.players] == ["guest", "third"]
    assert state.players[0].is_host
    assert registry.get_player_room("host") is None


def test_leave_mid_game_returns_cards(registry):
    code = two_player_room(registry, seed=6)
    before = registry.get_state(code)
    total = len(before.deck) + len(before.discard) + sum(len(p.hand) for p in before.players)

    state = registry.leave_room(code, "guest")

    assert [p.id for p in state.players] == ["host"]
    assert len(state.deck) + len(state.discard) + len(state.players[0].hand) == total


def test_leaver_on_turn_passes_turn_on(registry):
    code = registry.create_room(create_settings(max_players=3), "host", "Alice")
    registry.join_room(code, "guest", "Bob")
    registry.join_room(code, "third", "Carol")
    registry.start_game(code, "host", seed=9)

    state = registry.leave_room(code, "host")

    assert state.current_player.id == "guest"


def test_room_deleted_when_last_human_leaves(registry):
    code = registry.create_room(create_settings(ai_players=1), "host", "Alice")
    assert registry.leave_room(code, "host") is None
    assert registry.get_state(code) is None
    assert code not in registry.room_codes()


def test_disconnect_in_lobby_removes_player(registry):
    code = two_player_room(registry)
    state = registry.handle_disconnect(code, "guest")
    assert [p.id for p in state.players] == ["host"]


def test_disconnect_keeps_host_of_ai_room(registry):
    code = registry.create_room(create_settings(ai_players=1), "host", "Alice")

    state = registry.handle_disconnect(code, "host")

    host = state.get_player("host")
    assert host is not None
    assert not host.connected


def test_disconnect_mid_game_only_marks(registry):
    code = two_player_room(registry, seed=4)
    state = registry.handle_disconnect(code, "guest")
    assert not state.get_player("guest").connected
    assert len(state.players) == 2


def test_rebind_identity_keeps_seat(registry):
    code = two_player_room(registry, seed=7)
    registry.process_action(code, Action.pass_turn("host"))
    registry.handle_disconnect(code, "guest")
    hand = [c.id for c in registry.get_state(code).get_player("guest").hand]

    state = registry.rebind_identity(code, "guest", "guest-2")

    player = state.get_player("guest-2")
    assert player is not None and player.connected
    assert [c.id for c in player.hand] == hand
    assert state.get_player("guest") is None
    assert state.current_player.id == "guest-2"
    assert registry.get_player_room("guest-2") == code
    assert registry.get_player_room("guest") is None

    after = registry.process_action(code, Action.pass_turn("guest-2"))
    assert after.current_player.id == "host"


def test_rebind_rewrites_last_action_and_host(registry):
    code = two_player_room(registry, seed=7)
    registry.process_action(code, Action.pass_turn("host"))

    state = registry.rebind_identity(code, "host", "host-2")

    assert state.last_action.player_id == "host-2"
    assert state.get_player("host-2").is_host


def test_rebind_errors(registry):
    code = two_player_room(registry)
    other = registry.create_room(None, "elsewhere", "Eve")

    with pytest.raises(LifecycleError) as exc_info:
        registry.rebind_identity("NOROOM", "guest", "new")
    assert exc_info.value.code == ROOM_NOT_FOUND

    with pytest.raises(LifecycleError) as exc_info:
        registry.rebind_identity(code, "ghost", "new")
    assert exc_info.value.code == PLAYER_NOT_IN_ROOM

    with pytest.raises(LifecycleError) as exc_info:
        registry.rebind_identity(code, "guest", "elsewhere")
    assert exc_info.value.code == IDENTITY_IN_USE
    assert other in registry.room_codes()


# ---------------------------------------------------------------- concurrency

def run_while_locked(registry, code, *calls):
    """Start each call on its own thread while the room lock is held, then release it."""
    results = []

    def worker(call):
        try:
            results.append(call())
        except Exception as e:
            results.append(e)

    threads = [threading.Thread(target=worker, args=(call,)) for call in calls]
    with registry.room_locks[code]:
        for thread in threads:
            thread.start()
        time.sleep(0.1)
    for thread in threads:
        thread.join(timeout=5)
    return results


def test_simultaneous_submissions_apply_once(registry):
    code = two_player_room(registry, seed=5)
    version = registry.get_state(code).version

    results = run_while_locked(
        registry, code,
        lambda: registry.process_action(code, Action.pass_turn("host")),
        lambda: registry.process_action(code, Action.pass_turn("host")),
    )

    accepted = [r for r in results if not isinstance(r, Exception)]
    rejected = [r for r in results if isinstance(r, ValidationError)]
    assert len(accepted) == 1
    assert len(rejected) == 1
    assert rejected[0].code == NOT_YOUR_TURN
    state = registry.get_state(code)
    assert state.version == version + 1
    assert state.current_player.id == "guest"


def test_rebind_survives_concurrent_action(registry):
    code = two_player_room(registry, seed=5)

    results = run_while_locked(
        registry, code,
        lambda: registry.process_action(code, Action.pass_turn("host")),
        lambda: registry.rebind_identity(code, "guest", "guest-2"),
    )

    assert not any(isinstance(r, Exception) for r in results)
    state = registry.get_state(code)
    assert [p.id for p in state.players] == ["host", "guest-2"]
    assert state.current_player.id == "guest-2"
    assert registry.get_player_room("guest-2") == code
    assert registry.get_player_room("guest") is None


def test_deleted_room_drops_its_lock(registry):
    code = registry.create_room(None, "host", "Alice")
    registry.get_state(code)
    assert code in registry.room_locks

    registry.leave_room(code, "host")

    assert code not in registry.room_locks
    with pytest.raises(LifecycleError) as exc_info:
        registry.process_action(code, Action.pass_turn("host"))
    assert exc_info.value.code == ROOM_NOT_FOUND
    assert code not in registry.room_locks
