"""Room registry: creates rooms, seats players and forwards actions to the engine"""

import copy
import logging
import random
import threading
from collections import defaultdict
from typing import Dict, List, Optional

from .bots.personalities import create_ai_players
from .constants import GamePhase, MIN_PLAYERS, ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH
from .engine import initialize_game, process_action, remove_player
from .errors import (
    GAME_FINISHED, GAME_IN_PROGRESS, IDENTITY_IN_USE, NOT_ENOUGH_PLAYERS, NOT_HOST,
    PLAYER_NOT_IN_ROOM, ROOM_FULL, ROOM_NOT_FOUND, raise_lifecycle_error,
)
from .models import Action, GameState, Player
from .rules import GameSettings

logger = logging.getLogger(__name__)


class RoomRegistry:
    """
    In-memory index of every room.

    Each room has its own lock; every call touching a room holds it for the
    whole call, AI turns included, and reads the room only once it holds the
    lock. A room's lock is dropped together with the room. The room index is
    guarded separately.
    Returned states are snapshots: mutating them never affects the room.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rooms: Dict[str, GameState] = {}
        self.player_rooms: Dict[str, str] = {}
        self.room_locks = defaultdict(threading.Lock)
        self._index_lock = threading.RLock()
        self._rng = rng or random.Random()

    # ---------------------------------------------------------------- lookup

    def _snapshot(self, state: GameState) -> GameState:
        return copy.deepcopy(state)

    def _current(self, code: str) -> Optional[GameState]:
        with self._index_lock:
            return self.rooms.get(code)

    def _get_room(self, code: str) -> GameState:
        """Current state of a room. Call with the room lock held."""
        state = self._current(code)
        if state is None:
            raise_lifecycle_error(ROOM_NOT_FOUND, "Room not found")
        return state

    def _find_lock(self, code: str):
        with self._index_lock:
            if code not in self.rooms:
                return None
            return self.room_locks[code]

    def _room_lock(self, code: str):
        lock = self._find_lock(code)
        if lock is None:
            raise_lifecycle_error(ROOM_NOT_FOUND, "Room not found")
        return lock

    def get_state(self, code: str) -> Optional[GameState]:
        lock = self._find_lock(code)
        if lock is None:
            return None
        with lock:
            state = self._current(code)
            return self._snapshot(state) if state is not None else None

    def get_player_room(self, player_id: str) -> Optional[str]:
        with self._index_lock:
            return self.player_rooms.get(player_id)

    def room_codes(self) -> List[str]:
        with self._index_lock:
            return list(self.rooms.keys())

    def _generate_room_code(self) -> str:
        while True:
            code = ''.join(self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self.rooms:
                return code

    # ---------------------------------------------------------------- lifecycle

    def create_room(self, settings: Optional[GameSettings], host_id: str, nickname: Optional[str] = None) -> str:
        """
        Create a room in WAITING with the host seated first, then its AI seats.

        Returns:
            The new room code
        """
        settings = settings or GameSettings()
        host = Player(id=host_id, name=nickname or "Host", is_host=True)
        ai_players = create_ai_players(settings.ai_players, settings.ai_difficulty, self._rng)

        with self._index_lock:
            code = self._generate_room_code()
            self.rooms[code] = GameState(code=code, settings=settings, players=[host] + ai_players)
            self.player_rooms[host_id] = code

        logger.info(f"Room {code} created by {host_id} with {len(ai_players)} AI player(s)")
        return code

    def join_room(self, code: str, player_id: str, nickname: str) -> GameState:
        with self._room_lock(code):
            state = self._get_room(code)
            if state.get_player(player_id) is not None:
                return self._snapshot(state)
            if state.phase != GamePhase.WAITING:
                raise_lifecycle_error(GAME_IN_PROGRESS, "Game already in progress")
            if len(state.players) >= state.settings.max_players:
                raise_lifecycle_error(ROOM_FULL, "Room is full")

            state.players.append(Player(id=player_id, name=nickname))
            state.increment_version()
            with self._index_lock:
                self.player_rooms[player_id] = code

            logger.info(f"Player {player_id} joined room {code} ({len(state.players)}/{state.settings.max_players})")
            return self._snapshot(state)

    def leave_room(self, code: str, player_id: str) -> Optional[GameState]:
        """
        Remove a player from a room.

        Returns:
            The room state afterwards, or None if the room was deleted
        """
        lock = self._find_lock(code)
        if lock is None:
            return None
        with lock:
            state = self._current(code)
            if state is None:
                return None
            return self._leave(code, state, player_id)

    def _leave(self, code: str, state: GameState, player_id: str) -> Optional[GameState]:
        humans_left = any(not p.is_ai and p.id != player_id for p in state.players)
        player = remove_player(state, player_id, resume_ai=humans_left)
        with self._index_lock:
            if self.player_rooms.get(player_id) == code:
                del self.player_rooms[player_id]
        if player is None:
            return self._snapshot(state)

        logger.info(f"Player {player_id} left room {code}")

        humans = [p for p in state.players if not p.is_ai]
        if player.is_host and humans:
            humans[0].is_host = True
            logger.info(f"Room {code}: host passed to {humans[0].id}")

        if not humans:
            with self._index_lock:
                self.rooms.pop(code, None)
                self.room_locks.pop(code, None)
                for ai in state.players:
                    self.player_rooms.pop(ai.id, None)
            logger.info(f"Room {code} deleted: no human players left")
            return None

        state.increment_version()
        return self._snapshot(state)

    def start_game(self, code: str, player_id: str, seed: Optional[int] = None) -> GameState:
        with self._room_lock(code):
            state = self._get_room(code)
            player = state.get_player(player_id)
            if player is None or not player.is_host:
                raise_lifecycle_error(NOT_HOST, "Only host can start the game")
            if state.phase == GamePhase.IN_PROGRESS:
                raise_lifecycle_error(GAME_IN_PROGRESS, "Game already in progress")
            if state.phase == GamePhase.FINISHED:
                raise_lifecycle_error(GAME_FINISHED, "Game is already finished")
            if not state.settings.validate_player_count(len(state.players)):
                raise_lifecycle_error(NOT_ENOUGH_PLAYERS, f"Need at least {MIN_PLAYERS} players")

            new_state = initialize_game(copy.deepcopy(state), seed)
            self._store(code, new_state)
            return self._snapshot(new_state)

    def process_action(self, code: str, action: Action) -> GameState:
        """Apply a player's action, plus any AI turns that follow, and return the new state."""
        with self._room_lock(code):
            state = self._get_room(code)
            new_state = process_action(state, action)
            self._store(code, new_state)
            logger.debug(f"Room {code}: {action.player_id} {action.type.value} -> v{new_state.version}")
            return self._snapshot(new_state)

    def _store(self, code: str, state: GameState):
        with self._index_lock:
            self.rooms[code] = state

    # ---------------------------------------------------------------- connections

    def handle_disconnect(self, code: str, player_id: str) -> Optional[GameState]:
        """
        Mark a player as disconnected.

        While WAITING the player is also removed, unless they host a room
        with AI seats.
        """
        lock = self._find_lock(code)
        if lock is None:
            return None

        with lock:
            state = self._current(code)
            if state is None:
                return None
            player = state.get_player(player_id)
            if player is None:
                return self._snapshot(state)

            player.connected = False
            state.increment_version()
            has_ai = any(p.is_ai for p in state.players)
            keep = player.is_host and has_ai
            logger.info(f"Player {player_id} disconnected from room {code} (ai_room={has_ai}, host={player.is_host})")

            if state.phase == GamePhase.WAITING and not keep:
                return self._leave(code, state, player_id)
            return self._snapshot(state)

    def rebind_identity(self, code: str, old_id: str, new_id: str) -> GameState:
        """
        Move a seated player onto a new transport identity.

        Hand and modules stay with the seat; every reference to the old id
        (room index, turn order, winner, last action) is rewritten and the
        player is marked connected.
        """
        with self._room_lock(code):
            state = self._get_room(code)
            player = state.get_player(old_id)
            if player is None:
                raise_lifecycle_error(PLAYER_NOT_IN_ROOM, "Player not in room")

            if new_id != old_id:
                with self._index_lock:
                    if new_id in self.player_rooms or state.get_player(new_id) is not None:
                        raise_lifecycle_error(IDENTITY_IN_USE, "Identity already bound to a player")
                    self.player_rooms.pop(old_id, None)
                    self.player_rooms[new_id] = code

                player.id = new_id
                if state.winner == old_id:
                    state.winner = new_id
                if state.last_action is not None and state.last_action.player_id == old_id:
                    state.last_action.player_id = new_id

            player.connected = True
            state.increment_version()
            logger.info(f"Room {code}: {old_id} reconnected as {new_id}")
            return self._snapshot(state)
