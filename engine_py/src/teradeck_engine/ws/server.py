"""
FastAPI WebSocket server for the TeraDeck game.
"""

import logging
import uuid
from collections import defaultdict
from typing import Any, Dict, Optional, Set, Tuple

import orjson
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..constants import GamePhase
from ..errors import GameError
from ..models import GameState
from ..registry import RoomRegistry
from ..serialization import get_public_room_info, sanitize_state
from .events import (
    ChatEvent, CreateRoomEvent, ErrorCode, GameActionEvent, JoinRoomEvent, LeaveRoomEvent,
    ReconnectEvent, RequestStateEvent, StartGameEvent, create_chat_event, create_error_event,
    create_game_ended_event, create_join_success_event, create_room_created_event,
    create_state_full_event, parse_inbound_event,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(title="TeraDeck Game Engine", version="1.0.0")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

registry = RoomRegistry()


def _encode(event: Any) -> str:
    if isinstance(event, BaseModel):
        event = event.model_dump(mode="json")
    return orjson.dumps(event).decode()


class ConnectionManager:
    """Tracks which transport id and room each websocket belongs to."""

    def __init__(self):
        self.room_connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.connection_players: Dict[WebSocket, str] = {}
        self.connection_rooms: Dict[WebSocket, Optional[str]] = {}

    def register(self, websocket: WebSocket) -> str:
        """Give a freshly accepted connection its transport id."""
        player_id = str(uuid.uuid4())
        self.connection_players[websocket] = player_id
        self.connection_rooms[websocket] = None
        return player_id

    def bind(self, websocket: WebSocket, room_code: str, player_id: Optional[str] = None):
        """Attach a connection to a room, optionally under a new player id."""
        self.unbind(websocket)
        if player_id is not None:
            self.connection_players[websocket] = player_id
        self.room_connections[room_code].add(websocket)
        self.connection_rooms[websocket] = room_code
        logger.info(f"Player {self.connection_players.get(websocket)} connected to room {room_code}")

    def unbind(self, websocket: WebSocket):
        room_code = self.connection_rooms.get(websocket)
        if room_code is None:
            return
        connections = self.room_connections.get(room_code)
        if connections is not None:
            connections.discard(websocket)
            if not connections:
                del self.room_connections[room_code]
        self.connection_rooms[websocket] = None

    def disconnect(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        """Forget a connection. Returns (player_id, room_code) it was bound to."""
        room_code = self.connection_rooms.get(websocket)
        self.unbind(websocket)
        player_id = self.connection_players.pop(websocket, None)
        self.connection_rooms.pop(websocket, None)
        if player_id and room_code:
            logger.info(f"Player {player_id} disconnected from room {room_code}")
        return player_id, room_code

    def player_of(self, websocket: WebSocket) -> Optional[str]:
        return self.connection_players.get(websocket)

    def room_of(self, websocket: WebSocket) -> Optional[str]:
        return self.connection_rooms.get(websocket)

    def connection_count(self) -> int:
        return sum(len(conns) for conns in self.room_connections.values())

    async def send(self, websocket: WebSocket, event: Any):
        await websocket.send_text(_encode(event))

    async def broadcast_to_room(self, room_code: str, event: Any):
        """Send the same event to every connection in a room."""
        for websocket in list(self.room_connections.get(room_code, ())):
            try:
                await self.send(websocket, event)
            except Exception as e:
                logger.error(f"Error broadcasting to room {room_code}: {e}")
                self.disconnect(websocket)

    async def broadcast_state(self, state: GameState):
        """Send each connection in the room its own sanitized view of the state."""
        for websocket in list(self.room_connections.get(state.code, ())):
            player_id = self.connection_players.get(websocket)
            try:
                await self.send(websocket, create_state_full_event(sanitize_state(state, player_id)))
            except Exception as e:
                logger.error(f"Error sending state to {player_id}: {e}")
                self.disconnect(websocket)

        if state.phase == GamePhase.FINISHED:
            winner = state.get_player(state.winner) if state.winner else None
            await self.broadcast_to_room(
                state.code,
                create_game_ended_event(state.winner, winner.name if winner else None),
            )


manager = ConnectionManager()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "rooms": len(registry.room_codes()),
        "connections": manager.connection_count(),
    }


@app.get("/rooms/{code}")
async def room_info(code: str):
    """Public lobby information for a room."""
    state = registry.get_state(code)
    if state is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return get_public_room_info(state)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Main WebSocket endpoint."""
    await websocket.accept()
    manager.register(websocket)
    logger.info("WebSocket connection accepted")

    try:
        while True:
            raw_data = await websocket.receive_text()
            try:
                event = parse_inbound_event(orjson.loads(raw_data))
                await handle_event(websocket, event)
            except orjson.JSONDecodeError:
                await manager.send(websocket, create_error_event(ErrorCode.INVALID_EVENT, "Malformed JSON"))
            except ValueError as e:
                await manager.send(websocket, create_error_event(ErrorCode.INVALID_EVENT, str(e)))
            except GameError as e:
                await manager.send(websocket, create_error_event(e.code, e.message))
            except WebSocketDisconnect:
                raise
            except Exception as e:
                logger.exception(f"Error handling event: {e}")
                await manager.send(websocket, create_error_event(ErrorCode.INTERNAL, "Internal server error"))

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    finally:
        player_id, room_code = manager.disconnect(websocket)
        if player_id and room_code:
            state = registry.handle_disconnect(room_code, player_id)
            if state is not None:
                await manager.broadcast_state(state)


async def handle_event(websocket: WebSocket, event):
    """Dispatch an inbound event to its handler."""
    if isinstance(event, CreateRoomEvent):
        await handle_create_room(websocket, event)
    elif isinstance(event, JoinRoomEvent):
        await handle_join_room(websocket, event)
    elif isinstance(event, LeaveRoomEvent):
        await handle_leave_room(websocket, event)
    elif isinstance(event, StartGameEvent):
        await handle_start_game(websocket, event)
    elif isinstance(event, GameActionEvent):
        await handle_game_action(websocket, event)
    elif isinstance(event, RequestStateEvent):
        await handle_request_state(websocket, event)
    elif isinstance(event, ChatEvent):
        await handle_chat(websocket, event)
    elif isinstance(event, ReconnectEvent):
        await handle_reconnect(websocket, event)
    else:
        raise ValueError(f"Unhandled event type: {type(event)}")


async def _require_room(websocket: WebSocket) -> Optional[str]:
    room_code = manager.room_of(websocket)
    if room_code is None:
        await manager.send(websocket, create_error_event(ErrorCode.NOT_IN_ROOM, "Not in a room"))
    return room_code


async def handle_create_room(websocket: WebSocket, event: CreateRoomEvent):
    player_id = manager.player_of(websocket)
    room_code = registry.create_room(event.settings, player_id, event.nickname)
    manager.bind(websocket, room_code)

    await manager.send(websocket, create_room_created_event(room_code, player_id))
    await manager.broadcast_state(registry.get_state(room_code))


async def handle_join_room(websocket: WebSocket, event: JoinRoomEvent):
    player_id = manager.player_of(websocket)
    state = registry.join_room(event.room_code, player_id, event.nickname)
    manager.bind(websocket, event.room_code)

    await manager.send(websocket, create_join_success_event(event.room_code, player_id))
    await manager.broadcast_state(state)


async def handle_leave_room(websocket: WebSocket, event: LeaveRoomEvent):
    room_code = await _require_room(websocket)
    if room_code is None:
        return
    state = registry.leave_room(room_code, manager.player_of(websocket))
    manager.unbind(websocket)
    if state is not None:
        await manager.broadcast_state(state)


async def handle_start_game(websocket: WebSocket, event: StartGameEvent):
    room_code = await _require_room(websocket)
    if room_code is None:
        return
    state = registry.start_game(room_code, manager.player_of(websocket), event.seed)
    await manager.broadcast_state(state)


async def handle_game_action(websocket: WebSocket, event: GameActionEvent):
    room_code = await _require_room(websocket)
    if room_code is None:
        return
    action = event.to_action(manager.player_of(websocket))
    state = registry.process_action(room_code, action)
    await manager.broadcast_state(state)


async def handle_request_state(websocket: WebSocket, event: RequestStateEvent):
    room_code = await _require_room(websocket)
    if room_code is None:
        return
    state = registry.get_state(room_code)
    if state is None:
        manager.unbind(websocket)
        await manager.send(websocket, create_error_event(ErrorCode.NOT_IN_ROOM, "Room no longer exists"))
        return
    await manager.send(websocket, create_state_full_event(sanitize_state(state, manager.player_of(websocket))))


async def handle_chat(websocket: WebSocket, event: ChatEvent):
    room_code = await _require_room(websocket)
    if room_code is None:
        return
    player_id = manager.player_of(websocket)
    state = registry.get_state(room_code)
    player = state.get_player(player_id) if state else None
    player_name = player.name if player else "Unknown"
    await manager.broadcast_to_room(room_code, create_chat_event(player_id, player_name, event.text))


async def handle_reconnect(websocket: WebSocket, event: ReconnectEvent):
    player_id = manager.player_of(websocket)
    state = registry.rebind_identity(event.room_code, event.previous_id, player_id)
    manager.bind(websocket, event.room_code)

    await manager.send(websocket, create_join_success_event(event.room_code, player_id))
    await manager.broadcast_state(state)
