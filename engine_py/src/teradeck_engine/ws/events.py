"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from ..constants import ActionType, MAX_DISCARD, ROOM_CODE_LENGTH
from ..models import Action, ActionPayload, Target
from ..rules import GameSettings


class EventType(str, Enum):
    """Inbound event types."""
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    START_GAME = "start_game"
    GAME_ACTION = "game_action"
    REQUEST_STATE = "request_state"
    CHAT = "chat"
    RECONNECT = "reconnect"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    ROOM_CREATED = "room_created"
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    GAME_ENDED = "game_ended"
    CHAT = "chat"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Error codes raised by the transport itself; game errors reuse the engine's codes."""
    INVALID_EVENT = "INVALID_EVENT"
    NOT_IN_ROOM = "NOT_IN_ROOM"
    INTERNAL = "INTERNAL"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class CreateRoomEvent(BaseEvent):
    """Create room event; the sender becomes host."""
    type: EventType = EventType.CREATE_ROOM
    nickname: str = Field(..., min_length=1, max_length=30)
    settings: GameSettings = Field(default_factory=GameSettings)


class JoinRoomEvent(BaseEvent):
    """Join room event."""
    type: EventType = EventType.JOIN_ROOM
    room_code: str = Field(..., min_length=ROOM_CODE_LENGTH, max_length=ROOM_CODE_LENGTH)
    nickname: str = Field(..., min_length=1, max_length=30)


class LeaveRoomEvent(BaseEvent):
    """Leave room event."""
    type: EventType = EventType.LEAVE_ROOM


class StartGameEvent(BaseEvent):
    """Start game event."""
    type: EventType = EventType.START_GAME
    seed: Optional[int] = None


class TargetModel(BaseModel):
    """A target player, optionally narrowed to one of their modules."""
    player_id: str = Field(..., min_length=1)
    module_id: Optional[str] = None

    def to_target(self) -> Target:
        return Target(player_id=self.player_id, module_id=self.module_id)


class GameActionEvent(BaseEvent):
    """Game action event: play, discard or pass."""
    type: EventType = EventType.GAME_ACTION
    action_type: ActionType
    card_id: Optional[str] = None
    targets: List[TargetModel] = Field(default_factory=list, max_length=2)
    bug_transfers: Dict[str, TargetModel] = Field(default_factory=dict)
    card_ids: List[str] = Field(default_factory=list, max_length=MAX_DISCARD)

    def to_action(self, player_id: str) -> Action:
        """Build the engine action for the sending player."""
        payload = ActionPayload(
            card_id=self.card_id,
            targets=[t.to_target() for t in self.targets],
            bug_transfers={bug_id: t.to_target() for bug_id, t in self.bug_transfers.items()},
            card_ids=list(self.card_ids),
        )
        return Action(type=self.action_type, player_id=player_id, payload=payload)


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


class ChatEvent(BaseEvent):
    """Chat message event."""
    type: EventType = EventType.CHAT
    text: str = Field(..., min_length=1, max_length=200)


class ReconnectEvent(BaseEvent):
    """Reclaim a seat held by a previous connection."""
    type: EventType = EventType.RECONNECT
    room_code: str = Field(..., min_length=ROOM_CODE_LENGTH, max_length=ROOM_CODE_LENGTH)
    previous_id: str = Field(..., min_length=1)


# Union type for all inbound events
InboundEvent = Union[
    CreateRoomEvent,
    JoinRoomEvent,
    LeaveRoomEvent,
    StartGameEvent,
    GameActionEvent,
    RequestStateEvent,
    ChatEvent,
    ReconnectEvent,
]


# Outbound event models
class RoomCreatedEvent(BaseModel):
    """Room created confirmation event."""
    type: OutboundEventType = OutboundEventType.ROOM_CREATED
    room_code: str
    player_id: str
    timestamp: float


class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    room_code: str
    player_id: str
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class GameEndedEvent(BaseModel):
    """Game over notification event."""
    type: OutboundEventType = OutboundEventType.GAME_ENDED
    winner_id: Optional[str]
    winner_name: Optional[str]
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: str
    message: str
    timestamp: float


class ChatMessageEvent(BaseModel):
    """Chat message event."""
    type: OutboundEventType = OutboundEventType.CHAT
    player_id: str
    player_name: str
    text: str
    timestamp: float


# Union type for all outbound events
OutboundEvent = Union[
    RoomCreatedEvent,
    JoinSuccessEvent,
    StateFullEvent,
    GameEndedEvent,
    ErrorEvent,
    ChatMessageEvent,
]


EVENT_MAP = {
    EventType.CREATE_ROOM: CreateRoomEvent,
    EventType.JOIN_ROOM: JoinRoomEvent,
    EventType.LEAVE_ROOM: LeaveRoomEvent,
    EventType.START_GAME: StartGameEvent,
    EventType.GAME_ACTION: GameActionEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
    EventType.CHAT: ChatEvent,
    EventType.RECONNECT: ReconnectEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Args:
        data: Raw event data from WebSocket

    Returns:
        Parsed event model

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    event_class = EVENT_MAP[event_type]
    try:
        return event_class(**data)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid event data: {e.errors(include_url=False)}")


def create_error_event(code: str, message: str) -> ErrorEvent:
    """Create an error event."""
    return ErrorEvent(
        code=code.value if isinstance(code, ErrorCode) else code,
        message=message,
        timestamp=time.time()
    )


def create_room_created_event(room_code: str, player_id: str) -> RoomCreatedEvent:
    return RoomCreatedEvent(room_code=room_code, player_id=player_id, timestamp=time.time())


def create_join_success_event(room_code: str, player_id: str) -> JoinSuccessEvent:
    """Create a join success event."""
    return JoinSuccessEvent(room_code=room_code, player_id=player_id, timestamp=time.time())


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    """Create a full state event."""
    return StateFullEvent(state=state, timestamp=time.time())


def create_game_ended_event(winner_id: Optional[str], winner_name: Optional[str]) -> GameEndedEvent:
    return GameEndedEvent(winner_id=winner_id, winner_name=winner_name, timestamp=time.time())


def create_chat_event(player_id: str, player_name: str, text: str) -> ChatMessageEvent:
    """Create a chat message event."""
    return ChatMessageEvent(
        player_id=player_id,
        player_name=player_name,
        text=text,
        timestamp=time.time()
    )
