"""
State serialization and sanitization utilities.
"""

from typing import Any, Dict, Optional

from .models import Action, Card, GameState, ModuleInstance, Player, Target
from .rules import GameSettings


def serialize_card(card: Card) -> Dict[str, Any]:
    return {
        "id": card.id,
        "type": card.type.value,
        "color": card.color.value if card.color else None,
        "effect": card.effect.value if card.effect else None,
        "name": dict(card.name),
        "description": dict(card.description),
    }


def serialize_module(module: ModuleInstance) -> Dict[str, Any]:
    return {
        "id": module.id,
        "card": serialize_card(module.card),
        "color": module.color.value,
        "state": module.state.value,
        "is_stabilized": module.is_stabilized,
        "bugs": [serialize_card(c) for c in module.bugs],
        "patches": [serialize_card(c) for c in module.patches],
    }


def serialize_target(target: Target) -> Dict[str, Any]:
    return {"player_id": target.player_id, "module_id": target.module_id}


def serialize_action(action: Optional[Action]) -> Optional[Dict[str, Any]]:
    if action is None:
        return None
    payload = action.payload
    return {
        "type": action.type.value,
        "player_id": action.player_id,
        "timestamp": action.timestamp,
        "payload": {
            "card_id": payload.card_id,
            "targets": [serialize_target(t) for t in payload.targets],
            "bug_transfers": {bug_id: serialize_target(t) for bug_id, t in payload.bug_transfers.items()},
            "card_ids": list(payload.card_ids),
        },
    }


def serialize_settings(settings: GameSettings) -> Dict[str, Any]:
    """Serialize room settings."""
    return settings.model_dump(mode="json")


def serialize_player(player: Player, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """Public view of a player; the hand is included only for the viewer."""
    serialized = {
        "id": player.id,
        "name": player.name,
        "is_ai": player.is_ai,
        "is_host": player.is_host,
        "connected": player.connected,
        "skipped_turns": player.skipped_turns,
        "hand_count": len(player.hand),
        "modules": [serialize_module(m) for m in player.modules],
    }
    if player.id == viewer_id:
        serialized["hand"] = [serialize_card(c) for c in player.hand]
    return serialized


def sanitize_state(state: GameState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize room state for transmission to clients.

    Args:
        state: Room state to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Sanitized state dictionary safe for JSON transmission
    """
    current = state.current_player
    return {
        "code": state.code,
        "version": state.version,
        "phase": state.phase.value,
        "turn": state.turn,
        "current_player_index": state.current_player_index,
        "current_player_id": current.id if current else None,
        "winner": state.winner,
        "settings": serialize_settings(state.settings),
        "players": [serialize_player(p, viewer_id) for p in state.players],
        "deck_count": len(state.deck),
        "discard": [serialize_card(c) for c in state.discard],
        "last_action": serialize_action(state.last_action),
        "game_log": list(state.game_log),
    }


def get_public_room_info(state: GameState) -> Dict[str, Any]:
    """Get public information about a room for listings."""
    return {
        "code": state.code,
        "phase": state.phase.value,
        "player_count": len(state.players),
        "max_players": state.settings.max_players,
        "players": [
            {
                "id": p.id,
                "name": p.name,
                "is_ai": p.is_ai,
                "is_host": p.is_host,
                "connected": p.connected,
            }
            for p in state.players
        ],
    }