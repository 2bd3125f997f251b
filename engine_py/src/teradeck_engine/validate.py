"""
Target resolution and validation for card plays.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import CardType, Color, ModuleState, OperationEffect, TargetType
from .errors import (
    COLOR_MISMATCH, DUPLICATE_COLOR, INVALID_TARGET, NOT_ENOUGH_TARGETS,
    PLAYER_NOT_FOUND, STABILIZED_TARGET, TOO_MANY_TARGETS,
)
from .models import Card, GameState, ModuleInstance, Player, Target


class ValidationResult:
    """Result of target validation."""

    def __init__(
        self,
        valid: bool,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None
    ):
        self.valid = valid
        self.error_code = error_code
        self.error_message = error_message

    @classmethod
    def success(cls) -> 'ValidationResult':
        """Create a successful validation result."""
        return cls(valid=True)

    @classmethod
    def error(cls, error_code: str, error_message: str) -> 'ValidationResult':
        """Create an error validation result."""
        return cls(valid=False, error_code=error_code, error_message=error_message)


@dataclass
class TargetRequirements:
    target_type: TargetType
    min_targets: int
    max_targets: int


@dataclass
class TargetDescriptor:
    type: TargetType
    player_id: str
    player_name: str
    module_id: Optional[str] = None
    is_valid: bool = True
    reason: Optional[str] = None
    error_code: Optional[str] = None


CARD_TARGET_REQUIREMENTS: Dict[object, TargetRequirements] = {
    CardType.MODULE: TargetRequirements(TargetType.NONE, 0, 0),
    CardType.BUG: TargetRequirements(TargetType.ENEMY_MODULE, 1, 1),
    CardType.PATCH: TargetRequirements(TargetType.OWN_MODULE, 1, 1),
    OperationEffect.ARCHITECT_CHANGE: TargetRequirements(TargetType.ANY_MODULE, 2, 2),
    OperationEffect.RECRUIT_ACE: TargetRequirements(TargetType.ENEMY_MODULE, 1, 1),
    # Destinations travel in the bug transfer map, not in the target list
    OperationEffect.INTERNAL_PHISHING: TargetRequirements(TargetType.NONE, 0, 0),
    OperationEffect.END_YEAR_PARTY: TargetRequirements(TargetType.NONE, 0, 0),
    OperationEffect.PROJECT_SWAP: TargetRequirements(TargetType.ENEMY_PLAYER, 1, 1),
}


def get_target_requirements(card: Card) -> TargetRequirements:
    """Get targeting requirements for a card."""
    if card.type == CardType.OPERATION:
        return CARD_TARGET_REQUIREMENTS[card.effect]
    return CARD_TARGET_REQUIREMENTS[card.type]


def card_requires_target(card: Card) -> bool:
    return get_target_requirements(card).min_targets > 0


def colors_compatible(card_color: Optional[Color], module_color: Optional[Color]) -> bool:
    """Either side MULTICOLOR, or the same color."""
    return (
        card_color == Color.MULTICOLOR
        or module_color == Color.MULTICOLOR
        or card_color == module_color
    )


def has_duplicate_colors(modules: Iterable[ModuleInstance]) -> bool:
    """True if two non-MULTICOLOR modules share a color."""
    colors = Counter(m.color for m in modules if m.color != Color.MULTICOLOR)
    return any(count > 1 for count in colors.values())


def owns_color(player: Player, color: Color) -> bool:
    """True if the player already holds a non-MULTICOLOR module of this color."""
    if color == Color.MULTICOLOR:
        return False
    return any(m.color == color for m in player.modules)


def _check_bug_target(card: Card, module: ModuleInstance) -> Tuple[Optional[str], Optional[str]]:
    if module.state == ModuleState.STABILIZED:
        return STABILIZED_TARGET, "Cannot target stabilized module"
    if not colors_compatible(card.color, module.color):
        return COLOR_MISMATCH, "Bug color does not match module color"
    return None, None


def _check_patch_target(card: Card, module: ModuleInstance) -> Tuple[Optional[str], Optional[str]]:
    if module.state == ModuleState.STABILIZED:
        return STABILIZED_TARGET, "Cannot target stabilized module"
    if not colors_compatible(card.color, module.color):
        return COLOR_MISMATCH, "Patch color does not match module color"
    return None, None


def _check_recruit_target(actor: Player, module: ModuleInstance) -> Tuple[Optional[str], Optional[str]]:
    if module.state == ModuleState.STABILIZED:
        return STABILIZED_TARGET, "Cannot steal stabilized modules"
    if owns_color(actor, module.color):
        return DUPLICATE_COLOR, "Already have this module color"
    return None, None


def _module_descriptor(target_type: TargetType, owner: Player, module: ModuleInstance,
                       check: Tuple[Optional[str], Optional[str]]) -> TargetDescriptor:
    error_code, reason = check
    return TargetDescriptor(
        type=target_type,
        player_id=owner.id,
        player_name=owner.name,
        module_id=module.id,
        is_valid=error_code is None,
        reason=reason,
        error_code=error_code,
    )


def get_valid_targets(card: Card, state: GameState, acting_player_id: str) -> List[TargetDescriptor]:
    """
    List every candidate target for a card, each tagged valid or not.

    Args:
        card: Card about to be played
        state: Current game state
        acting_player_id: Player who would play the card

    Returns:
        Target descriptors; invalid ones carry a reason
    """
    actor = state.get_player(acting_player_id)
    if actor is None:
        return []

    requirements = get_target_requirements(card)
    target_type = requirements.target_type
    targets = []

    if target_type == TargetType.OWN_MODULE:
        for module in actor.modules:
            targets.append(_module_descriptor(
                target_type, actor, module, _check_patch_target(card, module)))

    elif target_type == TargetType.ENEMY_MODULE:
        for player in state.opponents_of(acting_player_id):
            for module in player.modules:
                if card.type == CardType.BUG:
                    check = _check_bug_target(card, module)
                else:
                    check = _check_recruit_target(actor, module)
                targets.append(_module_descriptor(target_type, player, module, check))

    elif target_type == TargetType.ANY_MODULE:
        # Any module may be relocated by Architect Change, stabilized ones included
        for player in state.players:
            for module in player.modules:
                targets.append(_module_descriptor(target_type, player, module, (None, None)))

    elif target_type == TargetType.ENEMY_PLAYER:
        for player in state.opponents_of(acting_player_id):
            targets.append(TargetDescriptor(
                type=target_type,
                player_id=player.id,
                player_name=player.name,
                is_valid=player.connected,
                reason=None if player.connected else "Player is disconnected",
                error_code=None if player.connected else INVALID_TARGET,
            ))

    return targets


def validate_targets(card: Card, targets: List[Target], state: GameState,
                     acting_player_id: str) -> ValidationResult:
    """
    Check a client-submitted target list against the card's rules.

    Count bounds come from the card's requirements; every target must match
    a valid descriptor from get_valid_targets.
    """
    if state.get_player(acting_player_id) is None:
        return ValidationResult.error(PLAYER_NOT_FOUND, "Player not found")

    requirements = get_target_requirements(card)
    if len(targets) < requirements.min_targets:
        return ValidationResult.error(
            NOT_ENOUGH_TARGETS,
            f"{card.id} requires {requirements.min_targets} target(s)"
        )
    if len(targets) > requirements.max_targets:
        return ValidationResult.error(
            TOO_MANY_TARGETS,
            f"{card.id} accepts at most {requirements.max_targets} target(s)"
        )

    keys = [(t.player_id, t.module_id) for t in targets]
    if len(set(keys)) != len(keys):
        return ValidationResult.error(INVALID_TARGET, "The same target was selected twice")

    descriptors = {
        (d.player_id, d.module_id): d
        for d in get_valid_targets(card, state, acting_player_id)
    }
    for key in keys:
        descriptor = descriptors.get(key)
        if descriptor is None:
            return ValidationResult.error(INVALID_TARGET, "Target not found or not allowed for this card")
        if not descriptor.is_valid:
            return ValidationResult.error(descriptor.error_code or INVALID_TARGET, descriptor.reason)

    return ValidationResult.success()
