"""
Operation card effects.
"""

import logging
from typing import Tuple

from .constants import ModuleState, OperationEffect
from .errors import (
    DUPLICATE_COLOR, DUPLICATE_COLORS_AFTER_SWAP, INVALID_ACTION, INVALID_TARGET,
    STABILIZED_TARGET, raise_error,
)
from .models import ActionPayload, Card, GameState, ModuleInstance, Player, Target
from .validate import colors_compatible, has_duplicate_colors, owns_color

logger = logging.getLogger(__name__)


def resolve_operation(state: GameState, actor: Player, card: Card,
                      payload: ActionPayload, apply: bool = True):
    """
    Check and (optionally) apply an operation card's effect.

    Every effect validates its inputs before touching the state, so calling
    with apply=False is a pure legality check.

    Args:
        state: Game state to mutate
        actor: Player who played the card
        card: The operation card
        payload: Targets / transfers submitted with the card
        apply: When False, only validate

    Raises:
        ValidationError: If the effect cannot be resolved as requested
    """
    effect = card.effect
    if effect == OperationEffect.ARCHITECT_CHANGE:
        _architect_change(state, actor, payload, apply)
    elif effect == OperationEffect.RECRUIT_ACE:
        _recruit_ace(state, actor, payload, apply)
    elif effect == OperationEffect.INTERNAL_PHISHING:
        _internal_phishing(state, actor, payload, apply)
    elif effect == OperationEffect.END_YEAR_PARTY:
        if apply:
            _end_year_party(state, actor)
    elif effect == OperationEffect.PROJECT_SWAP:
        _project_swap(state, actor, payload, apply)
    else:
        raise_error(INVALID_ACTION, f"Unknown operation effect: {effect}")


def _locate(state: GameState, target: Target) -> Tuple[Player, ModuleInstance]:
    owner = state.get_player(target.player_id)
    module = owner.find_module(target.module_id) if owner and target.module_id else None
    if module is None:
        raise_error(INVALID_TARGET, "Target module not found")
    return owner, module


def _architect_change(state: GameState, actor: Player, payload: ActionPayload, apply: bool):
    if len(payload.targets) != 2:
        raise_error(INVALID_TARGET, "Architect Change requires exactly 2 modules")

    owner_a, module_a = _locate(state, payload.targets[0])
    owner_b, module_b = _locate(state, payload.targets[1])
    if module_a is module_b:
        raise_error(INVALID_TARGET, "Architect Change requires two different modules")

    if owner_a is not owner_b:
        after_a = [m for m in owner_a.modules if m is not module_a] + [module_b]
        after_b = [m for m in owner_b.modules if m is not module_b] + [module_a]
        if has_duplicate_colors(after_a) or has_duplicate_colors(after_b):
            raise_error(DUPLICATE_COLORS_AFTER_SWAP, "Cannot swap: would create duplicate module colors")

    if not apply:
        return

    index_a = owner_a.modules.index(module_a)
    index_b = owner_b.modules.index(module_b)
    owner_a.modules[index_a] = module_b
    owner_b.modules[index_b] = module_a
    logger.debug(f"Architect Change: {module_a.id} ({owner_a.id}) <-> {module_b.id} ({owner_b.id})")
    state.game_log.append(
        f"{actor.name} swapped {owner_a.name}'s {module_a.id} with {owner_b.name}'s {module_b.id}"
    )


def _recruit_ace(state: GameState, actor: Player, payload: ActionPayload, apply: bool):
    if len(payload.targets) != 1:
        raise_error(INVALID_TARGET, "Recruit Ace requires target player and module")

    owner, module = _locate(state, payload.targets[0])
    if owner is actor:
        raise_error(INVALID_TARGET, "Invalid target player for Recruit Ace")
    if module.state == ModuleState.STABILIZED:
        raise_error(STABILIZED_TARGET, "Cannot steal stabilized modules")
    if owns_color(actor, module.color):
        raise_error(DUPLICATE_COLOR, "Already have this module color")

    if not apply:
        return

    owner.modules.remove(module)
    actor.modules.append(module)
    state.game_log.append(f"{actor.name} recruited {module.id} from {owner.name}")


def _internal_phishing(state: GameState, actor: Player, payload: ActionPayload, apply: bool):
    own_bugs = {bug.id for module in actor.modules for bug in module.bugs}
    for bug_id in payload.bug_transfers:
        if bug_id not in own_bugs:
            raise_error(INVALID_TARGET, f"Bug {bug_id} is not attached to your modules")

    if not apply:
        return

    transferred = 0
    for source in actor.modules:
        for bug in list(source.bugs):
            destination = payload.bug_transfers.get(bug.id)
            if destination is None or destination.player_id == actor.id:
                continue
            owner = state.get_player(destination.player_id)
            module = owner.find_module(destination.module_id) if owner and destination.module_id else None
            # Only free, color compatible modules can receive a bug; the rest stay put
            if module is None or module.state != ModuleState.FREE:
                continue
            if not colors_compatible(bug.color, module.color):
                continue
            source.bugs.remove(bug)
            module.bugs.append(bug)
            module.state = ModuleState.BUGGED
            transferred += 1

        if not source.bugs and source.state == ModuleState.BUGGED:
            source.state = ModuleState.FREE

    state.game_log.append(f"{actor.name} phished {transferred} bug(s) onto rival modules")


def _end_year_party(state: GameState, actor: Player):
    for player in state.opponents_of(actor.id):
        discarded = len(player.hand)
        state.discard.extend(player.hand)
        player.hand = []
        player.skipped_turns += 1
        logger.debug(f"End Year Party: {player.id} discarded {discarded} cards and will skip a turn")
    state.game_log.append(f"{actor.name} threw an End of Year Party: everyone else loses their hand and next turn")


def _project_swap(state: GameState, actor: Player, payload: ActionPayload, apply: bool):
    if len(payload.targets) != 1:
        raise_error(INVALID_TARGET, "Project Swap requires target player")

    opponent = state.get_player(payload.targets[0].player_id)
    if opponent is None or opponent is actor:
        raise_error(INVALID_TARGET, "Invalid target player for Project Swap")

    if not apply:
        return

    # Whole collections move verbatim, stabilized modules included
    actor.modules, opponent.modules = opponent.modules, actor.modules
    state.game_log.append(f"{actor.name} swapped projects with {opponent.name}")
