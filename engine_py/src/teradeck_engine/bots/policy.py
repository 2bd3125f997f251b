"""
Decision policies for the three AI difficulty tiers.
"""

import logging
from enum import Enum
from typing import List, Optional

from .base import (
    BaseBot, find_leader, played_card, stabilized_count, target_player_id,
)
from ..constants import (
    AIDifficulty, CardType, HAND_SIZE, ModuleState, OperationEffect, WIN_MODULE_COUNT,
)
from ..engine import bug_free_modules, preview_action
from ..errors import ValidationError
from ..models import Action, GameState, Player

logger = logging.getLogger(__name__)


class GamePhaseTag(str, Enum):
    EARLY = "early"
    MID = "mid"
    LATE = "late"


class ThreatLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Opportunity(str, Enum):
    CAN_WIN = "can_win"
    BLOCK_LEADER = "block_leader"


class EasyBot(BaseBot):
    """Picks uniformly among every legal action."""

    def choose_action(self, state: GameState) -> Action:
        actions = self.get_legal_actions(state)
        if not actions:
            return self.fallback()
        return self.random_choice(state, actions)


class NormalBot(BaseBot):
    """
    Fixed priority list.

    Strategy:
    - Play a module
    - Patch one of its own bugged modules
    - Bug the leader
    - Play an operation that helps
    - Bug anyone
    - Discard when holding too many cards
    - Otherwise anything legal
    """

    def choose_action(self, state: GameState) -> Action:
        actions = self.get_legal_actions(state)
        if not actions:
            return self.fallback()
        return self.choose_from(state, actions)

    def choose_from(self, state: GameState, actions: List[Action]) -> Action:
        me = self.get_player(state)

        modules = self.actions_of_type(state, actions, CardType.MODULE)
        if modules:
            return modules[0]

        patches = [
            a for a in self.actions_of_type(state, actions, CardType.PATCH)
            if self._targets_bugged_module(me, a)
        ]
        if patches:
            return patches[0]

        bugs = self.actions_of_type(state, actions, CardType.BUG)
        leader = find_leader(state, self.player_id)
        if leader is not None:
            leader_bugs = [a for a in bugs if target_player_id(a) == leader.id]
            if leader_bugs:
                return leader_bugs[0]

        for action in self.actions_of_type(state, actions, CardType.OPERATION):
            if self.is_beneficial_operation(state, me, action):
                return action

        if bugs:
            return bugs[0]

        discards = self.discard_actions(actions)
        if len(me.hand) > HAND_SIZE and discards:
            return discards[0]

        return self.random_choice(state, actions)

    def _targets_bugged_module(self, me: Player, action: Action) -> bool:
        target = action.payload.targets[0]
        module = me.find_module(target.module_id)
        return module is not None and module.state == ModuleState.BUGGED

    def is_beneficial_operation(self, state: GameState, me: Player, action: Action) -> bool:
        """Whether an operation play leaves this bot better off than its rivals."""
        effect = played_card(state, action).effect

        if effect in (OperationEffect.RECRUIT_ACE, OperationEffect.END_YEAR_PARTY):
            return True

        if effect == OperationEffect.INTERNAL_PHISHING:
            return bool(action.payload.bug_transfers)

        if effect == OperationEffect.PROJECT_SWAP:
            opponent = state.get_player(target_player_id(action))
            return len(bug_free_modules(opponent)) > len(bug_free_modules(me))

        if effect == OperationEffect.ARCHITECT_CHANGE:
            # Worth it when a bugged module of ours is traded for a clean one
            mine = [t for t in action.payload.targets if t.player_id == me.id]
            theirs = [t for t in action.payload.targets if t.player_id != me.id]
            if len(mine) != 1 or len(theirs) != 1:
                return False
            own = me.find_module(mine[0].module_id)
            _, other = state.find_module(theirs[0].module_id)
            return bool(own.bugs) and other is not None and not other.bugs

        return False


class HardBot(NormalBot):
    """
    Reads the table before choosing.

    Strategy:
    - Early game: build modules
    - Mid and late game: take a winning play, else block an opponent close to winning
    - Late game: attack the leader under high threat
    - Otherwise play like NormalBot
    """

    def choose_action(self, state: GameState) -> Action:
        actions = self.get_legal_actions(state)
        if not actions:
            return self.fallback()

        phase = self.analyze_phase(state)
        threat = self.analyze_threat(state)
        opportunities = self.analyze_opportunities(state)
        logger.debug(f"HardBot {self.player_id}: phase={phase.value} threat={threat.value} "
                     f"opportunities={[o.value for o in opportunities]}")

        if phase == GamePhaseTag.EARLY:
            modules = self.actions_of_type(state, actions, CardType.MODULE)
            if modules:
                return modules[0]
            return self.choose_from(state, actions)

        if Opportunity.CAN_WIN in opportunities:
            winning = self.find_winning_action(state, actions)
            if winning is not None:
                return winning

        if Opportunity.BLOCK_LEADER in opportunities:
            block = self.find_blocking_action(state, actions)
            if block is not None:
                return block

        if phase == GamePhaseTag.LATE and threat == ThreatLevel.HIGH:
            attack = self.find_aggressive_bug(state, actions)
            if attack is not None:
                return attack
        return self.choose_from(state, actions)

    def analyze_phase(self, state: GameState) -> GamePhaseTag:
        most = max((len(p.modules) for p in state.players), default=0)
        if most <= 1:
            return GamePhaseTag.EARLY
        if most <= 2:
            return GamePhaseTag.MID
        return GamePhaseTag.LATE

    def analyze_threat(self, state: GameState) -> ThreatLevel:
        most = max((stabilized_count(p) for p in state.opponents_of(self.player_id)), default=0)
        if most >= 3:
            return ThreatLevel.HIGH
        if most >= 2:
            return ThreatLevel.MEDIUM
        return ThreatLevel.LOW

    def analyze_opportunities(self, state: GameState) -> List[Opportunity]:
        opportunities = []
        if len(bug_free_modules(self.get_player(state))) >= WIN_MODULE_COUNT - 1:
            opportunities.append(Opportunity.CAN_WIN)
        if self.near_win_opponents(state):
            opportunities.append(Opportunity.BLOCK_LEADER)
        return opportunities

    def near_win_opponents(self, state: GameState) -> List[Player]:
        return [
            p for p in state.opponents_of(self.player_id)
            if len(bug_free_modules(p)) >= WIN_MODULE_COUNT - 1
        ]

    def find_winning_action(self, state: GameState, actions: List[Action]) -> Optional[Action]:
        """First play whose immediate result makes this bot the winner."""
        for action in actions:
            if played_card(state, action) is None:
                continue
            try:
                outcome = preview_action(state, action)
            except ValidationError:
                continue
            if outcome.winner == self.player_id:
                return action
        return None

    def find_blocking_action(self, state: GameState, actions: List[Action]) -> Optional[Action]:
        """A play that knocks a near-win opponent's bug-free module count down."""
        threats = {p.id: len(bug_free_modules(p)) for p in self.near_win_opponents(state)}
        for action in actions:
            card = played_card(state, action)
            if card is None or card.type not in (CardType.BUG, CardType.OPERATION):
                continue
            if card.type == CardType.BUG and target_player_id(action) not in threats:
                continue
            try:
                outcome = preview_action(state, action)
            except ValidationError:
                continue
            if outcome.winner is not None and outcome.winner != self.player_id:
                continue
            for player_id, before in threats.items():
                after = outcome.get_player(player_id)
                if after is not None and len(bug_free_modules(after)) < before:
                    return action
        return None

    def find_aggressive_bug(self, state: GameState, actions: List[Action]) -> Optional[Action]:
        bugs = self.actions_of_type(state, actions, CardType.BUG)
        if not bugs:
            return None
        leader = find_leader(state, self.player_id)
        for action in bugs:
            if leader is not None and target_player_id(action) == leader.id:
                return action
        return bugs[0]


BOT_CLASSES = {
    AIDifficulty.EASY: EasyBot,
    AIDifficulty.NORMAL: NormalBot,
    AIDifficulty.HARD: HardBot,
}


def create_bot(player_id: str, difficulty: AIDifficulty) -> BaseBot:
    return BOT_CLASSES.get(difficulty, EasyBot)(player_id)


def decide(state: GameState, player_id: str, difficulty: AIDifficulty) -> Action:
    """
    Choose the next action for an AI player.

    The result is always legal for the current state; PASS_TURN comes back
    only when nothing else is.
    """
    bot = create_bot(player_id, difficulty)
    action = bot.choose_action(state)
    logger.debug(f"AI {player_id} ({difficulty.value}) chose {action.type.value}")
    return action
