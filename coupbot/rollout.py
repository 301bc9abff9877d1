"""
Rollout Search - flat Monte Carlo action estimator.

Builds a reduced, forward-simulatable projection of the snapshot (SimState)
and scores each legal root action by the total reward of independent
fixed-depth random continuations.

This is a one-ply average-reward baseline, NOT a tree search:
- no tree expansion or per-node statistics
- no backpropagation along a visited path
- no exploration bonus beyond uniform random rollouts

Reduced model:
- Actions: income always; coup on the first listed opponent at 7+ coins
- Income: +1 coin. Coup: -7 coins. Anything else: no-op
- Terminal when the opponent roster is empty (reward 1.0, else 0.0)

With model_eliminations=False the roster never shrinks, so nearly every
rollout scores 0 and root actions tie. model_eliminations=True lets a coup
remove a card from its target and drop eliminated opponents, which makes
the terminal reward reachable.

A rollout that runs out of depth is scored with state.reward(), not a flat
0.0. The two only differ when the last simulated step ends the game, which
needs model_eliminations=True.
"""

import logging
import random
from dataclasses import dataclass, fields, replace
from typing import Dict, List, Optional, Tuple

from .models import COUP_COST, Action, ActionKind, OpponentView, Role, StateSnapshot

logger = logging.getLogger(__name__)


@dataclass
class RolloutConfig:
    """Fixed computational bounds for the search."""
    search_iterations: int = 200
    rollouts_per_action: int = 50
    depth: int = 20
    model_eliminations: bool = True
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, d: dict) -> 'RolloutConfig':
        defaults = cls()
        return cls(**{f.name: d.get(f.name, getattr(defaults, f.name)) for f in fields(cls)})

    @classmethod
    def from_strategy_config(cls) -> 'RolloutConfig':
        from coupbot.strategy_config import get_config
        return cls.from_dict(get_config().get_section('rollout'))


@dataclass(frozen=True)
class SimState:
    """Lossy projection of a snapshot used only for simulation."""
    my_name: str
    my_cards: Tuple[Role, ...]
    my_coins: int
    opponents: Tuple[OpponentView, ...]
    model_eliminations: bool = False

    @classmethod
    def from_snapshot(cls, snapshot: StateSnapshot, model_eliminations: bool = False) -> 'SimState':
        return cls(
            my_name=snapshot.name,
            my_cards=tuple(snapshot.cards),
            my_coins=snapshot.coins,
            opponents=tuple(snapshot.others),
            model_eliminations=model_eliminations,
        )

    def legal_actions(self) -> List[Action]:
        actions = [Action.income()]
        if self.my_coins >= COUP_COST and self.opponents:
            actions.append(Action.coup(self.opponents[0].name))
        return actions

    def apply_action(self, action: Action) -> 'SimState':
        if action.kind == ActionKind.INCOME:
            return replace(self, my_coins=self.my_coins + 1)
        if action.kind == ActionKind.COUP:
            opponents = self.opponents
            if self.model_eliminations:
                opponents = self._after_coup(action.target)
            return replace(self, my_coins=self.my_coins - COUP_COST, opponents=opponents)
        return self

    def _after_coup(self, target: Optional[str]) -> Tuple[OpponentView, ...]:
        remaining = []
        for opp in self.opponents:
            if opp.name == target:
                if opp.cards <= 1:
                    continue
                opp = replace(opp, cards=opp.cards - 1)
            remaining.append(opp)
        return tuple(remaining)

    def is_terminal(self) -> bool:
        return not self.opponents

    def reward(self) -> float:
        return 1.0 if self.is_terminal() else 0.0


class RolloutSearch:
    """
    Flat rollout estimator over a SimState root.

    Each instance owns its random generator, so concurrent searches never
    share a stream.
    """

    def __init__(self, root: SimState, config: Optional[RolloutConfig] = None,
                 rng: Optional[random.Random] = None):
        self.root = root
        self.config = config or RolloutConfig()
        self.rng = rng or random.Random(self.config.seed)

        # Diagnostics only
        self.root_visits = 0
        self.root_value = 0.0
        self.action_totals: Dict[str, float] = {}

    def rollout(self, state: SimState) -> float:
        """One random continuation of at most `depth` steps."""
        for _ in range(self.config.depth):
            if state.is_terminal():
                return state.reward()
            actions = state.legal_actions()
            if not actions:
                return 0.0
            state = state.apply_action(self.rng.choice(actions))
        return state.reward()

    def search(self, iterations: Optional[int] = None):
        """Run independent rollouts from the root and accumulate totals."""
        if iterations is None:
            iterations = self.config.search_iterations
        for _ in range(iterations):
            self.root_value += self.rollout(self.root)
            self.root_visits += 1
        logger.debug(f"Root search: visits={self.root_visits}, value={self.root_value:.1f}")

    def best_action(self) -> Action:
        """
        Score every legal root action and return the best one.

        Ties keep the first action enumerated; income when nothing is legal.
        """
        best_action: Optional[Action] = None
        best_score = float('-inf')
        self.action_totals = {}

        for action in self.root.legal_actions():
            next_state = self.root.apply_action(action)
            total = sum(self.rollout(next_state) for _ in range(self.config.rollouts_per_action))
            self.action_totals[str(action)] = total
            if total > best_score:
                best_score = total
                best_action = action

        if best_action is None:
            return Action.income()

        logger.debug(f"Rollout totals: {self.format_totals(self.action_totals)}")
        return best_action

    @staticmethod
    def format_totals(totals: Dict[str, float]) -> str:
        """Format per-action totals as a compact string like 'income:0 coup->bob:12'"""
        return " ".join(f"{k}:{v:g}" for k, v in totals.items())
