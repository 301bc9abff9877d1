"""
Rollout Brain

Picks turn actions with the flat rollout search over a reduced SimState.
No belief tracking and no hidden-card inference; all other decision points
use the passive defaults of Brain.
"""

import logging
import random
from typing import Optional

from coupbot.models import Action, StateSnapshot
from coupbot.rollout import RolloutConfig, RolloutSearch, SimState

from .interface import Brain

logger = logging.getLogger(__name__)


class RolloutBrain(Brain):
    """Flat Monte Carlo strategy (one-ply, average reward)."""

    def __init__(self, config: Optional[RolloutConfig] = None):
        super().__init__()
        self.config = config or RolloutConfig()

    def get_name(self) -> str:
        return "RolloutBot"

    def choose_turn_action(self, snapshot: StateSnapshot) -> Action:
        root = SimState.from_snapshot(snapshot, model_eliminations=self.config.model_eliminations)

        # Fresh generator per call; a configured seed makes runs repeatable
        search = RolloutSearch(root, self.config, rng=random.Random(self.config.seed))
        search.search(self.config.search_iterations)
        action = search.best_action()

        self._record(snapshot, "turn", str(action),
                     RolloutSearch.format_totals(search.action_totals))
        return action
