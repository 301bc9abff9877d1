"""
Coup duel bot core.

Public game models, the probability model, the opponent belief tracker and
the flat rollout search used by the bot strategies in the `brain` package.
"""

from .models import (
    Role,
    Action,
    ActionKind,
    EventKind,
    PublicEvent,
    OpponentView,
    StateSnapshot,
    TwoPlayerViolation,
    COPIES_PER_ROLE,
    DECK_SIZE,
)
from .probability import ProbabilityConfig, ProbabilityModel, n_choose_k
from .belief_tracker import BeliefMemory, BeliefTracker
from .rollout import RolloutConfig, RolloutSearch, SimState

__all__ = [
    'Role',
    'Action',
    'ActionKind',
    'EventKind',
    'PublicEvent',
    'OpponentView',
    'StateSnapshot',
    'TwoPlayerViolation',
    'COPIES_PER_ROLE',
    'DECK_SIZE',
    'ProbabilityConfig',
    'ProbabilityModel',
    'n_choose_k',
    'BeliefMemory',
    'BeliefTracker',
    'RolloutConfig',
    'RolloutSearch',
    'SimState',
]
