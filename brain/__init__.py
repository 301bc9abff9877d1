"""
Brain Package

The brain is responsible for decision-making logic separate from the game engine.
Strategies form a closed set selected when a match is set up:

- DuelBrain: belief tracking + probability model + EV policy (1v1 only)
- RolloutBrain: flat Monte Carlo rollouts over a reduced simulation state
"""

from typing import Union

from config import config
from coupbot.probability import ProbabilityConfig
from coupbot.rollout import RolloutConfig

from .interface import Brain, BrainDecision, BrainKind
from .duel_brain import DuelBrain, PolicyConfig
from .rollout_brain import RolloutBrain


def create_brain(kind: Union[BrainKind, str, None] = None, from_config: bool = True) -> Brain:
    """
    Build the brain for a match.

    Args:
        kind: Strategy to use. None falls back to config.BOT_KIND.
        from_config: Load weights from the strategy config file (otherwise
                     built-in defaults)

    Raises:
        ValueError: Unknown strategy name
    """
    if kind is None:
        kind = config.BOT_KIND
    if isinstance(kind, str):
        kind = BrainKind.parse(kind)

    if kind == BrainKind.DUEL:
        if not from_config:
            return DuelBrain()
        return DuelBrain(policy=PolicyConfig.from_strategy_config(),
                         probability=ProbabilityConfig.from_strategy_config())

    if kind == BrainKind.ROLLOUT:
        if not from_config:
            return RolloutBrain()
        rollout_config = RolloutConfig.from_strategy_config()
        if config.ROLLOUT_SEED is not None:
            rollout_config.seed = config.ROLLOUT_SEED
        return RolloutBrain(rollout_config)

    raise ValueError(f"Unsupported bot kind: {kind}")


__all__ = [
    'Brain',
    'BrainDecision',
    'BrainKind',
    'DuelBrain',
    'PolicyConfig',
    'RolloutBrain',
    'create_brain',
]
