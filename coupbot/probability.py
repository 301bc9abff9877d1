"""
Probability Model

Turns public information into calibrated estimates about the opponent:
1. How many copies of a role are still unseen (remaining copies)
2. How many cards are unseen in total (opponent hand + undealt stock)
3. P(opponent holds at least one copy of a role) - hypergeometric, then
   adjusted for how often they have claimed it
4. P(opponent challenges a claim we make) - logistic opponent model

Pure functions over one snapshot plus the belief tracker's claim counts.
No state of its own.
"""

import logging
import math
from dataclasses import dataclass, fields
from typing import Dict, Mapping, Optional

from .models import COPIES_PER_ROLE, DECK_SIZE, Role, StateSnapshot

logger = logging.getLogger(__name__)

ODDS_EPSILON = 1e-9


@dataclass
class ProbabilityConfig:
    """Weights for the credibility adjustment and the challenge model."""
    credibility_weight: float = 0.35
    holds_floor: float = 0.001
    holds_ceiling: float = 0.999

    # Logistic challenge model
    challenge_bias: float = -0.65
    challenge_scarcity_weight: float = 1.55
    challenge_cards_weight: float = 0.35
    challenge_coins_weight: float = 0.12
    challenge_cover_weight: float = -0.4
    challenge_stake_weight: float = 0.35
    challenge_floor: float = 0.01
    challenge_ceiling: float = 0.99
    challenge_certain: float = 0.999  # provably false claim

    @classmethod
    def from_dict(cls, d: dict) -> 'ProbabilityConfig':
        defaults = cls()
        return cls(**{f.name: d.get(f.name, getattr(defaults, f.name)) for f in fields(cls)})

    @classmethod
    def from_strategy_config(cls) -> 'ProbabilityConfig':
        from coupbot.strategy_config import get_config
        return cls.from_dict(get_config().get_section('probability'))


def n_choose_k(n: int, k: int) -> float:
    """Binomial coefficient as a float; 0 for k outside [0, n]."""
    # Float loop instead of math.comb: callers divide two of these and want a float ratio
    if k < 0 or k > n:
        return 0.0
    k = min(k, n - k)
    num = 1.0
    den = 1.0
    for i in range(1, k + 1):
        num *= n - (k - i)
        den *= i
    return num / den


def sigmoid(x: float) -> float:
    return 1.0 / (1.0 + math.exp(-x))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ProbabilityModel:
    """
    Probability estimates for one decision point.

    Args:
        snapshot: The public view handed over by the engine
        claims: Opponent claim count per role (from the belief tracker)
        config: Model weights (defaults to the strategy config values)
    """

    def __init__(self, snapshot: StateSnapshot,
                 claims: Optional[Mapping[Role, int]] = None,
                 config: Optional[ProbabilityConfig] = None):
        self.snapshot = snapshot
        self.claims: Dict[Role, int] = dict(claims or {})
        self.config = config or ProbabilityConfig()

    # =========================================================================
    # CARD COUNTING
    # =========================================================================

    def visible_count(self, role: Role) -> int:
        """Copies of role we can see: our hand plus the discard pile."""
        return self.snapshot.cards.count(role) + self.snapshot.discard_pile.count(role)

    def remaining_copies(self, role: Role) -> int:
        return max(0, COPIES_PER_ROLE - self.visible_count(role))

    def hidden_total(self) -> int:
        visible = len(self.snapshot.cards) + len(self.snapshot.discard_pile)
        return max(0, DECK_SIZE - visible)

    # =========================================================================
    # OPPONENT HOLDINGS
    # =========================================================================

    def p_holds(self, role: Role, opponent_card_count: int) -> float:
        """
        P(opponent holds >= 1 copy of role), credibility-adjusted.

        Base: 1 - C(N - K, h) / C(N, h) with N unseen cards, K unseen copies
        of the role and h opponent cards. Each public claim of the role
        multiplies the odds by exp(credibility_weight).

        Returns 0.0 when no copy is unseen or there is nothing to draw;
        otherwise a value clamped to [holds_floor, holds_ceiling].
        """
        n = self.hidden_total()
        k = self.remaining_copies(role)
        if k == 0 or opponent_card_count <= 0 or n <= 0:
            return 0.0

        h = min(opponent_card_count, n)
        base = 1.0 - n_choose_k(n - k, h) / n_choose_k(n, h)

        claims = self.claims.get(role, 0)
        odds = base / (1.0 - base + ODDS_EPSILON)
        odds *= math.exp(self.config.credibility_weight * claims)
        p = clamp(odds / (1.0 + odds), self.config.holds_floor, self.config.holds_ceiling)

        logger.debug(f"p_holds({role.value}): N={n} K={k} h={h} base={base:.3f} "
                     f"claims={claims} -> {p:.3f}")
        return p

    # =========================================================================
    # OPPONENT CHALLENGE MODEL
    # =========================================================================

    def p_challenges(self, role: Role, stake: float) -> float:
        """
        P(opponent challenges our claim of role).

        Logistic over:
        - scarcity of the role (scarcer -> more challenges)
        - cover: if they plausibly hold it themselves they challenge less
        - their card and coin advantage over us
        - stake - 1: how conspicuous the claim is

        Args:
            role: The role we would claim
            stake: Conspicuousness of the claim (1.0 = ordinary)
        """
        cfg = self.config
        remaining = self.remaining_copies(role)
        if remaining == 0:
            return cfg.challenge_certain

        opp = self.snapshot.opponent()
        scarcity = 1.0 - remaining / COPIES_PER_ROLE
        p_opp_has = self.p_holds(role, opp.cards)
        cover_effect = (p_opp_has - 0.5) * cfg.challenge_cover_weight
        card_adv = opp.cards - len(self.snapshot.cards)
        coin_adv = opp.coins - self.snapshot.coins

        x = (cfg.challenge_bias
             + cfg.challenge_scarcity_weight * scarcity
             + cfg.challenge_cards_weight * card_adv
             + cfg.challenge_coins_weight * coin_adv
             + cover_effect
             + cfg.challenge_stake_weight * (stake - 1.0))

        p = clamp(sigmoid(x), cfg.challenge_floor, cfg.challenge_ceiling)
        logger.debug(f"p_challenges({role.value}, stake={stake:.2f}): x={x:.3f} -> {p:.3f}")
        return p
