"""
Duel Brain - belief and probability driven policy for 1v1 play.

Every decision point:
1. Folds new public events into the belief tracker (opponent claim counts,
   blocked-assassination streak)
2. Builds a ProbabilityModel over the snapshot
3. Answers with an expected-value comparison or a fixed heuristic

Turn priorities (first match wins):
    coup at 7+ coins
    desperation (last card, opponent can coup next turn):
        lethal assassination > deny coins by stealing > assassination bluff
    assassinate (real or EV-positive bluff, unless the anti-loop guard says no)
    tax
    steal
    foreign aid (when dukes are plentiful and the periodic counter allows)
    income

Bluffs are never made for a role with no unseen copy left.
"""

import logging
from dataclasses import dataclass, fields
from typing import Dict, Optional, Sequence, Tuple

from coupbot.belief_tracker import BeliefTracker
from coupbot.models import Action, ActionKind, Role, StateSnapshot
from coupbot.probability import ProbabilityConfig, ProbabilityModel

from .interface import Brain

logger = logging.getLogger(__name__)

# Card worth when revealing a card on loss (lowest is given up first)
LOSS_RANK: Dict[Role, int] = {
    Role.DUKE: 5,
    Role.CONTESSA: 4,
    Role.ASSASSIN: 3,
    Role.CAPTAIN: 2,
    Role.AMBASSADOR: 1,
}

# Card worth when choosing what to keep after an exchange
EXCHANGE_RANK: Dict[Role, int] = {
    Role.DUKE: 5,
    Role.ASSASSIN: 4,
    Role.CONTESSA: 3,
    Role.CAPTAIN: 2,
    Role.AMBASSADOR: 1,
}

# (stake, reward_delta vs. income) for each turn-action claim
BLUFF_PROFILES: Dict[str, Tuple[float, float]] = {
    'desperate_lethal': (1.45, 2.5),
    'desperate_steal': (1.20, 2.0),
    'last_resort_assassin': (1.55, 2.2),
    'assassinate': (1.35, 1.8),
    'tax': (1.10, 2.0),
    'steal': (1.05, 1.5),
    'steal_under_threat': (1.25, 2.0),
}

# Stake of a block claim
COUNTER_STAKES: Dict[Role, float] = {
    Role.CONTESSA: 1.35,
    Role.DUKE: 1.05,
    Role.CAPTAIN: 1.05,
    Role.AMBASSADOR: 1.00,
}

# (v_win, v_lose) when challenging a claimed action
CHALLENGE_WEIGHTS: Dict[ActionKind, Tuple[float, float]] = {
    ActionKind.ASSASSINATION: (1.25, 1.0),
    ActionKind.TAX: (1.10, 1.0),
    ActionKind.EXCHANGE: (0.80, 1.0),
}


@dataclass
class PolicyConfig:
    """Thresholds of the duel policy."""
    coup_threshold: int = 7
    assassination_cost: int = 3
    bluff_ev_margin: float = 0.10
    last_card_risk_loss: float = 2.0

    # Anti-loop guard for assassinations
    block_streak_soft: int = 1
    block_streak_soft_p: float = 0.55
    block_streak_hard: int = 2
    block_streak_hard_p: float = 0.40

    coup_threat_coins: int = 4
    steal_min_opponent_coins: int = 2
    foreign_aid_min_hidden_dukes: int = 2
    foreign_aid_period: int = 3

    # Max opponent challenge probability for a bluffed block
    contessa_bluff_ceiling: float = 0.35
    duke_bluff_ceiling: float = 0.40
    steal_block_bluff_ceiling: float = 0.35

    # Challenge payoffs
    last_card_lose_factor: float = 1.6
    challenge_lose_factor: float = 1.10
    tax_desperation_coins: int = 4
    tax_desperation_factor: float = 2.2
    contessa_challenge_win: float = 1.20
    contessa_challenge_max_streak: int = 2

    @classmethod
    def from_dict(cls, d: dict) -> 'PolicyConfig':
        defaults = cls()
        return cls(**{f.name: d.get(f.name, getattr(defaults, f.name)) for f in fields(cls)})

    @classmethod
    def from_strategy_config(cls) -> 'PolicyConfig':
        from coupbot.strategy_config import get_config
        return cls.from_dict(get_config().get_section('policy'))


class DuelBrain(Brain):
    """
    Strict two-player policy.

    The belief tracker is the only state carried between calls; every
    decision is otherwise a function of (snapshot, beliefs, probabilities).
    """

    def __init__(self, policy: Optional[PolicyConfig] = None,
                 probability: Optional[ProbabilityConfig] = None,
                 tracker: Optional[BeliefTracker] = None):
        super().__init__()
        self.policy = policy or PolicyConfig()
        self.probability_config = probability or ProbabilityConfig()
        self.tracker = tracker or BeliefTracker()

    def get_name(self) -> str:
        return "DuelBot"

    def _observe(self, snapshot: StateSnapshot) -> ProbabilityModel:
        """Catch up on history and build the probability model."""
        # Fails hard outside 1v1, even on an empty history
        snapshot.opponent()
        self.tracker.update(snapshot)
        return ProbabilityModel(snapshot, self.tracker.memory.opp_claims, self.probability_config)

    # =========================================================================
    # HEURISTICS
    # =========================================================================

    def bluff_ev_ok(self, snapshot: StateSnapshot, model: ProbabilityModel,
                    role: Role, stake: float, reward_delta: float) -> bool:
        """
        Is claiming `role` without holding it worth it?

        EV = P(no challenge) * reward_delta - P(challenge) * risk_loss,
        where risk_loss doubles on our last card. Admitted above the margin.
        """
        if model.remaining_copies(role) == 0:
            return False

        p_chal = model.p_challenges(role, stake)
        risk_loss = self.policy.last_card_risk_loss if snapshot.on_last_card else 1.0
        ev = (1.0 - p_chal) * reward_delta - p_chal * risk_loss
        return ev > self.policy.bluff_ev_margin

    def _claim_source(self, snapshot: StateSnapshot, model: ProbabilityModel,
                      role: Role, profile: str) -> Optional[str]:
        """'real' if we hold role, 'bluff' if bluffing it pays, else None."""
        if snapshot.holds(role):
            return "real"
        stake, reward_delta = BLUFF_PROFILES[profile]
        if self.bluff_ev_ok(snapshot, model, role, stake, reward_delta):
            return "bluff"
        return None

    def imminent_coup_loss(self, snapshot: StateSnapshot) -> bool:
        """One card left and the opponent can coup us next turn."""
        return snapshot.on_last_card and snapshot.opponent().coins >= self.policy.coup_threshold

    def coup_threat_next_turn(self, snapshot: StateSnapshot) -> bool:
        """Opponent can plausibly reach coup range with one more action."""
        return snapshot.opponent().coins >= self.policy.coup_threat_coins

    def should_attempt_assassination(self, snapshot: StateSnapshot,
                                     model: ProbabilityModel) -> bool:
        """Avoid donating coins into a contessa that keeps blocking."""
        cfg = self.policy
        if snapshot.coins < cfg.assassination_cost:
            return False

        streak = self.tracker.blocked_streak
        if streak == 0:
            return True

        p_contessa = model.p_holds(Role.CONTESSA, snapshot.opponent().cards)
        if streak >= cfg.block_streak_soft and p_contessa > cfg.block_streak_soft_p:
            return False
        if streak >= cfg.block_streak_hard and p_contessa > cfg.block_streak_hard_p:
            return False
        return True

    def should_challenge_action(self, snapshot: StateSnapshot, model: ProbabilityModel,
                                action: Action) -> Tuple[bool, str]:
        role = action.required_role
        if role is None:
            return False, "unchallengeable"

        if model.remaining_copies(role) == 0:
            return True, f"no {role.value} left unseen"

        cfg = self.policy
        opp = snapshot.opponent()
        p_has = model.p_holds(role, opp.cards)

        v_win, v_lose = CHALLENGE_WEIGHTS.get(action.kind, (1.0, 1.0))
        life_factor = cfg.last_card_lose_factor if snapshot.on_last_card else 1.0
        v_lose *= cfg.challenge_lose_factor * life_factor

        # A duke on the coup path must be contested when we are one card from death
        if (action.kind == ActionKind.TAX and snapshot.on_last_card
                and opp.coins >= cfg.tax_desperation_coins):
            v_win *= cfg.tax_desperation_factor

        challenge = (1.0 - p_has) * v_win > p_has * v_lose
        return challenge, f"p_{role.value}={p_has:.2f} win={v_win:.2f} lose={v_lose:.2f}"

    def should_challenge_contessa_block(self, snapshot: StateSnapshot,
                                        model: ProbabilityModel) -> Tuple[bool, str]:
        cfg = self.policy
        if self.tracker.blocked_streak >= cfg.contessa_challenge_max_streak:
            return False, f"blocked {self.tracker.blocked_streak}x, not challenging again"

        if model.remaining_copies(Role.CONTESSA) == 0:
            return True, "no contessa left unseen"

        p_has = model.p_holds(Role.CONTESSA, snapshot.opponent().cards)
        v_win = cfg.contessa_challenge_win
        v_lose = cfg.last_card_lose_factor if snapshot.on_last_card else 1.0
        challenge = (1.0 - p_has) * v_win > p_has * v_lose
        return challenge, f"p_contessa={p_has:.2f}"

    # =========================================================================
    # DECISION POINTS
    # =========================================================================

    def choose_turn_action(self, snapshot: StateSnapshot) -> Action:
        model = self._observe(snapshot)
        cfg = self.policy
        opp = snapshot.opponent()
        target = opp.name

        if snapshot.coins >= cfg.coup_threshold:
            return self._turn(snapshot, Action.coup(target), "coup threshold reached")

        if self.imminent_coup_loss(snapshot):
            # Win now: opponent is on their last card
            if opp.cards <= 1 and self.should_attempt_assassination(snapshot, model):
                source = self._claim_source(snapshot, model, Role.ASSASSIN, 'desperate_lethal')
                if source:
                    return self._turn(snapshot, Action.assassinate(target),
                                      f"desperate: lethal assassination ({source})")

            # Deny the coup by taking coins
            if opp.coins >= cfg.steal_min_opponent_coins:
                source = self._claim_source(snapshot, model, Role.CAPTAIN, 'desperate_steal')
                if source:
                    return self._turn(snapshot, Action.steal(target),
                                      f"desperate: deny coup coins ({source})")

            if self.should_attempt_assassination(snapshot, model):
                stake, reward_delta = BLUFF_PROFILES['last_resort_assassin']
                if self.bluff_ev_ok(snapshot, model, Role.ASSASSIN, stake, reward_delta):
                    return self._turn(snapshot, Action.assassinate(target),
                                      "desperate: last resort assassination")

        if self.should_attempt_assassination(snapshot, model):
            source = self._claim_source(snapshot, model, Role.ASSASSIN, 'assassinate')
            if source:
                return self._turn(snapshot, Action.assassinate(target), f"assassinate ({source})")

        source = self._claim_source(snapshot, model, Role.DUKE, 'tax')
        if source:
            return self._turn(snapshot, Action.tax(), f"tax ({source})")

        if opp.coins >= cfg.steal_min_opponent_coins:
            source = self._claim_source(snapshot, model, Role.CAPTAIN, 'steal')
            if source is None and self.coup_threat_next_turn(snapshot):
                source = self._claim_source(snapshot, model, Role.CAPTAIN, 'steal_under_threat')
            if source:
                return self._turn(snapshot, Action.steal(target), f"steal ({source})")

        if (model.remaining_copies(Role.DUKE) >= cfg.foreign_aid_min_hidden_dukes
                and len(snapshot.history) % cfg.foreign_aid_period == 0):
            return self._turn(snapshot, Action.foreign_aid(), "foreign aid window")

        return self._turn(snapshot, Action.income(), "safe fallback")

    def _turn(self, snapshot: StateSnapshot, action: Action, reasoning: str) -> Action:
        self.tracker.set_lethal_pending(action.kind == ActionKind.ASSASSINATION)
        self._record(snapshot, "turn", str(action), reasoning)
        return action

    def choose_auto_coup_target(self, snapshot: StateSnapshot) -> str:
        self._observe(snapshot)
        target = snapshot.opponent().name
        self._record(snapshot, "auto_coup", target)
        return target

    def decide_challenge_action(self, action: Action, claimant: str,
                                snapshot: StateSnapshot) -> bool:
        model = self._observe(snapshot)
        if claimant == snapshot.name:
            return False

        challenge, reasoning = self.should_challenge_action(snapshot, model, action)
        self._record(snapshot, "challenge_action", f"{challenge} vs {claimant} {action}", reasoning)
        return challenge

    def decide_counter(self, action: Action, claimant: str,
                       snapshot: StateSnapshot) -> bool:
        model = self._observe(snapshot)
        if claimant == snapshot.name:
            return False

        block, reasoning = False, "not blockable"
        if action.blocking_roles:
            block, reasoning = self._block_with(snapshot, model, action.blocking_roles,
                                                self._bluff_ceiling(action.kind))

        self._record(snapshot, "counter", f"{block} vs {claimant} {action}", reasoning)
        return block

    def _bluff_ceiling(self, kind: ActionKind) -> float:
        cfg = self.policy
        if kind == ActionKind.ASSASSINATION:
            return cfg.contessa_bluff_ceiling
        if kind == ActionKind.FOREIGN_AID:
            return cfg.duke_bluff_ceiling
        return cfg.steal_block_bluff_ceiling

    def _block_with(self, snapshot: StateSnapshot, model: ProbabilityModel,
                    roles: Sequence[Role], ceiling: float) -> Tuple[bool, str]:
        """Block genuinely with any held role, else bluff one that clears the ceiling."""
        for role in roles:
            if snapshot.holds(role):
                return True, f"real {role.value}"

        for role in roles:
            if model.remaining_copies(role) == 0:
                continue
            p_chal = model.p_challenges(role, COUNTER_STAKES[role])
            if p_chal < ceiling:
                return True, f"bluff {role.value} (p_challenge={p_chal:.2f})"

        return False, "bluff too risky"

    def decide_challenge_counter(self, action: Action, claimant: str,
                                 snapshot: StateSnapshot) -> bool:
        model = self._observe(snapshot)
        if claimant == snapshot.name:
            return False

        challenge, reasoning = False, "not blockable"

        if action.kind == ActionKind.ASSASSINATION:
            challenge, reasoning = self.should_challenge_contessa_block(snapshot, model)

        elif action.kind == ActionKind.FOREIGN_AID:
            challenge = model.remaining_copies(Role.DUKE) == 0
            reasoning = "no duke left unseen" if challenge else "duke still possible"

        elif action.kind == ActionKind.STEALING:
            cap_rem = model.remaining_copies(Role.CAPTAIN)
            amb_rem = model.remaining_copies(Role.AMBASSADOR)
            challenge = cap_rem == 0 and amb_rem == 0
            if self.imminent_coup_loss(snapshot):
                # Both blockers scarce: the block is likely a bluff and we die anyway
                challenge = challenge or (cap_rem <= 1 and amb_rem <= 1)
            reasoning = f"captain_left={cap_rem} ambassador_left={amb_rem}"

        self._record(snapshot, "challenge_counter", f"{challenge} vs {claimant} {action}", reasoning)
        return challenge

    def choose_cards_after_exchange(self, drawn: Sequence[Role],
                                    snapshot: StateSnapshot) -> Tuple[Role, ...]:
        """
        Keep the best cards out of hand + drawn, return the rest.

        Ranking: duke > assassin > contessa > captain > ambassador. Equal
        ranks keep whichever comes first (current hand before drawn cards).
        """
        self._observe(snapshot)
        if len(drawn) != 2:
            raise ValueError(f"exchange draws exactly 2 cards, got {len(drawn)}")

        pool = list(snapshot.cards) + list(drawn)
        by_rank = sorted(range(len(pool)), key=lambda i: -EXCHANGE_RANK[pool[i]])
        keep = set(by_rank[:len(snapshot.cards)])
        discarded = tuple(pool[i] for i in range(len(pool)) if i not in keep)

        self._record(snapshot, "exchange", " ".join(r.value for r in discarded),
                     "kept " + " ".join(pool[i].value for i in sorted(keep)))
        return discarded

    def choose_card_to_lose(self, snapshot: StateSnapshot) -> Role:
        """Give up the least valuable card we hold."""
        self._observe(snapshot)
        if not snapshot.cards:
            raise ValueError(f"{snapshot.name}: no card left to lose")

        card = min(snapshot.cards, key=lambda r: LOSS_RANK[r])
        self._record(snapshot, "lose_card", card.value)
        return card
