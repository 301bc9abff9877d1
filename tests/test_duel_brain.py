"""
Duel Brain Test Suite

Tests the 1v1 policy at every decision point:
- Turn priorities (coup, desperation, anti-loop guard, bluff gate, fallback)
- Challenging claimed actions
- Blocking (real and bluffed)
- Challenging blocks of our own actions
- Exchange and card-loss ranking

Run with: python -m pytest tests/test_duel_brain.py -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from unittest.mock import MagicMock

from brain.duel_brain import DuelBrain, PolicyConfig
from coupbot.models import (
    Action, ActionKind, EventKind, OpponentView, PublicEvent, Role, StateSnapshot,
    TwoPlayerViolation,
)


def make_snapshot(cards=(Role.DUKE, Role.CAPTAIN), coins=2, discard=(), history=(),
                  opp_cards=2, opp_coins=2):
    return StateSnapshot(
        name="me",
        cards=cards,
        coins=coins,
        discard_pile=discard,
        history=history,
        players=(OpponentView("me", coins, len(cards)), OpponentView("opp", opp_coins, opp_cards)),
    )


def blocked_assassinations(times):
    events = []
    for _ in range(times):
        events.append(PublicEvent(EventKind.ASSASSINATION, "me", "opp"))
        events.append(PublicEvent(EventKind.COUNTER_ASSASSINATION, "opp"))
    return tuple(events)


def no_bluff_brain():
    return DuelBrain(policy=PolicyConfig(bluff_ev_margin=100.0))


# =============================================================================
# TURN ACTION
# =============================================================================

class TestTurnAction:
    """Tests for choose_turn_action priorities."""

    def test_coup_at_threshold(self):
        brain = DuelBrain()
        action = brain.choose_turn_action(make_snapshot(coins=7))
        assert action == Action.coup("opp")
        assert brain.last_decision.reasoning == "coup threshold reached"

    def test_coup_above_threshold(self):
        action = DuelBrain().choose_turn_action(make_snapshot(coins=10, cards=(Role.ASSASSIN,)))
        assert action.kind == ActionKind.COUP

    def test_real_assassination(self):
        brain = DuelBrain()
        action = brain.choose_turn_action(make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), coins=3))
        assert action == Action.assassinate("opp")
        assert brain.last_decision.reasoning == "assassinate (real)"

    def test_assassination_sets_lethal_pending(self):
        brain = DuelBrain()
        brain.choose_turn_action(make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), coins=3))
        assert brain.tracker.lethal_pending is True

    def test_other_action_clears_lethal_pending(self):
        brain = DuelBrain()
        history = (PublicEvent(EventKind.ASSASSINATION, "me", "opp"),)
        action = brain.choose_turn_action(make_snapshot(history=history))
        assert action == Action.tax()
        assert brain.tracker.lethal_pending is False

    def test_anti_loop_guard_skips_assassination(self):
        """Blocked twice: contessa looks likely, so tax instead of paying again."""
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), coins=3,
                                 history=blocked_assassinations(2))
        action = brain.choose_turn_action(snapshot)
        assert brain.tracker.blocked_streak == 2
        assert action == Action.tax()

    def test_single_block_still_assassinates(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), coins=3,
                                 history=blocked_assassinations(1))
        action = brain.choose_turn_action(snapshot)
        assert brain.tracker.blocked_streak == 1
        assert action == Action.assassinate("opp")

    def test_real_tax(self):
        action = DuelBrain().choose_turn_action(make_snapshot())
        assert action == Action.tax()

    def test_real_steal(self):
        brain = no_bluff_brain()
        action = brain.choose_turn_action(make_snapshot(cards=(Role.CAPTAIN, Role.CONTESSA)))
        assert action == Action.steal("opp")

    def test_no_steal_from_poor_opponent(self):
        brain = no_bluff_brain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN, Role.CONTESSA), opp_coins=1)
        assert brain.choose_turn_action(snapshot).kind != ActionKind.STEALING

    def test_foreign_aid_window(self):
        brain = no_bluff_brain()
        action = brain.choose_turn_action(make_snapshot(cards=(Role.AMBASSADOR, Role.CONTESSA)))
        assert action == Action.foreign_aid()

    def test_income_outside_foreign_aid_window(self):
        brain = no_bluff_brain()
        history = (PublicEvent(EventKind.INCOME, "opp"),)
        action = brain.choose_turn_action(make_snapshot(cards=(Role.AMBASSADOR, Role.CONTESSA),
                                                        history=history))
        assert action == Action.income()
        assert brain.last_decision.reasoning == "safe fallback"

    def test_no_bluff_on_exhausted_role(self):
        """Every duke is visible, so tax can never be claimed."""
        brain = DuelBrain(policy=PolicyConfig(bluff_ev_margin=-100.0))
        snapshot = make_snapshot(cards=(Role.AMBASSADOR, Role.CONTESSA), coins=0,
                                 discard=(Role.DUKE,) * 3, opp_coins=0)
        action = brain.choose_turn_action(snapshot)
        assert action.kind != ActionKind.TAX

    def test_desperate_lethal_assassination(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN,), coins=3, opp_cards=1, opp_coins=7)
        action = brain.choose_turn_action(snapshot)
        assert action == Action.assassinate("opp")
        assert brain.last_decision.reasoning.startswith("desperate")

    def test_desperate_steal_denies_coup(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN,), coins=1, opp_cards=2, opp_coins=7)
        action = brain.choose_turn_action(snapshot)
        assert action == Action.steal("opp")
        assert brain.last_decision.reasoning == "desperate: deny coup coins (real)"

    def test_desperate_last_resort_assassination(self):
        """Opponent keeps 2 cards and captains are gone: only the assassin bluff is left."""
        brain = DuelBrain(policy=PolicyConfig(bluff_ev_margin=-1.0))
        snapshot = make_snapshot(cards=(Role.DUKE,), coins=3, opp_cards=2, opp_coins=7,
                                 discard=(Role.CAPTAIN,) * 3)
        action = brain.choose_turn_action(snapshot)
        assert action == Action.assassinate("opp")
        assert brain.last_decision.reasoning == "desperate: last resort assassination"

    def test_last_resort_needs_positive_ev(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.DUKE,), coins=3, opp_cards=2, opp_coins=7,
                                 discard=(Role.CAPTAIN,) * 3)
        assert brain.choose_turn_action(snapshot) == Action.tax()

    def test_steal_bluff_relaxed_under_coup_threat(self):
        """Base steal bluff EV ~0.50, under-threat EV ~0.75, margin 0.65."""
        brain = DuelBrain(policy=PolicyConfig(bluff_ev_margin=0.65))
        snapshot = make_snapshot(cards=(Role.CONTESSA, Role.AMBASSADOR),
                                 discard=(Role.DUKE,) * 3, opp_coins=4)
        action = brain.choose_turn_action(snapshot)
        assert action == Action.steal("opp")
        assert brain.last_decision.reasoning == "steal (bluff)"

        model = brain._observe(snapshot)
        assert brain._claim_source(snapshot, model, Role.CAPTAIN, 'steal') is None
        assert brain._claim_source(snapshot, model, Role.CAPTAIN, 'steal_under_threat') == "bluff"

    def test_no_relaxed_steal_without_threat(self):
        brain = DuelBrain(policy=PolicyConfig(bluff_ev_margin=0.65))
        snapshot = make_snapshot(cards=(Role.CONTESSA, Role.AMBASSADOR),
                                 discard=(Role.DUKE,) * 3, opp_coins=3)
        assert brain.choose_turn_action(snapshot) == Action.income()

    def test_rejects_multi_opponent_roster(self):
        snapshot = StateSnapshot(
            name="me", cards=(Role.DUKE,), coins=2,
            players=(OpponentView("a", 2, 2), OpponentView("b", 2, 2)),
        )
        with pytest.raises(TwoPlayerViolation):
            DuelBrain().choose_turn_action(snapshot)


# =============================================================================
# HEURISTICS
# =============================================================================

class TestBluffGate:
    """Tests for the bluff EV gate with a stubbed probability model."""

    def make_model(self, remaining=2, p_chal=0.5):
        model = MagicMock()
        model.remaining_copies.return_value = remaining
        model.p_challenges.return_value = p_chal
        return model

    def test_positive_ev_admitted(self):
        brain = DuelBrain()
        assert brain.bluff_ev_ok(make_snapshot(), self.make_model(), Role.DUKE, 1.0, 2.0)

    def test_last_card_doubles_risk(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN,))
        assert not brain.bluff_ev_ok(snapshot, self.make_model(), Role.DUKE, 1.0, 2.0)

    def test_exhausted_role_rejected(self):
        brain = DuelBrain()
        model = self.make_model(remaining=0, p_chal=0.0)
        assert not brain.bluff_ev_ok(make_snapshot(), model, Role.DUKE, 1.0, 2.0)
        model.p_challenges.assert_not_called()

    def test_margin_must_be_exceeded(self):
        brain = DuelBrain(policy=PolicyConfig(bluff_ev_margin=0.5))
        assert not brain.bluff_ev_ok(make_snapshot(), self.make_model(), Role.DUKE, 1.0, 2.0)


class TestThreats:
    """Tests for coup threat helpers."""

    def test_imminent_coup_loss(self):
        brain = DuelBrain()
        assert brain.imminent_coup_loss(make_snapshot(cards=(Role.DUKE,), opp_coins=7))
        assert not brain.imminent_coup_loss(make_snapshot(cards=(Role.DUKE,), opp_coins=6))
        assert not brain.imminent_coup_loss(make_snapshot(opp_coins=9))

    def test_coup_threat_next_turn(self):
        brain = DuelBrain()
        assert brain.coup_threat_next_turn(make_snapshot(opp_coins=4))
        assert not brain.coup_threat_next_turn(make_snapshot(opp_coins=3))


# =============================================================================
# CHALLENGES AND BLOCKS
# =============================================================================

class TestChallengeAction:
    """Tests for decide_challenge_action."""

    def test_challenge_assassination(self):
        brain = DuelBrain()
        assert brain.decide_challenge_action(Action.assassinate("me"), "opp", make_snapshot())

    def test_let_exchange_through(self):
        brain = DuelBrain()
        assert not brain.decide_challenge_action(Action.exchange(), "opp", make_snapshot())

    def test_unchallengeable_action(self):
        brain = DuelBrain()
        assert not brain.decide_challenge_action(Action.income(), "opp", make_snapshot())
        assert not brain.decide_challenge_action(Action.foreign_aid(), "opp", make_snapshot())

    def test_provably_false_claim(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.DUKE, Role.DUKE), discard=(Role.DUKE,))
        assert brain.decide_challenge_action(Action.tax(), "opp", snapshot)
        assert brain.last_decision.reasoning == "no duke left unseen"

    def test_tax_desperation_on_last_card(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN,), opp_coins=4)
        assert brain.decide_challenge_action(Action.tax(), "opp", snapshot)

    def test_tax_without_coup_pressure(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN,), opp_coins=3)
        assert not brain.decide_challenge_action(Action.tax(), "opp", snapshot)

    def test_never_challenge_self(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.DUKE, Role.DUKE), discard=(Role.DUKE,))
        assert not brain.decide_challenge_action(Action.tax(), "me", snapshot)


class TestCounter:
    """Tests for decide_counter."""

    def test_real_contessa_block(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CONTESSA, Role.DUKE))
        assert brain.decide_counter(Action.assassinate("me"), "opp", snapshot)
        assert brain.last_decision.reasoning == "real contessa"

    def test_contessa_bluff_too_risky(self):
        brain = DuelBrain()
        assert not brain.decide_counter(Action.assassinate("me"), "opp", make_snapshot())

    def test_contessa_bluff_when_ahead(self):
        brain = DuelBrain()
        snapshot = make_snapshot(coins=5, opp_coins=0)
        assert brain.decide_counter(Action.assassinate("me"), "opp", snapshot)
        assert brain.last_decision.reasoning.startswith("bluff contessa")

    def test_real_duke_blocks_foreign_aid(self):
        brain = DuelBrain()
        assert brain.decide_counter(Action.foreign_aid(), "opp", make_snapshot())

    def test_duke_bluff_blocks_foreign_aid(self):
        """Even material: p_challenge(duke) ~0.35 is under the 0.40 ceiling."""
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN, Role.CONTESSA))
        assert brain.decide_counter(Action.foreign_aid(), "opp", snapshot)
        assert brain.last_decision.reasoning.startswith("bluff duke")

    def test_duke_bluff_too_risky_when_opponent_is_rich(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN, Role.CONTESSA), opp_coins=5)
        assert not brain.decide_counter(Action.foreign_aid(), "opp", snapshot)

    def test_no_contessa_bluff_when_exhausted(self):
        brain = DuelBrain(policy=PolicyConfig(contessa_bluff_ceiling=1.0))
        snapshot = make_snapshot(discard=(Role.CONTESSA,) * 3)
        assert not brain.decide_counter(Action.assassinate("me"), "opp", snapshot)

    def test_no_duke_bluff_when_exhausted(self):
        brain = DuelBrain(policy=PolicyConfig(duke_bluff_ceiling=1.0))
        snapshot = make_snapshot(cards=(Role.CAPTAIN, Role.CONTESSA), discard=(Role.DUKE,) * 3)
        assert not brain.decide_counter(Action.foreign_aid(), "opp", snapshot)

    def test_real_steal_block(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.AMBASSADOR, Role.DUKE))
        assert brain.decide_counter(Action.steal("me"), "opp", snapshot)

    def test_no_bluff_on_exhausted_blockers(self):
        brain = DuelBrain(policy=PolicyConfig(steal_block_bluff_ceiling=1.0))
        snapshot = make_snapshot(cards=(Role.DUKE, Role.CONTESSA),
                                 discard=(Role.CAPTAIN,) * 3 + (Role.AMBASSADOR,) * 3)
        assert not brain.decide_counter(Action.steal("me"), "opp", snapshot)

    def test_unblockable_action(self):
        brain = DuelBrain()
        assert not brain.decide_counter(Action.tax(), "opp", make_snapshot())

    def test_never_block_self(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CONTESSA, Role.DUKE))
        assert not brain.decide_counter(Action.assassinate("opp"), "me", snapshot)


class TestChallengeCounter:
    """Tests for decide_challenge_counter."""

    def test_steal_block_desperation(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.DUKE,), opp_coins=7,
                                 discard=(Role.CAPTAIN, Role.CAPTAIN,
                                          Role.AMBASSADOR, Role.AMBASSADOR))
        assert brain.decide_challenge_counter(Action.steal("opp"), "opp", snapshot)

    def test_steal_block_without_desperation(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.DUKE,), opp_coins=3,
                                 discard=(Role.CAPTAIN, Role.CAPTAIN,
                                          Role.AMBASSADOR, Role.AMBASSADOR))
        assert not brain.decide_challenge_counter(Action.steal("opp"), "opp", snapshot)

    def test_steal_block_impossible(self):
        brain = DuelBrain()
        snapshot = make_snapshot(discard=(Role.CAPTAIN, Role.CAPTAIN,
                                          Role.AMBASSADOR, Role.AMBASSADOR, Role.AMBASSADOR))
        assert brain.decide_challenge_counter(Action.steal("opp"), "opp", snapshot)

    def test_foreign_aid_block_only_when_no_duke(self):
        brain = DuelBrain()
        assert not brain.decide_challenge_counter(Action.foreign_aid(), "opp", make_snapshot())
        snapshot = make_snapshot(cards=(Role.DUKE, Role.DUKE), discard=(Role.DUKE,))
        assert brain.decide_challenge_counter(Action.foreign_aid(), "opp", snapshot)

    def test_contessa_block_streak_cap(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), coins=3,
                                 discard=(Role.CONTESSA,) * 3,
                                 history=blocked_assassinations(2))
        assert not brain.decide_challenge_counter(Action.assassinate("opp"), "opp", snapshot)

    def test_contessa_block_ev_with_two_cards(self):
        """One prior block: p_contessa ~0.51, challenged while 1.2 * (1 - p) > p."""
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), coins=3,
                                 history=blocked_assassinations(1))
        assert brain.decide_challenge_counter(Action.assassinate("opp"), "opp", snapshot)
        assert brain.last_decision.reasoning.startswith("p_contessa=")

    def test_contessa_block_ev_on_last_card(self):
        """Same history on one card: p_contessa ~0.48 loses to the 1.6x loss weight."""
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN,), coins=3,
                                 history=blocked_assassinations(1))
        assert not brain.decide_challenge_counter(Action.assassinate("opp"), "opp", snapshot)

    def test_contessa_block_impossible(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN, Role.DUKE), discard=(Role.CONTESSA,) * 3)
        assert brain.decide_challenge_counter(Action.assassinate("opp"), "opp", snapshot)


# =============================================================================
# CARD CHOICES
# =============================================================================

class TestCardChoices:
    """Tests for exchange and card-loss choices."""

    def test_lose_least_valuable(self):
        brain = DuelBrain()
        assert brain.choose_card_to_lose(make_snapshot(cards=(Role.DUKE, Role.AMBASSADOR))) \
            == Role.AMBASSADOR

    def test_lose_prefers_assassin_over_contessa(self):
        brain = DuelBrain()
        assert brain.choose_card_to_lose(make_snapshot(cards=(Role.CONTESSA, Role.ASSASSIN))) \
            == Role.ASSASSIN

    def test_lose_with_empty_hand(self):
        with pytest.raises(ValueError):
            DuelBrain().choose_card_to_lose(make_snapshot(cards=()))

    def test_exchange_keeps_best(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.DUKE, Role.ASSASSIN))
        returned = brain.choose_cards_after_exchange((Role.CONTESSA, Role.AMBASSADOR), snapshot)
        assert returned == (Role.CONTESSA, Role.AMBASSADOR)

    def test_exchange_with_duplicates(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.ASSASSIN, Role.ASSASSIN))
        returned = brain.choose_cards_after_exchange((Role.DUKE, Role.CAPTAIN), snapshot)
        assert returned == (Role.ASSASSIN, Role.CAPTAIN)
        assert sorted(returned + (Role.DUKE, Role.ASSASSIN), key=lambda r: r.value) == \
            sorted(snapshot.cards + (Role.DUKE, Role.CAPTAIN), key=lambda r: r.value)

    def test_exchange_on_last_card(self):
        brain = DuelBrain()
        snapshot = make_snapshot(cards=(Role.CAPTAIN,))
        returned = brain.choose_cards_after_exchange((Role.DUKE, Role.AMBASSADOR), snapshot)
        assert returned == (Role.CAPTAIN, Role.AMBASSADOR)

    def test_exchange_requires_two_drawn(self):
        with pytest.raises(ValueError):
            DuelBrain().choose_cards_after_exchange((Role.DUKE,), make_snapshot())

    def test_auto_coup_target(self):
        assert DuelBrain().choose_auto_coup_target(make_snapshot(coins=10)) == "opp"
