"""
Brain Interface - The contract between the game engine and decision-making AI.

The engine calls exactly one decision point at a time and waits for the
answer. Every brain answers the same set of questions:

- choose_turn_action: what to do on our turn
- choose_auto_coup_target: who to coup when the engine forces a coup
- decide_challenge_action: challenge someone's claimed role?
- decide_counter: block an action aimed at us (or foreign aid)?
- decide_challenge_counter: challenge a block of our action?
- choose_cards_after_exchange: which two cards to give back after exchanging
- choose_card_to_lose: which card to reveal when we lose influence

Strategies form a closed set (BrainKind) chosen when the match is set up.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from coupbot.decision_logger import log_decision
from coupbot.models import Action, Role, StateSnapshot

logger = logging.getLogger(__name__)


class BrainKind(Enum):
    """Available decision strategies"""
    DUEL = "duel"        # belief + probability driven policy
    ROLLOUT = "rollout"  # flat Monte Carlo rollouts

    @classmethod
    def parse(cls, value: str) -> 'BrainKind':
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown bot kind '{value}' (expected one of: {valid})") from None


@dataclass
class BrainDecision:
    """
    The brain's decision output, kept for logging/debugging.

    Simple structure: which decision point, what was answered and why.
    """
    point: str
    choice: str
    reasoning: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for logging"""
        return {
            'point': self.point,
            'choice': self.choice,
            'reasoning': self.reasoning,
        }


class Brain(ABC):
    """
    Abstract base class for all decision-making strategies.

    Only choose_turn_action is mandatory. The remaining decision points
    default to passive, never-bluff answers: no challenges, no blocks,
    keep the current hand on exchange, reveal the first card on loss.
    """

    def __init__(self):
        self.last_decision: Optional[BrainDecision] = None

    @abstractmethod
    def get_name(self) -> str:
        """Return the bot name reported to the engine."""

    @abstractmethod
    def choose_turn_action(self, snapshot: StateSnapshot) -> Action:
        """
        Pick the action for our turn.

        Args:
            snapshot: Current public view (refreshed by the engine)

        Returns:
            The Action to perform
        """

    def choose_auto_coup_target(self, snapshot: StateSnapshot) -> str:
        """Target of a coup the engine forces on us (first listed opponent)."""
        others = snapshot.others
        if not others:
            raise ValueError(f"{snapshot.name}: no opponent left to coup")
        target = others[0].name
        self._record(snapshot, "auto_coup", target)
        return target

    def decide_challenge_action(self, action: Action, claimant: str,
                                snapshot: StateSnapshot) -> bool:
        return False

    def decide_counter(self, action: Action, claimant: str,
                       snapshot: StateSnapshot) -> bool:
        return False

    def decide_challenge_counter(self, action: Action, claimant: str,
                                 snapshot: StateSnapshot) -> bool:
        return False

    def choose_cards_after_exchange(self, drawn: Sequence[Role],
                                    snapshot: StateSnapshot) -> Tuple[Role, ...]:
        """Cards to return to the deck (default: the ones just drawn)."""
        return tuple(drawn)

    def choose_card_to_lose(self, snapshot: StateSnapshot) -> Role:
        if not snapshot.cards:
            raise ValueError(f"{snapshot.name}: no card left to lose")
        return snapshot.cards[0]

    def _record(self, snapshot: StateSnapshot, point: str, choice: str,
                reasoning: str = "") -> BrainDecision:
        """Remember and log a decision."""
        decision = BrainDecision(point=point, choice=choice, reasoning=reasoning)
        self.last_decision = decision
        log_decision(snapshot.name, point, choice, reasoning, history_len=len(snapshot.history))
        return decision
