"""
Belief Tracker - Opponent Claim Memory

Consumes the append-only public event log and keeps, for the single opponent:
1. How many times they have publicly claimed each role
2. Whether our last assassination is still "pending" a block
3. How many of our assassinations in a row were blocked (loop detection)

Memory lifecycle:
- Created empty with the bot
- Reset whenever the snapshot's history is empty (new match)
- Advanced only past log entries it has not seen yet, so re-running the
  update on the same snapshot is a no-op
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .models import EventKind, PublicEvent, Role, StateSnapshot

logger = logging.getLogger(__name__)

# Role claimed by an opponent event
CLAIMED_ROLES = {
    EventKind.TAX: (Role.DUKE,),
    EventKind.ASSASSINATION: (Role.ASSASSIN,),
    EventKind.STEALING: (Role.CAPTAIN,),
    EventKind.EXCHANGE: (Role.AMBASSADOR,),
    EventKind.COUNTER_FOREIGN_AID: (Role.DUKE,),
    EventKind.COUNTER_ASSASSINATION: (Role.CONTESSA,),
    # A steal block could be either role; count both as soft claims
    EventKind.COUNTER_STEALING: (Role.CAPTAIN, Role.AMBASSADOR),
}


def _empty_claims() -> Dict[Role, int]:
    return {role: 0 for role in Role}


@dataclass
class BeliefMemory:
    """Per-bot, per-match memory of the opponent's public behavior."""
    seen_history_len: int = 0
    opp_claims: Dict[Role, int] = field(default_factory=_empty_claims)

    # "assassinate -> blocked" pattern detection
    lethal_pending: bool = False
    blocked_streak: int = 0

    def claims(self, role: Role) -> int:
        return self.opp_claims.get(role, 0)

    def is_empty(self) -> bool:
        return self == BeliefMemory()


class BeliefTracker:
    """
    Owns a BeliefMemory and keeps it in sync with the public log.

    Safe to call update() at the start of every decision point.
    """

    def __init__(self, memory: Optional[BeliefMemory] = None):
        self.memory = memory or BeliefMemory()

    def reset(self):
        """Forget everything (new match)."""
        self.memory = BeliefMemory()

    def update(self, snapshot: StateSnapshot):
        """
        Fold any unseen history entries into memory.

        Args:
            snapshot: Current public view; its history must only grow
                      within a match
        """
        history = snapshot.history
        if not history:
            if not self.memory.is_empty():
                logger.debug(f"{snapshot.name}: empty history, resetting belief memory")
            self.reset()
            return

        mem = self.memory
        if mem.seen_history_len >= len(history):
            return

        opp_name = snapshot.opponent().name

        new_events = history[mem.seen_history_len:]
        for event in new_events:
            if event.by == opp_name:
                self._apply_opponent_event(event)
            elif event.by == snapshot.name:
                self._apply_own_event(event)

        mem.seen_history_len = len(history)
        logger.debug(f"{snapshot.name}: processed {len(new_events)} events, "
                     f"claims={self.claims_summary()}, pending={mem.lethal_pending}, "
                     f"streak={mem.blocked_streak}")

    def _apply_opponent_event(self, event: PublicEvent):
        mem = self.memory
        for role in CLAIMED_ROLES.get(event.kind, ()):
            mem.opp_claims[role] += 1

        if event.kind == EventKind.COUNTER_ASSASSINATION and mem.lethal_pending:
            mem.blocked_streak += 1
            mem.lethal_pending = False
            logger.debug(f"Assassination blocked by {event.by} (streak={mem.blocked_streak})")

    def _apply_own_event(self, event: PublicEvent):
        mem = self.memory
        if event.kind == EventKind.ASSASSINATION:
            mem.lethal_pending = True
        elif event.is_action:
            mem.lethal_pending = False
            mem.blocked_streak = 0

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    def claims(self, role: Role) -> int:
        return self.memory.claims(role)

    @property
    def blocked_streak(self) -> int:
        return self.memory.blocked_streak

    @property
    def lethal_pending(self) -> bool:
        return self.memory.lethal_pending

    def set_lethal_pending(self, pending: bool):
        """Record at decision time whether we just chose a lethal action."""
        self.memory.lethal_pending = pending

    def claims_summary(self) -> str:
        return " ".join(f"{r.value}:{n}" for r, n in self.memory.opp_claims.items() if n)
