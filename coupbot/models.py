"""
Game Models

Public vocabulary shared between the external game engine and the bot core:
roles, actions, history events and the per-decision state snapshot.

The engine owns the real game. Everything here is a read-only view of it:
- Our own hidden cards and coins
- The face-up discard pile
- The append-only public event log
- A roster of the other players (name, coins, number of cards still held)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Deck composition: 5 roles x 3 copies
COPIES_PER_ROLE = 3
DECK_SIZE = 15

# Coins needed before a coup is mandatory
COUP_COST = 7


class TwoPlayerViolation(ValueError):
    """Raised when a snapshot does not describe a strict 1v1 match."""


class Role(Enum):
    """The five card types"""
    DUKE = "duke"
    ASSASSIN = "assassin"
    CAPTAIN = "captain"
    AMBASSADOR = "ambassador"
    CONTESSA = "contessa"


class ActionKind(Enum):
    """Turn actions a player can take"""
    INCOME = "income"
    FOREIGN_AID = "foreign_aid"
    TAX = "tax"
    EXCHANGE = "exchange"
    ASSASSINATION = "assassination"
    STEALING = "stealing"
    COUP = "coup"


TARGETED_ACTIONS = {ActionKind.ASSASSINATION, ActionKind.STEALING, ActionKind.COUP}

# Role a player must claim to take the action (None = unchallengeable)
REQUIRED_ROLE = {
    ActionKind.TAX: Role.DUKE,
    ActionKind.ASSASSINATION: Role.ASSASSIN,
    ActionKind.STEALING: Role.CAPTAIN,
    ActionKind.EXCHANGE: Role.AMBASSADOR,
}

# Roles that may block (counter) an action
BLOCKING_ROLES = {
    ActionKind.FOREIGN_AID: (Role.DUKE,),
    ActionKind.ASSASSINATION: (Role.CONTESSA,),
    ActionKind.STEALING: (Role.CAPTAIN, Role.AMBASSADOR),
}


@dataclass(frozen=True)
class Action:
    """
    A turn action, optionally aimed at a named opponent.

    Untargeted actions (income, foreign aid, tax, exchange) carry no target.
    """
    kind: ActionKind
    target: Optional[str] = None

    def __post_init__(self):
        if self.kind in TARGETED_ACTIONS and not self.target:
            raise ValueError(f"{self.kind.value} needs a target")
        if self.kind not in TARGETED_ACTIONS and self.target is not None:
            raise ValueError(f"{self.kind.value} takes no target")

    @classmethod
    def income(cls) -> 'Action':
        return cls(ActionKind.INCOME)

    @classmethod
    def foreign_aid(cls) -> 'Action':
        return cls(ActionKind.FOREIGN_AID)

    @classmethod
    def tax(cls) -> 'Action':
        return cls(ActionKind.TAX)

    @classmethod
    def exchange(cls) -> 'Action':
        return cls(ActionKind.EXCHANGE)

    @classmethod
    def assassinate(cls, target: str) -> 'Action':
        return cls(ActionKind.ASSASSINATION, target)

    @classmethod
    def steal(cls, target: str) -> 'Action':
        return cls(ActionKind.STEALING, target)

    @classmethod
    def coup(cls, target: str) -> 'Action':
        return cls(ActionKind.COUP, target)

    @property
    def required_role(self) -> Optional[Role]:
        return REQUIRED_ROLE.get(self.kind)

    @property
    def blocking_roles(self) -> Tuple[Role, ...]:
        return BLOCKING_ROLES.get(self.kind, ())

    def __str__(self) -> str:
        if self.target:
            return f"{self.kind.value}->{self.target}"
        return self.kind.value


class EventKind(Enum):
    """Kinds of entries in the public event log"""
    # Turn actions
    INCOME = "income"
    FOREIGN_AID = "foreign_aid"
    TAX = "tax"
    EXCHANGE = "exchange"
    ASSASSINATION = "assassination"
    STEALING = "stealing"
    COUP = "coup"

    # Counter-claims (blocks)
    COUNTER_FOREIGN_AID = "counter_foreign_aid"
    COUNTER_ASSASSINATION = "counter_assassination"
    COUNTER_STEALING = "counter_stealing"

    # Challenges
    CHALLENGE_ACTION = "challenge_action"
    CHALLENGE_COUNTER = "challenge_counter"


ACTION_EVENTS = {
    EventKind.INCOME, EventKind.FOREIGN_AID, EventKind.TAX, EventKind.EXCHANGE,
    EventKind.ASSASSINATION, EventKind.STEALING, EventKind.COUP,
}


@dataclass(frozen=True)
class PublicEvent:
    """One immutable entry of the public history log."""
    kind: EventKind
    by: str
    target: Optional[str] = None

    @property
    def is_action(self) -> bool:
        return self.kind in ACTION_EVENTS


@dataclass(frozen=True)
class OpponentView:
    """Public information about another player (never card identities)."""
    name: str
    coins: int
    cards: int


@dataclass(frozen=True)
class StateSnapshot:
    """
    Read-only view of the game handed to the bot at every decision point.

    The engine refreshes it before each call. `history` only grows within a
    match and is empty at the start of a new one.
    """
    name: str
    cards: Tuple[Role, ...]
    coins: int
    discard_pile: Tuple[Role, ...] = ()
    history: Tuple[PublicEvent, ...] = ()
    players: Tuple[OpponentView, ...] = ()

    def __post_init__(self):
        # Accept lists from callers, store tuples
        object.__setattr__(self, 'cards', tuple(self.cards))
        object.__setattr__(self, 'discard_pile', tuple(self.discard_pile))
        object.__setattr__(self, 'history', tuple(self.history))
        object.__setattr__(self, 'players', tuple(self.players))

    @property
    def others(self) -> List[OpponentView]:
        """Roster entries other than ourselves."""
        return [p for p in self.players if p.name != self.name]

    def opponent(self) -> OpponentView:
        """
        The single opponent of a 1v1 match.

        Raises:
            TwoPlayerViolation: if the roster holds zero or several opponents
        """
        others = self.others
        if len(others) != 1:
            logger.error(f"{self.name}: expected exactly one opponent, roster has {len(others)}")
            raise TwoPlayerViolation(
                f"duel play needs exactly one opponent, got {[p.name for p in others]}"
            )
        return others[0]

    def holds(self, role: Role) -> bool:
        return role in self.cards

    @property
    def on_last_card(self) -> bool:
        return len(self.cards) <= 1
