"""
Core data models for stored poker hands.

This module defines the fundamental data structures read by the
response-model pipeline: enums for streets and action verbs, and
dataclasses for seats, betting actions, hero actions and whole hands.
All amounts are expressed in big blinds.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Street(Enum):
    """Poker streets/betting rounds."""
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"

    @property
    def index(self) -> int:
        """Zero-based street number (preflop = 0)."""
        return _STREET_INDEX[self]

    @property
    def board_cards(self) -> int:
        """Number of community cards visible on this street."""
        return (0, 3, 4, 5)[self.index]

    @classmethod
    def from_label(cls, label: Any) -> Optional["Street"]:
        text = str(label or "").strip().lower()
        for street in cls:
            if street.value == text:
                return street
        return None


_STREET_INDEX = {
    Street.PREFLOP: 0,
    Street.FLOP: 1,
    Street.TURN: 2,
    Street.RIVER: 3,
}


class ActionVerb(Enum):
    """
    Betting verbs as stored on hand documents.

    Posts are forced blinds; every other verb is a decision.
    """
    POST = "post"
    CHECK = "check"
    BET = "bet"
    CALL = "call"
    RAISE = "raise"
    FOLD = "fold"
    ALL_IN = "all-in"


# Aliases seen in imported hand documents
VERB_ALIASES = {
    "post": ActionVerb.POST,
    "posts": ActionVerb.POST,
    "small_blind": ActionVerb.POST,
    "big_blind": ActionVerb.POST,
    "check": ActionVerb.CHECK,
    "checks": ActionVerb.CHECK,
    "bet": ActionVerb.BET,
    "bets": ActionVerb.BET,
    "call": ActionVerb.CALL,
    "calls": ActionVerb.CALL,
    "raise": ActionVerb.RAISE,
    "raises": ActionVerb.RAISE,
    "fold": ActionVerb.FOLD,
    "folds": ActionVerb.FOLD,
    "all-in": ActionVerb.ALL_IN,
    "allin": ActionVerb.ALL_IN,
    "all_in": ActionVerb.ALL_IN,
    "shove": ActionVerb.ALL_IN,
}

CONTRIBUTING_VERBS = {
    ActionVerb.POST,
    ActionVerb.BET,
    ActionVerb.CALL,
    ActionVerb.RAISE,
    ActionVerb.ALL_IN,
}
AGGRESSIVE_VERBS = {ActionVerb.BET, ActionVerb.RAISE, ActionVerb.ALL_IN}


def parse_verb(label: str) -> Optional[ActionVerb]:
    """
    Convert a stored action label to an ActionVerb.

    Args:
        label: Verb text from the hand document (e.g., "Raises")

    Returns:
        ActionVerb enum value, or None if unrecognized
    """
    if not label:
        return None
    return VERB_ALIASES.get(str(label).strip().lower())


@dataclass
class Seat:
    """
    A player seated in the hand.

    Attributes:
        player_id: Unique identifier for the player
        position: Position label (BTN, SB, BB, UTG, ...)
        stack: Starting stack in big blinds, if known
    """
    player_id: str
    position: str = ""
    stack: Optional[float] = None


@dataclass
class BettingAction:
    """
    Represents a single betting action.

    Attributes:
        index: Position in the hand's ordered action list
        action_id: Stable identifier shared with hero actions
        player_id: Acting player
        verb: Action verb
        street: Which betting round this occurred on
        amount: Big blinds put into the pot by this action
        is_all_in: Whether this action put the player all-in
        position: Position label stored on the action, if any
    """
    index: int
    action_id: str
    player_id: str
    verb: ActionVerb
    street: Street
    amount: float = 0.0
    is_all_in: bool = False
    position: str = ""

    @property
    def contributes(self) -> bool:
        """Returns True if this action puts chips in the pot."""
        return self.verb in CONTRIBUTING_VERBS and self.amount > 0

    @property
    def is_aggressive(self) -> bool:
        """Returns True for bets, raises and shoves."""
        if self.verb == ActionVerb.ALL_IN:
            return self.amount > 0
        return self.verb in AGGRESSIVE_VERBS

    @property
    def is_voluntary(self) -> bool:
        return self.verb != ActionVerb.POST


@dataclass
class HeroAction:
    """
    A protagonist decision, correlated to a betting action by action id.

    Attributes:
        slot: Index inside the document's heroActions list
        action_id: Matching BettingAction.action_id
        opponent_id: Villain hint stored with the decision
        villain_range: Raw stored villain range, if any
        response_model: Previously persisted response model
    """
    slot: int
    action_id: str
    opponent_id: Optional[str] = None
    villain_range: Any = None
    response_model: Optional[dict] = None

    @property
    def has_response_model(self) -> bool:
        return bool(self.response_model)


@dataclass
class Hand:
    """
    A stored hand with everything the response pipeline reads.

    Attributes:
        hand_id: Unique hand identifier
        username: Owner of the hand history
        seats: Players dealt into the hand
        actions: Chronological betting actions
        hero_actions: Hero decisions in document order
        board: Community cards (up to 5)
        small_blind: Small blind size
        big_blind: Big blind size
        pot_sizes: Optional stored pot per street (hint only)
        player_stacks: Optional starting stacks keyed by player id
        hero_hole_cards: Hero hole cards, if known
    """
    hand_id: str
    seats: list[Seat]
    actions: list[BettingAction]
    hero_actions: list[HeroAction] = field(default_factory=list)
    board: list[str] = field(default_factory=list)
    username: str = ""
    small_blind: float = 0.5
    big_blind: float = 1.0
    pot_sizes: dict[str, float] = field(default_factory=dict)
    player_stacks: dict[str, float] = field(default_factory=dict)
    hero_hole_cards: list[str] = field(default_factory=list)

    def get_seat(self, player_id: str) -> Optional[Seat]:
        """Find a seat by player id."""
        for seat in self.seats:
            if seat.player_id == player_id:
                return seat
        return None

    def position_of(self, player_id: str) -> str:
        seat = self.get_seat(player_id)
        if seat and seat.position:
            return seat.position
        for action in self.actions:
            if action.player_id == player_id and action.position:
                return action.position
        return ""

    def board_at(self, street: Street) -> list[str]:
        """Community cards visible on the given street."""
        return list(self.board[: street.board_cards])

    def actions_before(self, index: int) -> list[BettingAction]:
        """All actions strictly before an action index."""
        return self.actions[: max(0, index)]

    def street_actions_before(self, index: int, street: Street) -> list[BettingAction]:
        return [a for a in self.actions_before(index) if a.street == street]

    def index_of_action_id(self, action_id: str) -> Optional[int]:
        for action in self.actions:
            if action.action_id == action_id:
                return action.index
        return None

    def starting_stack(self, player_id: str) -> Optional[float]:
        """Starting stack from playerStacks, then the seat, else None."""
        if player_id in self.player_stacks:
            return self.player_stacks[player_id]
        seat = self.get_seat(player_id)
        if seat and seat.stack is not None:
            return seat.stack
        return None

    def contributed_before(self, player_id: str, index: int, street: Optional[Street] = None) -> float:
        """Total amount a player put in before an action index, optionally on one street."""
        total = 0.0
        for action in self.actions_before(index):
            if action.player_id != player_id or not action.contributes:
                continue
            if street is not None and action.street != street:
                continue
            total += action.amount
        return total

    def folded_before(self, index: int) -> set[str]:
        return {
            a.player_id for a in self.actions_before(index)
            if a.verb == ActionVerb.FOLD
        }

    def active_players_at(self, index: int) -> list[str]:
        """Seated players who have not folded before the action index."""
        folded = self.folded_before(index)
        players = [s.player_id for s in self.seats]
        for action in self.actions:
            if action.player_id not in players:
                players.append(action.player_id)
        return [p for p in players if p not in folded]
