"""Action classification: sizing bucket and structural betting patterns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from models import ActionVerb, BettingAction, Hand, Street
from response.constants import (
    MIN_POT_BB,
    POSTFLOP_ORDER,
    PREFLOP_BLIND_POT_BB,
    PREFLOP_ORDER,
    normalize_position,
)
from response.schema import Assumption

POT_HINT_TOLERANCE_BB = 0.5
BETTING_VERBS = (ActionVerb.BET, ActionVerb.RAISE, ActionVerb.CALL, ActionVerb.ALL_IN)


@dataclass(frozen=True)
class ClassifiedAction:
    index: int
    action_id: str
    actor_id: str
    position: str
    verb: str
    street: str
    bet_bb: float
    pot_before_bb: float
    bet_to_pot: float
    sizing_bucket: str
    is_all_in: bool = False
    is_raise: bool = False
    is_cbet: bool = False
    is_check_raise: bool = False
    is_donk_bet: bool = False
    is_three_bet: bool = False
    is_value_bet: bool = False
    valid: bool = True
    assumptions: Tuple[Assumption, ...] = ()

    @classmethod
    def null(cls, index: int, note: str = "action index out of range") -> "ClassifiedAction":
        return cls(
            index=index,
            action_id="",
            actor_id="",
            position="",
            verb="unknown",
            street="flop",
            bet_bb=0.0,
            pot_before_bb=MIN_POT_BB,
            bet_to_pot=0.0,
            sizing_bucket="none",
            valid=False,
            assumptions=(Assumption("input_missing", "action_classifier", note),),
        )

    @property
    def faces_bet(self) -> bool:
        return self.sizing_bucket != "none"

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "actionId": self.action_id,
            "actorId": self.actor_id,
            "position": self.position,
            "verb": self.verb,
            "street": self.street,
            "betBB": self.bet_bb,
            "potBeforeBB": self.pot_before_bb,
            "betToPot": self.bet_to_pot,
            "sizingBucket": self.sizing_bucket,
            "isAllIn": self.is_all_in,
            "isRaise": self.is_raise,
            "isCBet": self.is_cbet,
            "isCheckRaise": self.is_check_raise,
            "isDonkBet": self.is_donk_bet,
            "is3Bet": self.is_three_bet,
            "isValueBet": self.is_value_bet,
        }


def pot_before(hand: Hand, index: int) -> float:
    """Pot before an action: prior contributions, +1.5 BB preflop, floor 1.5."""
    total = sum(a.amount for a in hand.actions_before(index) if a.contributes)
    if 0 <= index < len(hand.actions) and hand.actions[index].street == Street.PREFLOP:
        total += PREFLOP_BLIND_POT_BB
    return max(MIN_POT_BB, total)


def sizing_bucket(bet: float, pot: float, all_in: bool) -> str:
    if all_in:
        return "all_in"
    if bet <= 0:
        return "none"
    ratio = bet / max(pot, 1e-9)
    if ratio <= 0.33:
        return "small"
    if ratio <= 1.0:
        return "medium"
    if ratio <= 2.0:
        return "large"
    return "very_large"


def _is_raise(action: BettingAction, earlier_on_street: List[BettingAction]) -> bool:
    if action.verb == ActionVerb.RAISE:
        return True
    if action.verb == ActionVerb.ALL_IN:
        return any(a.is_aggressive for a in earlier_on_street)
    return False


def _is_bet(action: BettingAction, earlier_on_street: List[BettingAction]) -> bool:
    if action.verb == ActionVerb.BET:
        return True
    if action.verb == ActionVerb.ALL_IN and action.amount > 0:
        return not any(a.is_aggressive for a in earlier_on_street)
    return False


def last_aggressor(hand: Hand, index: int, street: Street) -> Optional[str]:
    aggressor = None
    for action in hand.actions_before(index):
        if action.street == street and action.is_aggressive:
            aggressor = action.player_id
    return aggressor


def acts_before(first: str, second: str, street: Street) -> Optional[bool]:
    """True when position `first` acts before `second` on a street; None if unknown."""
    order = PREFLOP_ORDER if street == Street.PREFLOP else POSTFLOP_ORDER
    a = normalize_position(first)
    b = normalize_position(second)
    if a not in order or b not in order:
        return None
    return order.index(a) < order.index(b)


def _pot_hint_assumption(hand: Hand, index: int, street: Street, pot: float) -> Tuple[Assumption, ...]:
    hint = hand.pot_sizes.get(street.value)
    if hint is None or hand.street_actions_before(index, street):
        return ()
    if abs(hint - pot) <= POT_HINT_TOLERANCE_BB:
        return ()
    return (
        Assumption(
            "pot_hint_mismatch",
            "action_classifier",
            f"stored {street.value} pot {hint:.2f} BB, computed {pot:.2f} BB; computed value used",
        ),
    )


def classify_action(hand: Hand, index: int) -> ClassifiedAction:
    """
    Classify one betting action.

    Patterns are read from the action sequence only. An out-of-range index
    yields the null classification instead of raising.
    """
    if hand is None or index < 0 or index >= len(hand.actions):
        return ClassifiedAction.null(index)

    action = hand.actions[index]
    street = action.street
    earlier = hand.street_actions_before(index, street)
    pot = pot_before(hand, index)
    bet = action.amount if action.verb in BETTING_VERBS else 0.0
    all_in = (action.is_all_in or action.verb == ActionVerb.ALL_IN) and bet > 0
    bucket = sizing_bucket(bet, pot, all_in)
    ratio = bet / pot if pot > 0 else 0.0
    is_raise = _is_raise(action, earlier)
    is_bet = _is_bet(action, earlier)
    position = normalize_position(action.position or hand.position_of(action.player_id))

    is_check_raise = False
    if is_raise:
        checked_at = next(
            (i for i, a in enumerate(earlier) if a.player_id == action.player_id and a.verb == ActionVerb.CHECK),
            None,
        )
        if checked_at is not None:
            is_check_raise = any(
                a.player_id != action.player_id and a.is_aggressive
                for a in earlier[checked_at + 1 :]
            )

    is_cbet = False
    if street == Street.FLOP and is_bet:
        is_cbet = last_aggressor(hand, index, Street.PREFLOP) == action.player_id

    is_donk = False
    if street != Street.PREFLOP and is_bet and not earlier:
        previous = list(Street)[street.index - 1]
        aggressor = last_aggressor(hand, index, previous)
        if aggressor and aggressor != action.player_id:
            before = acts_before(position, hand.position_of(aggressor), street)
            is_donk = before is True

    prior_raises = sum(1 for i, a in enumerate(earlier) if _is_raise(a, earlier[:i]))
    is_three_bet = is_raise and prior_raises >= 1

    is_value = (
        (street == Street.RIVER and ratio > 0.75)
        or (street == Street.TURN and ratio > 1.0)
        or (is_raise and ratio > 1.5)
    ) and bet > 0

    return ClassifiedAction(
        index=index,
        action_id=action.action_id,
        actor_id=action.player_id,
        position=position,
        verb=action.verb.value,
        street=street.value,
        bet_bb=bet,
        pot_before_bb=pot,
        bet_to_pot=ratio,
        sizing_bucket=bucket,
        is_all_in=all_in,
        is_raise=is_raise,
        is_cbet=is_cbet,
        is_check_raise=is_check_raise,
        is_donk_bet=is_donk,
        is_three_bet=is_three_bet,
        is_value_bet=is_value,
        assumptions=_pot_hint_assumption(hand, index, street, pot),
    )
