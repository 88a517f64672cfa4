"""Pot odds, implied odds and effective stack for the villain's decision."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from models import Hand, Street
from response.classifier import ClassifiedAction
from response.constants import DEFAULT_STACK_BB
from response.schema import Assumption
from response.theory import (
    implied_odds,
    pot_odds,
    remaining_streets,
    reverse_implied_odds,
    stack_to_pot_ratio,
)


@dataclass(frozen=True)
class PotOdds:
    call_amount: float
    pot_odds: float
    implied_odds: float
    reverse_implied_odds: float
    effective_stack: float
    stack_to_pot: float
    remaining_streets: int
    actor_stack: float
    villain_stack: float
    stacks_known: bool = True
    assumptions: Tuple[Assumption, ...] = ()

    @classmethod
    def neutral(cls, pot: float = 1.5, note: str = "no classified action") -> "PotOdds":
        spr = stack_to_pot_ratio(DEFAULT_STACK_BB, pot)
        return cls(
            call_amount=0.0,
            pot_odds=0.0,
            implied_odds=1.0,
            reverse_implied_odds=1.0,
            effective_stack=DEFAULT_STACK_BB,
            stack_to_pot=spr,
            remaining_streets=0,
            actor_stack=DEFAULT_STACK_BB,
            villain_stack=DEFAULT_STACK_BB,
            stacks_known=False,
            assumptions=(Assumption("input_missing", "pot_odds", note),),
        )

    def to_dict(self) -> dict:
        return {
            "callAmount": self.call_amount,
            "potOdds": self.pot_odds,
            "impliedOdds": self.implied_odds,
            "reverseImpliedOdds": self.reverse_implied_odds,
            "effectiveStack": self.effective_stack,
            "stackToPot": self.stack_to_pot,
        }


def stack_before(hand: Hand, player_id: str, index: int) -> Tuple[float, bool]:
    """Stack behind before an action index, and whether the start stack was known."""
    start = hand.starting_stack(player_id)
    known = start is not None
    if start is None:
        start = DEFAULT_STACK_BB
    return max(0.0, start - hand.contributed_before(player_id, index)), known


def analyze_pot_odds(hand: Hand, action: ClassifiedAction, villain_id: Optional[str]) -> PotOdds:
    """
    Price the villain's call of the classified action.

    The call amount is what the actor has put in on this street through
    the action, less what the villain already has in on the street.
    """
    if hand is None or action is None or not action.valid:
        return PotOdds.neutral(action.pot_before_bb if action else 1.5)

    street = Street.from_label(action.street) or Street.FLOP
    index = action.index
    actor_on_street = hand.contributed_before(action.actor_id, index + 1, street)
    villain_on_street = hand.contributed_before(villain_id, index, street) if villain_id else 0.0
    call = max(0.0, actor_on_street - villain_on_street) if action.bet_bb > 0 else 0.0

    notes: List[Assumption] = []
    actor_stack, actor_known = stack_before(hand, action.actor_id, index)
    if villain_id:
        villain_stack, villain_known = stack_before(hand, villain_id, index)
    else:
        villain_stack, villain_known = DEFAULT_STACK_BB, False
        notes.append(Assumption("input_missing", "pot_odds", "no villain id"))
    stacks_known = actor_known and villain_known
    if not stacks_known:
        notes.append(
            Assumption("stack_unknown", "pot_odds", f"missing starting stack; {DEFAULT_STACK_BB:.0f} BB assumed")
        )

    effective = min(actor_stack, villain_stack)
    spr = stack_to_pot_ratio(effective, action.pot_before_bb)
    streets_left = remaining_streets(action.street)

    return PotOdds(
        call_amount=call,
        pot_odds=pot_odds(action.pot_before_bb, call),
        implied_odds=implied_odds(spr, streets_left),
        reverse_implied_odds=reverse_implied_odds(spr, streets_left),
        effective_stack=effective,
        stack_to_pot=spr,
        remaining_streets=streets_left,
        actor_stack=actor_stack,
        villain_stack=villain_stack,
        stacks_known=stacks_known,
        assumptions=tuple(notes),
    )
