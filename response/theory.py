"""Core poker-theory math used by the response pipeline.

Formulas stay explicit and testable so stage explanations can cite exact
thresholds (pot odds, MDF, bluff share, SPR bands, implied odds).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from response.constants import REMAINING_STREETS

IMPLIED_ODDS_K = 0.05
REVERSE_IMPLIED_ODDS_K = 0.04
SPR_CLIP = 10.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def pot_odds(pot_before_call: float, call_amount: float) -> float:
    """
    Share of the final pot the caller must put in.

    Formula: call / (pot + call)
    """
    pot = max(0.0, float(pot_before_call))
    call = max(0.0, float(call_amount))
    if call <= 0:
        return 0.0
    return call / max(1e-9, pot + call)


def minimum_defense_frequency(pot_before_bet: float, bet_size: float) -> float:
    """
    MDF as used throughout the pipeline.

    Formula: bet / (pot + bet), always on the pre-action pot.
    """
    pot = max(0.0, float(pot_before_bet))
    bet = max(0.0, float(bet_size))
    if bet <= 0:
        return 0.0
    return _clamp(bet / max(1e-9, pot + bet), 0.0, 1.0)


def polarized_bluff_share(bet_to_pot_ratio: float) -> float:
    """
    Bluff share of betting range on a pure polarization model.

    Formula: b / (1 + b), where b = bet/pot.
    """
    b = max(0.0, float(bet_to_pot_ratio))
    if b <= 0:
        return 0.0
    return _clamp(b / (1.0 + b), 0.0, 1.0)


def raise_size_factor(bet_to_pot_ratio: float) -> float:
    """Shrinks as the bet grows: 1 / (1 + b)."""
    return 1.0 / (1.0 + max(0.0, float(bet_to_pot_ratio)))


def stack_to_pot_ratio(effective_stack: float, pot_size: float) -> float:
    """Compute SPR (effective stack divided by pot size)."""
    stack = max(0.0, float(effective_stack))
    pot = max(1e-9, float(pot_size))
    return stack / pot


def remaining_streets(street: str) -> int:
    return REMAINING_STREETS.get(street, 0)


def implied_odds(spr: float, streets_left: int) -> float:
    """1 + k * remainingStreets * min(SPR, 10); never below 1."""
    return 1.0 + IMPLIED_ODDS_K * max(0, streets_left) * _clamp(spr, 0.0, SPR_CLIP)


def reverse_implied_odds(spr: float, streets_left: int) -> float:
    return 1.0 + REVERSE_IMPLIED_ODDS_K * max(0, streets_left) * _clamp(spr, 0.0, SPR_CLIP)


@dataclass(frozen=True)
class SprBand:
    label: str
    notes: List[str]


def classify_spr(spr: float) -> SprBand:
    """Stack-depth bands used by the stack adjustment."""
    s = max(0.0, float(spr))
    if s < 1.0:
        return SprBand(
            label="all_in",
            notes=["Effective stacks are below the pot; decisions are call-or-fold."],
        )
    if s < 3.0:
        return SprBand(
            label="short",
            notes=["Commitment threshold is low; one-pair hands continue more often."],
        )
    if s < 10.0:
        return SprBand(
            label="medium",
            notes=["Future-street realization matters; no depth correction."],
        )
    return SprBand(
        label="deep",
        notes=["Implied odds justify wider calls with drawing and set-mining hands."],
    )


def raise_sizing_band(spr: float) -> str:
    """SPR band keying the raise-size weight table."""
    if spr <= 2.0:
        return "spr_le_2"
    if spr <= 4.0:
        return "spr_le_4"
    if spr <= 8.0:
        return "spr_le_8"
    return "deep"
