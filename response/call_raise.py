"""Pot-odds driven call adjustment and strength driven raise adjustment."""

from __future__ import annotations

from response.classifier import ClassifiedAction
from response.pot_odds import PotOdds
from response.range_strength import RangeSummary
from response.schema import Adjustment, bounded
from response.street_patterns import StreetPattern

CALL_BOUND = 0.03
RAISE_BOUND = 0.04
RAISE_CEILING = 0.3
IMPLIED_ODDS_THRESHOLD = 1.5


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def call_estimate(action: ClassifiedAction, odds: PotOdds, multiway_multiplier: float = 1.0) -> float:
    """
    Share of the range that continues by calling.

    Formula: (1 - min(0.95, potOdds * multiway)) * io, then x0.9 facing a raise.
    """
    effective = min(0.95, odds.pot_odds * multiway_multiplier)
    io = 1.1 if odds.implied_odds > IMPLIED_ODDS_THRESHOLD else 1.0
    estimate = (1.0 - effective) * io
    if action.is_raise:
        estimate *= 0.9
    return _clamp(estimate, 0.05, 0.95)


def call_frequency_adjustment(
    action: ClassifiedAction,
    pattern: StreetPattern,
    odds: PotOdds,
    multiway_multiplier: float = 1.0,
) -> Adjustment:
    if not action.faces_bet:
        return Adjustment.neutral("call_frequency", "no bet faced")
    estimate = call_estimate(action, odds, multiway_multiplier)
    call = bounded(0.1 * (estimate - pattern.adjusted.call), CALL_BOUND)
    return Adjustment(
        stage="call_frequency",
        fold=-call,
        call=call,
        explanation=f"pot odds {odds.pot_odds:.0%} support calling {estimate:.0%}",
        details={"call_estimate": estimate, "pot_odds": odds.pot_odds},
    )


def raise_estimate(action: ClassifiedAction, pattern: StreetPattern, summary: RangeSummary) -> float:
    if action.is_all_in:
        return 0.0
    s = summary.strong_share
    estimate = pattern.adjusted.raise_
    estimate += 0.15 * max(0.0, s - 0.2)
    estimate += 0.05 * max(0.0, summary.average_strength - 0.5)
    if action.sizing_bucket == "small":
        estimate += 0.01
    estimate = min(estimate, max(0.8 * s + 0.1, 0.0))
    return _clamp(estimate, 0.0, RAISE_CEILING)


def raise_frequency_adjustment(
    action: ClassifiedAction,
    pattern: StreetPattern,
    summary: RangeSummary,
) -> Adjustment:
    estimate = raise_estimate(action, pattern, summary)
    raise_ = bounded(estimate - pattern.adjusted.raise_, RAISE_BOUND)
    return Adjustment(
        stage="raise_frequency",
        call=-raise_,
        raise_=raise_,
        explanation=f"strong share {summary.strong_share:.0%} supports raising {estimate:.0%}",
        details={"raise_estimate": estimate},
    )
