"""Bounds, sum-to-one and confidence for the combined frequencies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from response.classifier import ClassifiedAction
from response.combiner import CombinedFrequencies
from response.constants import FREQUENCY_CEILING, FREQUENCY_FLOOR
from response.pot_odds import PotOdds
from response.range_strength import RangeSummary
from response.schema import Assumption, FrequencyTriple

STAGE = "validator"
SUM_TOLERANCE = 1e-3
MAX_PASSES = 10


@dataclass(frozen=True)
class ValidatedFrequencies:
    frequencies: FrequencyTriple
    was_adjusted: bool
    confidence: float
    clipped: Tuple[str, ...] = ()
    assumptions: Tuple[Assumption, ...] = ()

    def to_dict(self) -> dict:
        return {
            "frequencies": self.frequencies.to_dict(),
            "wasAdjusted": self.was_adjusted,
            "confidence": self.confidence,
        }


def enforce_bounds(
    values: Dict[str, float],
    locked: Dict[str, float],
    low: float = FREQUENCY_FLOOR,
    high: float = FREQUENCY_CEILING,
) -> Tuple[Dict[str, float], List[str]]:
    """
    Clip free components into [low, high] and spread the rest proportionally.

    Components in `locked` keep their value. A clipped component becomes
    locked at its bound and the loop repeats until nothing moves.
    """
    fixed = dict(locked)
    clipped: List[str] = []
    out = dict(values)
    out.update(fixed)
    for _ in range(MAX_PASSES):
        free = [k for k in out if k not in fixed]
        if not free:
            break
        budget = 1.0 - sum(fixed.values())
        free_total = sum(max(0.0, out[k]) for k in free)
        for key in free:
            if free_total > 0:
                out[key] = max(0.0, out[key]) * budget / free_total
            else:
                out[key] = budget / len(free)
        # Floors are applied before ceilings.
        under = [k for k in free if out[k] < low - 1e-12]
        over = [k for k in free if out[k] > high + 1e-12]
        hits, bound = (under, low) if under else (over, high)
        if not hits:
            break
        for key in hits:
            fixed[key] = bound
            out[key] = bound
            clipped.append(key)
    return out, clipped


def validation_confidence(summary: RangeSummary, odds: PotOdds, adjusted: bool) -> float:
    if summary.is_missing:
        confidence = 0.4
    elif summary.is_small:
        confidence = 0.6
    else:
        confidence = 0.8
    if not odds.stacks_known:
        confidence -= 0.1
    if adjusted:
        confidence *= 0.9
    return max(0.0, min(1.0, confidence))


def validate(
    combined: CombinedFrequencies,
    action: ClassifiedAction,
    summary: RangeSummary,
    odds: PotOdds,
) -> ValidatedFrequencies:
    incoming = combined.frequencies
    off_total = abs(incoming.total - 1.0) > SUM_TOLERANCE
    values = {"fold": incoming.fold, "call": incoming.call, "raise": incoming.raise_}
    locked = {"raise": 0.0} if action.is_all_in else {}
    out, clipped = enforce_bounds(values, locked)

    adjusted = bool(clipped) or off_total
    notes: Tuple[Assumption, ...] = ()
    if adjusted:
        what = ", ".join(clipped) if clipped else "total"
        notes = (Assumption("input_inconsistent", STAGE, f"clipped {what} into bounds"),)

    return ValidatedFrequencies(
        frequencies=FrequencyTriple(out["fold"], out["call"], out["raise"]),
        was_adjusted=adjusted,
        confidence=validation_confidence(summary, odds, adjusted),
        clipped=tuple(clipped),
        assumptions=notes,
    )
