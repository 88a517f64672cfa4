"""Merge the street pattern, additive deltas and raise multipliers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from response.schema import Adjustment, FrequencyTriple, RaiseModifier

NORMALIZE_TOLERANCE = 1e-3


@dataclass(frozen=True)
class CombinedFrequencies:
    raw: FrequencyTriple
    frequencies: FrequencyTriple
    raise_multiplier: float
    was_adjusted: bool

    def to_dict(self) -> dict:
        return {
            "raw": self.raw.to_dict(),
            "frequencies": self.frequencies.to_dict(),
            "raiseMultiplier": self.raise_multiplier,
            "wasNormalized": self.was_adjusted,
        }


def combine(
    base: FrequencyTriple,
    adjustments: Sequence[Adjustment],
    modifiers: Sequence[RaiseModifier],
    all_in: bool,
) -> CombinedFrequencies:
    fold, call, raise_ = base.as_tuple()
    for adj in adjustments:
        fold += adj.fold
        call += adj.call
        raise_ += adj.raise_

    multiplier = 1.0
    for mod in modifiers:
        multiplier *= mod.multiplier
    raise_ *= multiplier
    if all_in:
        raise_ = 0.0

    raw = FrequencyTriple(fold, call, raise_)
    clamped = raw.clamped(0.0, 1.0)
    if clamped.total <= 0:
        result = FrequencyTriple(0.5, 0.5, 0.0) if all_in else FrequencyTriple.thirds()
    else:
        result = clamped.normalized()

    changed = any(
        abs(before - after) >= NORMALIZE_TOLERANCE
        for before, after in zip(raw.as_tuple(), result.as_tuple())
    )
    return CombinedFrequencies(
        raw=raw,
        frequencies=result,
        raise_multiplier=multiplier,
        was_adjusted=changed,
    )
