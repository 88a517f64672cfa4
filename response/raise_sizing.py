"""Raise-size catalogue and SPR-banded bucket weights."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from response.constants import RAISE_BUCKETS
from response.theory import raise_sizing_band

BUCKET_ALIASES = {"small": "min", "medium": "pot", "large": "twoPot", "all_in": "allIn"}

BAND_WEIGHTS: Dict[str, Dict[str, float]] = {
    "spr_le_2": {"small": 0.45, "medium": 0.25, "large": 0.10, "all_in": 0.20},
    "spr_le_4": {"small": 0.40, "medium": 0.35, "large": 0.20, "all_in": 0.05},
    "spr_le_8": {"small": 0.35, "medium": 0.40, "large": 0.20, "all_in": 0.05},
    "deep": {"small": 0.30, "medium": 0.40, "large": 0.25, "all_in": 0.05},
}
AMOUNT_TOLERANCE = 1e-9


def raise_catalogue(pot: float, bet: float, effective_stack: float) -> Dict[str, float]:
    """Candidate raise-to amounts in BB, clamped to [0, effective stack]."""
    cap = max(0.0, effective_stack)
    amounts = {
        "min": 2.0 * bet,
        "halfPot": pot / 2.0 + 2.0 * bet,
        "pot": pot + 2.0 * bet,
        "twoPot": 2.0 * (pot + bet),
        "allIn": cap,
    }
    return {name: max(0.0, min(cap, value)) for name, value in amounts.items()}


@dataclass(frozen=True)
class RaiseSizing:
    catalogue: Dict[str, float]
    weighted: Dict[str, Dict[str, float]]
    spr_band: str
    buckets: Dict[str, str] = field(default_factory=lambda: dict(BUCKET_ALIASES))

    def to_dict(self) -> dict:
        return {
            "catalogue": dict(self.catalogue),
            "buckets": dict(self.buckets),
            "weighted": {k: dict(v) for k, v in self.weighted.items()},
            "sprBand": self.spr_band,
        }


def weight_raise_sizes(
    catalogue: Dict[str, float],
    spr: float,
    all_in: bool,
    effective_stack: float,
    call_amount: float,
) -> RaiseSizing:
    band = raise_sizing_band(spr)
    amounts = {bucket: catalogue[BUCKET_ALIASES[bucket]] for bucket in RAISE_BUCKETS}
    all_in_amount = amounts["all_in"]

    if all_in or effective_stack <= call_amount:
        weights = {bucket: 0.0 for bucket in RAISE_BUCKETS}
        weights["all_in"] = 1.0
    else:
        weights = dict(BAND_WEIGHTS[band])
        for bucket in ("small", "medium", "large"):
            if abs(amounts[bucket] - all_in_amount) <= AMOUNT_TOLERANCE:
                weights["all_in"] += weights[bucket]
                weights[bucket] = 0.0

    total = sum(weights.values())
    weighted = {
        bucket: {"amount": amounts[bucket], "weight": weights[bucket] / total}
        for bucket in RAISE_BUCKETS
    }
    return RaiseSizing(catalogue=dict(catalogue), weighted=weighted, spr_band=band)
