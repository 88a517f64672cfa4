"""Min/max bands and confidence intervals around the final frequencies."""

from __future__ import annotations

from typing import Dict, Optional

from response.range_strength import RangeSummary
from response.schema import FrequencyTriple

BASE_UNCERTAINTY = {"high": 0.05, "medium": 0.10, "low": 0.20}
MIN_UNCERTAINTY = 0.02
MAX_UNCERTAINTY = 0.40
Z_SCORES = {"90%": 1.645, "95%": 1.96}


def confidence_level(confidence: float) -> str:
    if confidence >= 0.75:
        return "high"
    if confidence >= 0.5:
        return "medium"
    return "low"


def action_uncertainty(
    action: str,
    frequency: float,
    level: str,
    summary: Optional[RangeSummary] = None,
) -> float:
    """
    Relative uncertainty for one action's frequency.

    Starts from the confidence level, then widens for extreme frequencies
    and narrow ranges and narrows for wide ranges or a clear-cut range
    strength.
    """
    u = BASE_UNCERTAINTY.get(level, 0.15)
    if action == "fold":
        if frequency > 0.8 or frequency < 0.2:
            u += 0.03
        if summary is not None and summary.total_combos:
            if summary.total_combos < 10:
                u += 0.05
            elif summary.total_combos > 100:
                u -= 0.02
    elif action == "call":
        if frequency > 0.7 or frequency < 0.1:
            u += 0.04
    else:
        if frequency > 0.4 or frequency < 0.05:
            u += 0.06
        if summary is not None:
            if summary.category in ("very_weak", "very_strong"):
                u -= 0.03
            elif summary.category == "medium":
                u += 0.05
    return max(MIN_UNCERTAINTY, min(MAX_UNCERTAINTY, u))


def frequency_band(frequency: float, uncertainty: float) -> Dict[str, object]:
    spread = uncertainty * frequency
    low = max(0.0, frequency - spread)
    high = min(1.0, frequency + spread)
    mid = (low + high) / 2
    return {
        "frequency": frequency,
        "min": low,
        "max": high,
        "uncertainty": uncertainty,
        "intervals": {
            label: {
                "min": max(0.0, mid - z * uncertainty * mid),
                "max": min(1.0, mid + z * uncertainty * mid),
            }
            for label, z in Z_SCORES.items()
        },
    }


def frequency_ranges(
    frequencies: FrequencyTriple,
    confidence: float,
    summary: Optional[RangeSummary] = None,
) -> Dict[str, object]:
    level = confidence_level(confidence)
    bands = {
        action: frequency_band(value, action_uncertainty(action, value, level, summary))
        for action, value in zip(("fold", "call", "raise"), frequencies.as_tuple())
    }
    bands["confidenceLevel"] = level
    return bands
