"""MDF-based analytical reference and its disagreement with the heuristic model."""

from __future__ import annotations

from dataclasses import dataclass

from response.classifier import ClassifiedAction
from response.schema import FrequencyTriple
from response.theory import minimum_defense_frequency, polarized_bluff_share, raise_size_factor
from response.validator import ValidatedFrequencies


@dataclass(frozen=True)
class GtoReference:
    frequencies: FrequencyTriple
    mdf: float
    bluff_ratio: float
    size_factor: float
    confidence: float
    disagreement: float
    override_strength: float

    def to_dict(self) -> dict:
        return {
            "frequencies": self.frequencies.to_dict(),
            "mdf": self.mdf,
            "bluffRatio": self.bluff_ratio,
            "overrideStrength": self.override_strength,
            "confidence": self.confidence,
        }


def reference_frequencies(action: ClassifiedAction) -> FrequencyTriple:
    """
    Baseline triple from bet and pot alone.

    fold = 1 - MDF
    raise = bluffRatio * (1 - MDF) * sizeFactor
    call = remainder
    """
    bet = action.bet_bb
    pot = action.pot_before_bb
    if bet <= 0:
        return FrequencyTriple(0.0, 1.0, 0.0)
    mdf = minimum_defense_frequency(pot, bet)
    ratio = bet / pot if pot > 0 else 0.0
    fold = 1.0 - mdf
    raise_ = 0.0
    if not action.is_all_in:
        raise_ = polarized_bluff_share(ratio) * (1.0 - mdf) * raise_size_factor(ratio)
    call = max(0.0, 1.0 - fold - raise_)
    return FrequencyTriple(fold, call, raise_).normalized()


def reference_confidence(action: ClassifiedAction, active_players: int) -> float:
    confidence = 0.7
    if action.street == "river":
        confidence += 0.1
    elif action.street == "preflop":
        confidence -= 0.2
    if active_players > 2:
        confidence -= 0.15
    if action.is_all_in:
        confidence += 0.1
    return max(0.05, min(0.95, confidence))


def gto_reference(
    action: ClassifiedAction,
    validated: ValidatedFrequencies,
    active_players: int = 2,
) -> GtoReference:
    frequencies = reference_frequencies(action)
    ratio = action.bet_to_pot
    confidence = reference_confidence(action, active_players)
    disagreement = validated.frequencies.distance(frequencies)
    return GtoReference(
        frequencies=frequencies,
        mdf=minimum_defense_frequency(action.pot_before_bb, action.bet_bb),
        bluff_ratio=polarized_bluff_share(ratio),
        size_factor=raise_size_factor(ratio),
        confidence=confidence,
        disagreement=disagreement,
        override_strength=confidence * disagreement,
    )
