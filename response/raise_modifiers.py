"""Multiplicative raise modifiers: bet sizing and the villain's earlier actions."""

from __future__ import annotations

from typing import List, Optional

from models import ActionVerb, BettingAction, Hand
from response.classifier import ClassifiedAction
from response.range_strength import RangeSummary
from response.schema import RaiseModifier

SIZING_MULTIPLIERS = {
    "none": 1.0,
    "small": 1.4,
    "medium": 1.0,
    "large": 0.6,
    "very_large": 0.4,
    "all_in": 0.0,
}
PATTERN_BOUNDS = (0.5, 1.5)
PASSIVE_VERBS = (ActionVerb.CHECK, ActionVerb.CALL)


def is_polarized(summary: RangeSummary) -> bool:
    s = summary.strong_share
    w = summary.weak_share
    return s >= 0.2 and w >= 0.2 and s + w >= 2 * summary.medium_share


def bet_sizing_modifier(action: ClassifiedAction, summary: RangeSummary) -> RaiseModifier:
    multiplier = SIZING_MULTIPLIERS.get(action.sizing_bucket, 1.0)
    notes = [f"{action.sizing_bucket} sizing x{multiplier:.2f}"]
    polarized = is_polarized(summary)
    if polarized:
        multiplier *= 1.1
        notes.append("polarized range")
    if summary.drawing_share > 0.2:
        multiplier *= 1.05
        notes.append("draw-heavy range")
    return RaiseModifier(
        stage="bet_sizing",
        multiplier=multiplier,
        explanation=", ".join(notes),
        details={"polarized": 1.0 if polarized else 0.0},
    )


def villain_history(hand: Optional[Hand], villain_id: Optional[str], index: int) -> List[BettingAction]:
    if hand is None or not villain_id:
        return []
    return [
        a for a in hand.actions_before(index)
        if a.player_id == villain_id and a.is_voluntary
    ]


def action_pattern_modifier(
    hand: Optional[Hand],
    villain_id: Optional[str],
    index: int,
    summary: RangeSummary,
) -> RaiseModifier:
    """
    Scale raising by how the villain has played so far.

    A weak range overrides the history entirely.
    """
    if summary.category in ("weak", "very_weak"):
        return RaiseModifier(
            stage="action_pattern",
            multiplier=0.9,
            explanation=f"{summary.category} range caps raising",
        )
    history = villain_history(hand, villain_id, index)
    if not history:
        return RaiseModifier.neutral("action_pattern", "no prior villain actions")

    count = float(len(history))
    aggressive = sum(1 for a in history if a.is_aggressive) / count
    passive = sum(1 for a in history if a.verb in PASSIVE_VERBS) / count
    folds = sum(1 for a in history if a.verb == ActionVerb.FOLD) / count

    multiplier = 1.0
    notes = []
    if aggressive > 0.5:
        multiplier *= 0.8
        notes.append("aggressive history")
    if passive > 0.5:
        multiplier *= 1.2
        notes.append("passive history")
    if folds > 0.4:
        multiplier *= 1.15
        notes.append("fold-prone history")
    low, high = PATTERN_BOUNDS
    multiplier = max(low, min(high, multiplier))
    return RaiseModifier(
        stage="action_pattern",
        multiplier=multiplier,
        explanation=", ".join(notes) or "mixed history",
        details={"aggressive_share": aggressive, "passive_share": passive, "fold_share": folds},
    )
