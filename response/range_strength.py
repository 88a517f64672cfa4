"""Strength distribution of the villain range on the current board."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Optional, Sequence, Tuple

from response.cards import board_texture_score, combo_strength
from response.ranges import Range, split_combo
from response.schema import Assumption

STRONG_THRESHOLD = 0.7
WEAK_THRESHOLD = 0.3
DRAWING_OUTS = 8
SMALL_RANGE_COMBOS = 30


@dataclass(frozen=True)
class RangeSummary:
    average_strength: float
    strong_share: float
    medium_share: float
    weak_share: float
    drawing_share: float
    category: str
    total_combos: int
    total_weight: float
    board_texture: str
    source: str = "stored"
    combo_strengths: Dict[str, float] = field(default_factory=dict, compare=False, repr=False)
    assumptions: Tuple[Assumption, ...] = ()

    @classmethod
    def neutral(cls, board: Sequence[str] = (), note: str = "no villain range") -> "RangeSummary":
        return cls(
            average_strength=0.5,
            strong_share=0.0,
            medium_share=1.0,
            weak_share=0.0,
            drawing_share=0.0,
            category="medium",
            total_combos=0,
            total_weight=0.0,
            board_texture=texture_label(board),
            source="missing",
            assumptions=(Assumption("range_missing", "range_strength", note),),
        )

    @property
    def is_missing(self) -> bool:
        return self.total_combos == 0

    @property
    def is_small(self) -> bool:
        return 0 < self.total_combos < SMALL_RANGE_COMBOS

    def to_dict(self) -> dict:
        return {
            "averageStrength": self.average_strength,
            "strongShare": self.strong_share,
            "mediumShare": self.medium_share,
            "weakShare": self.weak_share,
            "drawingShare": self.drawing_share,
            "category": self.category,
            "totalCombos": self.total_combos,
            "totalWeight": self.total_weight,
            "boardTexture": self.board_texture,
            "source": self.source,
        }


def strength_category(average: float) -> str:
    if average >= 0.70:
        return "very_strong"
    if average >= 0.55:
        return "strong"
    if average >= 0.40:
        return "medium"
    if average >= 0.20:
        return "weak"
    return "very_weak"


def texture_label(board: Sequence[str]) -> str:
    if len(board) < 3:
        return "none"
    score = board_texture_score(board)
    if score >= 1.5:
        return "wet"
    if score < 0.6:
        return "dry"
    return "neutral"


@lru_cache(maxsize=65536)
def _cached_strength(key: str, board: Tuple[str, ...]) -> Tuple[float, int]:
    return combo_strength(split_combo(key), board)


def evaluate_combo(key: str, board: Sequence[str]) -> Tuple[float, int]:
    """Strength and outs for one canonical combo key."""
    return _cached_strength(key, tuple(board))


def summarize_range(villain_range: Optional[Range], board: Sequence[str]) -> RangeSummary:
    """
    Summarize a villain range on a board.

    Combos that collide with board cards are ignored. An empty or missing
    range yields the neutral medium summary.
    """
    board = list(board or [])
    if villain_range is None or not len(villain_range):
        return RangeSummary.neutral(board)

    dead = set(board)
    total = 0.0
    weighted = 0.0
    strong = medium = weak = drawing = 0.0
    strengths: Dict[str, float] = {}
    for key, weight in villain_range.items():
        a, b = split_combo(key)
        if a in dead or b in dead:
            continue
        strength, outs = evaluate_combo(key, board)
        strengths[key] = strength
        total += weight
        weighted += weight * strength
        if strength >= STRONG_THRESHOLD:
            strong += weight
        elif strength <= WEAK_THRESHOLD:
            weak += weight
        else:
            medium += weight
        if outs >= DRAWING_OUTS:
            drawing += weight

    if total <= 0:
        return RangeSummary.neutral(board, note="every combo blocked by the board")

    average = weighted / total
    notes: Tuple[Assumption, ...] = ()
    if villain_range.source == "default":
        notes = (Assumption("range_defaulted", "range_strength", "no stored range; unblocked full range used"),)

    return RangeSummary(
        average_strength=average,
        strong_share=strong / total,
        medium_share=medium / total,
        weak_share=weak / total,
        drawing_share=drawing / total,
        category=strength_category(average),
        total_combos=len(strengths),
        total_weight=total,
        board_texture=texture_label(board),
        source=villain_range.source,
        combo_strengths=strengths,
        assumptions=notes,
    )
