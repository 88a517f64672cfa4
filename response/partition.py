"""Split a villain range into disjoint fold, call and raise sub-ranges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from response.range_strength import evaluate_combo
from response.ranges import Range
from response.schema import FrequencyTriple


@dataclass(frozen=True)
class RangePartition:
    fold: Range
    call: Range
    raise_: Range

    @property
    def total_weight(self) -> float:
        return self.fold.total_weight + self.call.total_weight + self.raise_.total_weight

    def to_dict(self) -> dict:
        return {
            "fold": self.fold.to_dict(),
            "call": self.call.to_dict(),
            "raise": self.raise_.to_dict(),
        }


def _take(ordered: Sequence[Tuple[str, float]], quota: float) -> List[Tuple[str, float]]:
    """Take combos from the front while acc + w/2 stays within the quota."""
    taken: List[Tuple[str, float]] = []
    acc = 0.0
    for key, weight in ordered:
        if acc + weight / 2.0 > quota:
            break
        taken.append((key, weight))
        acc += weight
    return taken


def partition_range(
    villain_range: Optional[Range],
    frequencies: FrequencyTriple,
    strengths: Optional[Dict[str, float]] = None,
    board: Sequence[str] = (),
) -> RangePartition:
    """
    Weakest combos fold, strongest raise, the middle calls.

    Ordering is by (strength, combo key) so ties break the same way every
    run. Combos are never split between buckets.
    """
    source = villain_range.source if villain_range is not None else "missing"
    if villain_range is None or not len(villain_range):
        return RangePartition(Range(source=source), Range(source=source), Range(source=source))

    strengths = strengths or {}
    scored = []
    for key, weight in villain_range.items():
        strength = strengths.get(key)
        if strength is None:
            strength = evaluate_combo(key, board)[0]
        scored.append((strength, key, weight))
    scored.sort(key=lambda item: (item[0], item[1]))
    ordered = [(key, weight) for _, key, weight in scored]
    total = sum(weight for _, weight in ordered)

    folded = _take(ordered, frequencies.fold * total)
    remaining = ordered[len(folded):]
    raised = _take(list(reversed(remaining)), frequencies.raise_ * total)
    called = remaining[: len(remaining) - len(raised)]

    return RangePartition(
        fold=Range(dict(folded), source=source),
        call=Range(dict(called), source=source),
        raise_=Range(dict(raised), source=source),
    )
