"""Small value types shared by the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class Assumption:
    """
    Structured note recorded when a stage defaults, clips or picks a table row.

    `kind` is the stable, testable part; `note` is for humans.
    """
    kind: str
    stage: str
    note: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "stage": self.stage, "note": self.note}


@dataclass(frozen=True)
class FrequencyTriple:
    fold: float
    call: float
    raise_: float

    @classmethod
    def of(cls, values: Tuple[float, float, float]) -> "FrequencyTriple":
        return cls(float(values[0]), float(values[1]), float(values[2]))

    @classmethod
    def thirds(cls) -> "FrequencyTriple":
        return cls(1.0 / 3.0, 1.0 / 3.0, 1.0 / 3.0)

    @property
    def total(self) -> float:
        return self.fold + self.call + self.raise_

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.fold, self.call, self.raise_)

    def clamped(self, low: float = 0.0, high: float = 1.0) -> "FrequencyTriple":
        return FrequencyTriple(
            _clamp(self.fold, low, high),
            _clamp(self.call, low, high),
            _clamp(self.raise_, low, high),
        )

    def normalized(self) -> "FrequencyTriple":
        total = self.total
        if total <= 0:
            return FrequencyTriple.thirds()
        return FrequencyTriple(self.fold / total, self.call / total, self.raise_ / total)

    def distance(self, other: "FrequencyTriple") -> float:
        """Half the L1 distance; 0 for identical triples, 1 for disjoint ones."""
        return 0.5 * (
            abs(self.fold - other.fold)
            + abs(self.call - other.call)
            + abs(self.raise_ - other.raise_)
        )

    def to_dict(self) -> Dict[str, float]:
        return {"fold": self.fold, "call": self.call, "raise": self.raise_}


@dataclass(frozen=True)
class Adjustment:
    """Additive delta-triple from one adjustment stage."""
    stage: str
    fold: float = 0.0
    call: float = 0.0
    raise_: float = 0.0
    explanation: str = ""
    details: Dict[str, float] = field(default_factory=dict)
    assumptions: Tuple[Assumption, ...] = ()

    @classmethod
    def neutral(cls, stage: str, explanation: str = "no adjustment") -> "Adjustment":
        return cls(stage=stage, explanation=explanation)

    def to_dict(self) -> Dict[str, object]:
        return {
            "stage": self.stage,
            "fold": self.fold,
            "call": self.call,
            "raise": self.raise_,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class RaiseModifier:
    """Multiplicative factor applied to the raise component only."""
    stage: str
    multiplier: float = 1.0
    explanation: str = ""
    details: Dict[str, float] = field(default_factory=dict)
    assumptions: Tuple[Assumption, ...] = ()

    @classmethod
    def neutral(cls, stage: str, explanation: str = "no modifier") -> "RaiseModifier":
        return cls(stage=stage, explanation=explanation)

    def to_dict(self) -> Dict[str, object]:
        return {"stage": self.stage, "multiplier": self.multiplier, "explanation": self.explanation}


def bounded(value: float, bound: float) -> float:
    """Clamp a delta to a symmetric bound."""
    return _clamp(value, -bound, bound)
