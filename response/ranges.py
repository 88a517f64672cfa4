"""Weighted two-card ranges over the fixed 1326-combo universe."""

from __future__ import annotations

from itertools import combinations
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from response.cards import card_sort_key, card_suit, full_deck, is_card
from response.constants import CARD_RANKS, CARD_SUITS


def combo_key(card_a: str, card_b: str) -> str:
    """Canonical identifier for an unordered pair: higher card first."""
    if card_a == card_b:
        raise ValueError(f"combo needs two distinct cards, got {card_a}{card_b}")
    high, low = sorted((card_a, card_b), key=card_sort_key, reverse=True)
    return f"{high}{low}"


def split_combo(key: str) -> Tuple[str, str]:
    return key[:2], key[2:]


def _build_universe() -> List[str]:
    deck = sorted(full_deck(), key=card_sort_key, reverse=True)
    return [combo_key(a, b) for a, b in combinations(deck, 2)]


ALL_COMBOS: List[str] = _build_universe()
COMBO_INDEX: Dict[str, int] = {key: i for i, key in enumerate(ALL_COMBOS)}


def hand_class(key: str) -> str:
    """Hand-class key for a combo: `AA`, `AKs` or `AKo`."""
    a, b = split_combo(key)
    if a[0] == b[0]:
        return a[0] + b[0]
    return f"{a[0]}{b[0]}{'s' if card_suit(a) == card_suit(b) else 'o'}"


def expand_hand_class(label: str) -> List[str]:
    """
    Combos covered by a hand-class key.

    `QQ` gives 6 combos, `AKs` gives 4 and `AKo` gives 12. A two-rank key
    without a suffix (`AK`) covers both suited and offsuit combos.
    """
    text = str(label or "").strip()
    if len(text) < 2 or text[0] not in CARD_RANKS or text[1] not in CARD_RANKS:
        raise ValueError(f"not a hand class: {label!r}")
    r1, r2 = text[0], text[1]
    suffix = text[2:].lower()
    if CARD_RANKS.index(r1) < CARD_RANKS.index(r2):
        r1, r2 = r2, r1
    if r1 == r2:
        return [combo_key(r1 + s1, r2 + s2) for s1, s2 in combinations(CARD_SUITS, 2)]
    out = []
    for s1 in CARD_SUITS:
        for s2 in CARD_SUITS:
            suited = s1 == s2
            if suffix == "s" and not suited:
                continue
            if suffix == "o" and suited:
                continue
            out.append(combo_key(r1 + s1, r2 + s2))
    return sorted(out, key=COMBO_INDEX.__getitem__)


def expand_key(label: str) -> List[str]:
    """Resolve either a 4-character combo or a hand-class key to combos."""
    text = str(label or "").strip()
    if len(text) == 4 and is_card(text[:2]) and is_card(text[2:]):
        return [combo_key(text[:2], text[2:])]
    return expand_hand_class(text)


class Range:
    """
    Mapping from canonical combo key to weight in [0, 1].

    Iteration always follows the fixed universe order so any computation
    over a range is deterministic regardless of how it was built.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None, source: str = "stored"):
        self._weights: Dict[str, float] = {}
        self.source = source
        for key, weight in (weights or {}).items():
            self.set(key, weight)

    @classmethod
    def from_keys(cls, keys: Iterable[str], weight: float = 1.0, source: str = "stored") -> "Range":
        out = cls(source=source)
        for label in keys:
            for key in expand_key(label):
                out.set(key, weight)
        return out

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float], source: str = "stored") -> "Range":
        """Build from combo and/or hand-class keys; combo keys win on overlap."""
        out = cls(source=source)
        classes = {k: v for k, v in mapping.items() if len(str(k).strip()) != 4}
        combos = {k: v for k, v in mapping.items() if len(str(k).strip()) == 4}
        for label, weight in classes.items():
            for key in expand_hand_class(label):
                out.set(key, weight)
        for label, weight in combos.items():
            for key in expand_key(label):
                out.set(key, weight)
        return out

    @classmethod
    def full(cls, dead_cards: Iterable[str] = (), source: str = "default") -> "Range":
        dead = set(dead_cards)
        out = cls(source=source)
        for key in ALL_COMBOS:
            a, b = split_combo(key)
            if a not in dead and b not in dead:
                out._weights[key] = 1.0
        return out

    def set(self, key: str, weight: float) -> None:
        if key not in COMBO_INDEX:
            if len(key) != 4 or not (is_card(key[:2]) and is_card(key[2:])):
                raise ValueError(f"unknown combo: {key!r}")
            key = combo_key(key[:2], key[2:])
        value = max(0.0, min(1.0, float(weight)))
        if value > 0:
            self._weights[key] = value
        else:
            self._weights.pop(key, None)

    def weight(self, key: str) -> float:
        return self._weights.get(key, 0.0)

    def items(self) -> List[Tuple[str, float]]:
        return sorted(self._weights.items(), key=lambda kv: COMBO_INDEX[kv[0]])

    def keys(self) -> List[str]:
        return [key for key, _ in self.items()]

    @property
    def total_weight(self) -> float:
        return sum(weight for _, weight in self.items())

    def without(self, dead_cards: Iterable[str]) -> "Range":
        dead = set(dead_cards)
        out = Range(source=self.source)
        for key, weight in self.items():
            a, b = split_combo(key)
            if a not in dead and b not in dead:
                out._weights[key] = weight
        return out

    def to_dict(self) -> Dict[str, float]:
        return dict(self.items())

    def __contains__(self, key: object) -> bool:
        return key in self._weights

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._weights)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"Range({len(self)} combos, weight={self.total_weight:.2f}, source={self.source!r})"
