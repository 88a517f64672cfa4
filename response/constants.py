"""Shared constants for the villain response-model pipeline."""

from __future__ import annotations

from typing import Dict, List, Tuple

REMAINING_STREETS: Dict[str, int] = {"preflop": 3, "flop": 2, "turn": 1, "river": 0}

# Acting order; the later seat is in position.
PREFLOP_ORDER: List[str] = ["UTG", "UTG+1", "UTG+2", "MP", "LJ", "HJ", "CO", "BTN", "SB", "BB"]
POSTFLOP_ORDER: List[str] = ["SB", "BB", "UTG", "UTG+1", "UTG+2", "MP", "LJ", "HJ", "CO", "BTN"]
BLIND_POSITIONS = {"SB", "BB"}

POSITION_ALIASES: Dict[str, str] = {
    "D": "BTN",
    "DEALER": "BTN",
    "BUTTON": "BTN",
    "SMALL BLIND": "SB",
    "BIG BLIND": "BB",
    "UTG1": "UTG+1",
    "UTG2": "UTG+2",
    "EP": "UTG",
    "HIJACK": "HJ",
    "LOJACK": "LJ",
    "CUTOFF": "CO",
}

CARD_RANKS = "23456789TJQKA"
CARD_SUITS = "cdhs"

RAISE_BUCKETS = ["small", "medium", "large", "all_in"]

DEFAULT_STACK_BB = 100.0
PREFLOP_BLIND_POT_BB = 1.5
MIN_POT_BB = 1.5

FREQUENCY_FLOOR = 0.01
FREQUENCY_CEILING = 0.99

SOURCE_VERSION = "response-model/1.0"

Triple = Tuple[float, float, float]

# (fold, call, raise) by street and sizing bucket.
STREET_PATTERN_TABLE: Dict[str, Dict[str, Triple]] = {
    "flop": {
        "small": (0.40, 0.50, 0.10),
        "medium": (0.60, 0.30, 0.10),
        "large": (0.80, 0.15, 0.05),
        "very_large": (0.90, 0.08, 0.02),
        "all_in": (0.70, 0.30, 0.00),
    },
    "turn": {
        "small": (0.30, 0.60, 0.10),
        "medium": (0.50, 0.40, 0.10),
        "large": (0.70, 0.25, 0.05),
        "very_large": (0.85, 0.12, 0.03),
        "all_in": (0.60, 0.40, 0.00),
    },
    "river": {
        "small": (0.25, 0.65, 0.10),
        "medium": (0.40, 0.50, 0.10),
        "large": (0.60, 0.30, 0.10),
        "very_large": (0.80, 0.15, 0.05),
        "all_in": (0.50, 0.50, 0.00),
    },
}
DEFAULT_PATTERN: Triple = (0.5, 0.3, 0.2)
NO_BET_PATTERN: Triple = (0.0, 0.75, 0.25)


def normalize_position(label: str) -> str:
    """Upper-case a position label and map common aliases onto the canonical set."""
    text = str(label or "").strip().upper()
    return POSITION_ALIASES.get(text, text)
