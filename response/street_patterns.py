"""Base fold/call/raise triple by street and sizing bucket, with street corrections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from models import Street
from response.cards import board_texture_score
from response.constants import DEFAULT_PATTERN, NO_BET_PATTERN, STREET_PATTERN_TABLE
from response.schema import Assumption, FrequencyTriple

STAGE = "street_pattern"
WET_SCORE = 1.5
DRY_SCORE = 0.6
TEXTURE_SHIFT = 0.02
COMMITMENT_SHIFT = 0.02
COMMITMENT_BASE = {"preflop": 0.0, "flop": 0.3, "turn": 0.6, "river": 0.9}


@dataclass(frozen=True)
class StreetPattern:
    street: str
    bucket: str
    base: FrequencyTriple
    adjusted: FrequencyTriple
    commitment: float
    row: str
    assumptions: Tuple[Assumption, ...] = ()

    def to_dict(self) -> dict:
        return {
            "street": self.street,
            "bucket": self.bucket,
            "row": self.row,
            "base": self.base.to_dict(),
            "adjusted": self.adjusted.to_dict(),
            "commitment": self.commitment,
        }


def lookup_pattern(street: str, bucket: str) -> Tuple[FrequencyTriple, str, List[Assumption]]:
    """Table lookup only; returns (triple, row label, assumptions)."""
    notes: List[Assumption] = []
    if bucket == "none":
        notes.append(Assumption("no_bet_faced", STAGE, "no bet faced; check-through pattern used"))
        return FrequencyTriple.of(NO_BET_PATTERN), "none", notes
    row_street = street
    if street == "preflop":
        row_street = "flop"
        notes.append(Assumption("preflop_pattern", STAGE, "preflop uses the flop row"))
    row = STREET_PATTERN_TABLE.get(row_street, {})
    if bucket not in row:
        notes.append(Assumption("default_pattern", STAGE, f"no row for {street}/{bucket}"))
        return FrequencyTriple.of(DEFAULT_PATTERN), "default", notes
    return FrequencyTriple.of(row[bucket]), f"{row_street}/{bucket}", notes


def street_pattern(
    street: str,
    bucket: str,
    board: Sequence[str] = (),
    average_strength: float = 0.5,
) -> StreetPattern:
    """
    Base triple plus board-wetness and commitment corrections.

    The corrections only move mass between fold and call; raise stays at
    the table value.
    """
    base, row, notes = lookup_pattern(street, bucket)
    fold, call, raise_ = base.as_tuple()

    if bucket != "none":
        if len(board) >= 3:
            score = board_texture_score(board)
            if score >= WET_SCORE:
                fold -= TEXTURE_SHIFT
                call += TEXTURE_SHIFT
            elif score < DRY_SCORE:
                fold += TEXTURE_SHIFT
                call -= TEXTURE_SHIFT
        label = Street.from_label(street)
        idx = label.index if label is not None else 0
        if idx > 1:
            shift = COMMITMENT_SHIFT * (idx - 1)
            fold -= shift
            call += shift

    commitment = min(1.0, COMMITMENT_BASE.get(street, 0.0) + 0.2 * average_strength)
    notes.append(Assumption("street_pattern", STAGE, f"row {row}"))
    adjusted = FrequencyTriple(max(0.0, fold), max(0.0, call), max(0.0, raise_))
    return StreetPattern(
        street=street,
        bucket=bucket,
        base=base,
        adjusted=adjusted,
        commitment=commitment,
        row=row,
        assumptions=tuple(notes),
    )
