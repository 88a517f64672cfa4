"""Board texture classification and its fold/call/raise adjustment."""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from response.cards import card_rank, card_suit
from response.schema import Adjustment, bounded
from response.street_patterns import StreetPattern

STAGE = "board_texture"
TEXTURE_BOUND = 0.06
STREET_SCALE = {"flop": 1.0, "turn": 1.15, "river": 1.3}


def _ranks_with_low_ace(board: Sequence[str]) -> set:
    ranks = {card_rank(c) for c in board}
    if 14 in ranks:
        ranks.add(1)
    return ranks


def _is_connected(board: Sequence[str]) -> bool:
    """Three distinct ranks inside a span of four."""
    ranks = sorted(_ranks_with_low_ace(board))
    for i in range(len(ranks) - 2):
        if ranks[i + 2] - ranks[i] <= 3:
            return True
    return False


def _is_semi_connected(board: Sequence[str]) -> bool:
    ranks = sorted(_ranks_with_low_ace(board))
    return any(b - a <= 2 for a, b in zip(ranks, ranks[1:]))


def classify_board(board: Sequence[str]) -> str:
    if len(board) < 3:
        return "none"
    rank_counts = Counter(card_rank(c) for c in board)
    suit_counts = Counter(card_suit(c) for c in board)
    top_rank = max(rank_counts.values())
    top_suit = max(suit_counts.values())
    connected = _is_connected(board)

    if top_rank >= 3:
        return "trips"
    if top_rank == 2:
        return "paired"
    if top_suit >= 3 or (top_suit == 2 and connected):
        return "wet"
    if connected:
        return "connected"
    if _is_semi_connected(board):
        return "semi_connected"
    return "dry"


def board_texture_adjustment(street: str, board: Sequence[str], pattern: StreetPattern) -> Adjustment:
    texture = classify_board(board)
    if texture == "none":
        return Adjustment.neutral(STAGE, "no board")
    sc = STREET_SCALE.get(street, 1.0)
    br = pattern.adjusted.raise_
    fold = call = raise_ = 0.0
    if texture == "dry":
        fold, call = 0.03 * sc, -0.03 * sc
    elif texture == "wet":
        fold, call = -0.04 * sc, 0.04 * sc
    elif texture == "connected":
        fold, call = -0.03 * sc, 0.03 * sc
    elif texture == "semi_connected":
        fold, call = -0.015 * sc, 0.015 * sc
    elif texture == "paired":
        raise_ = -0.15 * br * sc
        call = -raise_
    elif texture == "trips":
        raise_ = -0.25 * br * sc
        fold = 0.02 * sc
        call = -fold - raise_
    return Adjustment(
        stage=STAGE,
        fold=bounded(fold, TEXTURE_BOUND),
        call=bounded(call, TEXTURE_BOUND),
        raise_=bounded(raise_, TEXTURE_BOUND),
        explanation=f"{texture} board on the {street}",
        details={"scale": sc},
    )
