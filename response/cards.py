"""Card utilities, hand evaluator, made-hand categories and draw detection."""

from __future__ import annotations

from itertools import combinations
from typing import Dict, Iterable, List, Sequence, Tuple

from response.constants import CARD_RANKS, CARD_SUITS

RANK_TO_VALUE = {r: i + 2 for i, r in enumerate(CARD_RANKS)}
SUIT_ORDER = {s: i for i, s in enumerate(CARD_SUITS)}

CATEGORY_STRENGTH: Dict[str, float] = {
    "straight_flush": 1.0,
    "quads": 0.98,
    "full_house": 0.95,
    "flush": 0.90,
    "straight": 0.85,
    "set": 0.80,
    "trips": 0.75,
    "two_pair": 0.75,
    "overpair": 0.70,
    "top_pair": 0.65,
    "second_pair": 0.55,
    "pair": 0.45,
    "pair_board": 0.35,
    "air": 0.20,
}

DRAW_BONUS: Dict[str, float] = {
    "combo_draw": 0.15,
    "flush_draw": 0.10,
    "oesd": 0.08,
    "gutshot": 0.05,
}

DRAW_OUTS: Dict[str, int] = {
    "flush_draw": 9,
    "oesd": 8,
    "gutshot": 4,
}


def full_deck() -> List[str]:
    """Return an ordered 52-card deck in rank/suit notation."""
    return [f"{r}{s}" for r in CARD_RANKS for s in CARD_SUITS]


def is_card(card: str) -> bool:
    return isinstance(card, str) and len(card) == 2 and card[0] in RANK_TO_VALUE and card[1] in SUIT_ORDER


def card_rank(card: str) -> int:
    return RANK_TO_VALUE[card[0]]


def card_suit(card: str) -> str:
    return card[1]


def card_sort_key(card: str) -> Tuple[int, int]:
    return (card_rank(card), SUIT_ORDER[card_suit(card)])


def _straight_high(ranks: Iterable[int]) -> int:
    """Return high card of straight if present, else 0."""
    unique = sorted(set(ranks))
    if len(unique) < 5:
        return 0
    best = 0
    if {14, 5, 4, 3, 2}.issubset(unique):
        best = 5
    for i in range(len(unique) - 4):
        window = unique[i : i + 5]
        if window[-1] - window[0] == 4:
            best = max(best, window[-1])
    return best


def hand_rank_5(cards: Sequence[str]) -> Tuple[int, Tuple[int, ...]]:
    """
    Rank a 5-card poker hand.

    Returns:
        (category, tiebreakers) where larger tuple compares better.
        Categories run from 8 (straight flush) down to 0 (high card).
    """
    if len(cards) != 5:
        raise ValueError("hand_rank_5 requires exactly 5 cards")

    ranks = [card_rank(c) for c in cards]
    counts: Dict[int, int] = {}
    for r in ranks:
        counts[r] = counts.get(r, 0) + 1
    ordered = sorted(counts.items(), key=lambda kv: (kv[1], kv[0]), reverse=True)

    is_flush = len({card_suit(c) for c in cards}) == 1
    straight_high = _straight_high(ranks)

    if is_flush and straight_high:
        return (8, (straight_high,))

    top_rank, top_count = ordered[0]
    if top_count == 4:
        return (7, (top_rank, max(r for r in ranks if r != top_rank)))
    if top_count == 3 and ordered[1][1] == 2:
        return (6, (top_rank, ordered[1][0]))
    if is_flush:
        return (5, tuple(sorted(ranks, reverse=True)))
    if straight_high:
        return (4, (straight_high,))
    if top_count == 3:
        return (3, (top_rank, *sorted((r for r in ranks if r != top_rank), reverse=True)))

    pairs = sorted((r for r, n in ordered if n == 2), reverse=True)
    if len(pairs) == 2:
        kicker = max(r for r in ranks if r not in pairs)
        return (2, (pairs[0], pairs[1], kicker))
    if len(pairs) == 1:
        return (1, (pairs[0], *sorted((r for r in ranks if r != pairs[0]), reverse=True)))
    return (0, tuple(sorted(ranks, reverse=True)))


def best_hand_rank(cards: Sequence[str]) -> Tuple[int, Tuple[int, ...]]:
    """Rank best 5-card hand from 5-7 cards."""
    if len(cards) < 5 or len(cards) > 7:
        raise ValueError("best_hand_rank requires 5 to 7 cards")
    if len(cards) == 5:
        return hand_rank_5(cards)
    return max(hand_rank_5(combo) for combo in combinations(cards, 5))


def preflop_strength_score(card_a: str, card_b: str) -> float:
    """Heuristic 0-100 strength score for two-card hand quality."""
    r1 = card_rank(card_a)
    r2 = card_rank(card_b)
    high = max(r1, r2)
    low = min(r1, r2)

    score = high * 3.0 + low * 2.0
    if r1 == r2:
        score += 24.0 + r1 * 1.5
    if card_suit(card_a) == card_suit(card_b):
        score += 4.0
    gap = high - low
    if gap == 1:
        score += 4.0
    elif gap == 2:
        score += 2.0
    elif gap >= 4:
        score -= 2.0
    if high >= 11:
        score += 2.0
    return max(0.0, min(100.0, score))


def board_texture_score(board: Sequence[str]) -> float:
    """Rough texture score; higher means wetter board."""
    if len(board) < 3:
        return 0.0
    ranks = sorted((card_rank(c) for c in board), reverse=True)
    suit_counts: Dict[str, int] = {}
    for c in board:
        suit_counts[card_suit(c)] = suit_counts.get(card_suit(c), 0) + 1
    connected = sum(1 for a, b in zip(ranks, ranks[1:]) if abs(a - b) <= 2)
    texture = 0.9 * max(0, max(suit_counts.values()) - 2)
    texture += 0.6 * connected
    texture += 0.8 if len(set(ranks)) < len(ranks) else 0.0
    return texture


def made_hand_category(hole: Sequence[str], board: Sequence[str]) -> str:
    """
    Name the made hand a two-card holding has on a 3-5 card board.

    Pair-level hands are split by what the hole cards contribute, so a pair
    that lives entirely on the board scores as `pair_board`.
    """
    if len(board) < 3:
        raise ValueError("made_hand_category requires a flop")
    category, tiebreak = best_hand_rank(list(hole) + list(board))
    hole_ranks = [card_rank(c) for c in hole]
    board_ranks = [card_rank(c) for c in board]
    distinct_board = sorted(set(board_ranks), reverse=True)
    pocket_pair = hole_ranks[0] == hole_ranks[1]

    if category == 8:
        return "straight_flush"
    if category == 7:
        return "quads"
    if category == 6:
        return "full_house"
    if category == 5:
        return "flush"
    if category == 4:
        return "straight"
    if category == 3:
        trip_rank = tiebreak[0]
        if pocket_pair and hole_ranks[0] == trip_rank:
            return "set"
        if trip_rank in hole_ranks:
            return "trips"
        return "pair_board"
    if category == 2:
        high_pair, low_pair = tiebreak[0], tiebreak[1]
        if high_pair in hole_ranks or low_pair in hole_ranks:
            return "two_pair"
        return "pair_board"
    if category == 1:
        pair_rank = tiebreak[0]
        if pocket_pair:
            if pair_rank > distinct_board[0]:
                return "overpair"
            return "pair"
        if pair_rank not in hole_ranks:
            return "pair_board"
        if pair_rank == distinct_board[0]:
            return "top_pair"
        if len(distinct_board) > 1 and pair_rank == distinct_board[1]:
            return "second_pair"
        return "pair"
    return "air"


def draw_types(hole: Sequence[str], board: Sequence[str]) -> List[str]:
    """
    Draws a holding has on a flop or turn board.

    Returns a subset of flush_draw / oesd / gutshot, plus combo_draw when a
    flush draw and a straight draw coexist. Rivers and made flushes/straights
    carry no draws.
    """
    if len(board) not in (3, 4):
        return []
    cards = list(hole) + list(board)
    category = best_hand_rank(cards)[0]
    draws: List[str] = []

    if category < 5:
        suit_counts: Dict[str, int] = {}
        for c in cards:
            suit_counts[card_suit(c)] = suit_counts.get(card_suit(c), 0) + 1
        for suit, count in suit_counts.items():
            if count == 4 and any(card_suit(h) == suit for h in hole):
                draws.append("flush_draw")
                break

    if category < 4:
        ranks = {card_rank(c) for c in cards}
        board_ranks = {card_rank(c) for c in board}
        completing = 0
        for value in range(2, 15):
            if value in ranks:
                continue
            if _straight_high(ranks | {value}) and not _straight_high(board_ranks | {value}):
                completing += 1
        if completing >= 2:
            draws.append("oesd")
        elif completing == 1:
            draws.append("gutshot")

    if "flush_draw" in draws and len(draws) > 1:
        draws.append("combo_draw")
    return draws


def draw_outs(draws: Sequence[str]) -> int:
    return sum(DRAW_OUTS.get(d, 0) for d in draws)


def combo_strength(hole: Sequence[str], board: Sequence[str]) -> Tuple[float, int]:
    """
    Strength score in [0, 1] and effective outs for one holding.

    Preflop uses the two-card heuristic; post-flop uses the made-hand
    category plus the largest draw bonus.
    """
    if len(board) < 3:
        return preflop_strength_score(hole[0], hole[1]) / 100.0, 0
    base = CATEGORY_STRENGTH[made_hand_category(hole, board)]
    draws = draw_types(hole, board)
    bonus = max((DRAW_BONUS[d] for d in draws), default=0.0)
    return min(1.0, base + bonus), draw_outs(draws)
