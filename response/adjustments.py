"""Additive fold/call/raise adjustments: base fold, range strength, position, depth, multiway."""

from __future__ import annotations

from typing import List, Optional

from models import Hand, Street
from response.classifier import ClassifiedAction, acts_before
from response.constants import BLIND_POSITIONS, normalize_position
from response.pot_odds import PotOdds
from response.range_strength import RangeSummary
from response.schema import Adjustment, Assumption, bounded
from response.street_patterns import StreetPattern
from response.theory import classify_spr

BASE_FOLD_BOUND = 0.05
STRENGTH_FOLD_BOUND = 0.10
STRENGTH_RAISE_BOUND = 0.03
POSITION_BOUND = 0.15
STACK_BOUND = 0.05

MULTIWAY_MULTIPLIERS = {2: 1.0, 3: 1.2, 4: 1.4}
MULTIWAY_MAX = 1.6


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def all_in_target_fold(pot_odds: float) -> float:
    if pot_odds < 0.15:
        return 0.2
    if pot_odds < 0.25:
        return 0.4
    if pot_odds < 0.35:
        return 0.6
    if pot_odds < 0.45:
        return 0.8
    return 0.9


def target_fold(action: ClassifiedAction, odds: PotOdds) -> Optional[float]:
    ratio = action.bet_to_pot
    bucket = action.sizing_bucket
    if bucket == "small":
        target = 0.35 + 0.5 * ratio
    elif bucket == "medium":
        target = 0.5 + 0.3 * ratio
    elif bucket == "large":
        target = 0.75 + 0.15 * ratio
    elif bucket == "very_large":
        target = 0.85 + 0.1 * ratio
    elif bucket == "all_in":
        target = all_in_target_fold(odds.pot_odds)
    else:
        return None
    if action.is_cbet:
        target += 0.02
    return _clamp(target, 0.05, 0.95)


def base_fold_adjustment(action: ClassifiedAction, pattern: StreetPattern, odds: PotOdds) -> Adjustment:
    """Pull the table fold toward a sizing-driven target."""
    target = target_fold(action, odds)
    if target is None:
        return Adjustment.neutral("base_fold", "no bet faced")
    delta = bounded(0.25 * (target - pattern.adjusted.fold), BASE_FOLD_BOUND)
    return Adjustment(
        stage="base_fold",
        fold=delta,
        call=-delta,
        explanation=f"{action.sizing_bucket} sizing targets {target:.0%} folds",
        details={"target_fold": target},
    )


def range_strength_adjustment(action: ClassifiedAction, summary: RangeSummary) -> Adjustment:
    a = summary.average_strength
    fold = 0.3 * (0.5 - a)
    if summary.drawing_share > 0.2:
        if action.sizing_bucket == "small":
            fold -= 0.03
        elif action.sizing_bucket in ("large", "very_large"):
            fold += 0.03
    fold = bounded(fold, STRENGTH_FOLD_BOUND)
    raise_ = 0.0
    if not action.is_all_in:
        raise_ = min(STRENGTH_RAISE_BOUND, 0.1 * max(0.0, summary.strong_share - 0.2))
    return Adjustment(
        stage="range_strength",
        fold=fold,
        call=-fold - raise_,
        raise_=raise_,
        explanation=f"{summary.category} range (average strength {a:.2f})",
        details={"average_strength": a, "strong_share": summary.strong_share},
    )


def is_blind_vs_blind(hero_position: str, villain_position: str) -> bool:
    pair = {normalize_position(hero_position), normalize_position(villain_position)}
    return pair == BLIND_POSITIONS


def position_adjustment(
    action: ClassifiedAction,
    pattern: StreetPattern,
    villain_position: str,
) -> Adjustment:
    """Blind-vs-blind defends wider; in position defends wider; out of position folds more."""
    bf = pattern.adjusted.fold
    street = Street.from_label(action.street) or Street.FLOP
    if is_blind_vs_blind(action.position, villain_position):
        raise_ = 0.0 if action.is_all_in else 0.02
        fold = bounded(-0.10 * bf, POSITION_BOUND)
        return Adjustment(
            stage="position",
            fold=fold,
            call=-fold - raise_,
            raise_=raise_,
            explanation="blind vs blind defends wider",
            details={"blind_vs_blind": 1.0},
        )

    hero_first = acts_before(action.position, villain_position, street)
    if hero_first is None:
        return Adjustment(
            stage="position",
            explanation="position unknown",
            assumptions=(
                Assumption(
                    "position_unknown",
                    "position",
                    f"cannot order {action.position or '?'} vs {villain_position or '?'}",
                ),
            ),
        )
    if hero_first:
        fold = bounded(-0.15 * bf, POSITION_BOUND)
        text = "villain in position"
    else:
        fold = bounded(0.20 * bf, POSITION_BOUND)
        text = "villain out of position"
    return Adjustment(
        stage="position",
        fold=fold,
        call=-fold,
        explanation=text,
        details={"in_position": 1.0 if hero_first else 0.0},
    )


def stack_depth_adjustment(action: ClassifiedAction, pattern: StreetPattern, odds: PotOdds) -> Adjustment:
    band = classify_spr(odds.stack_to_pot)
    fold = 0.0
    raise_ = 0.0
    if band.label == "deep":
        fold = -0.015
    elif band.label == "short":
        fold = -0.02
    elif band.label == "all_in":
        fold = -0.01
        if not action.is_all_in:
            raise_ = -0.5 * pattern.adjusted.raise_
    fold = bounded(fold, STACK_BOUND)
    raise_ = bounded(raise_, STACK_BOUND)
    return Adjustment(
        stage="stack_depth",
        fold=fold,
        call=-fold - raise_,
        raise_=raise_,
        explanation=f"{band.label} stacks (SPR {odds.stack_to_pot:.1f})",
        details={"spr": odds.stack_to_pot},
    )


def multiway_multiplier(active_players: int) -> float:
    if active_players >= 5:
        return MULTIWAY_MAX
    return MULTIWAY_MULTIPLIERS.get(max(2, active_players), 1.0)


def active_player_count(hand: Optional[Hand], index: int) -> int:
    if hand is None:
        return 2
    return max(2, len(hand.active_players_at(index)))


def multiway_adjustment(active_players: int) -> Adjustment:
    multiplier = multiway_multiplier(active_players)
    fold = 0.1 * (multiplier - 1.0)
    return Adjustment(
        stage="multiway",
        fold=fold,
        call=-fold,
        explanation=f"{active_players} players active",
        details={"multiplier": multiplier, "active_players": float(active_players)},
    )


def run_adjustments(
    hand: Optional[Hand],
    action: ClassifiedAction,
    pattern: StreetPattern,
    odds: PotOdds,
    summary: RangeSummary,
    villain_position: str,
) -> List[Adjustment]:
    """Stages E through I in order."""
    return [
        base_fold_adjustment(action, pattern, odds),
        range_strength_adjustment(action, summary),
        position_adjustment(action, pattern, villain_position),
        stack_depth_adjustment(action, pattern, odds),
        multiway_adjustment(active_player_count(hand, action.index)),
    ]
