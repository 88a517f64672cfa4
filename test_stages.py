#!/usr/bin/env python3
"""Stage-level tests for the response pipeline (street patterns through raise sizing)."""

from dataclasses import replace

import pytest

from parser import parse_hand
from response.adjustments import (
    all_in_target_fold,
    base_fold_adjustment,
    multiway_adjustment,
    multiway_multiplier,
    position_adjustment,
    range_strength_adjustment,
    stack_depth_adjustment,
)
from response.board_texture import board_texture_adjustment, classify_board
from response.call_raise import call_estimate, call_frequency_adjustment, raise_frequency_adjustment
from response.classifier import ClassifiedAction
from response.combiner import CombinedFrequencies, combine
from response.gto import gto_reference, reference_confidence, reference_frequencies
from response.partition import partition_range
from response.pot_odds import PotOdds
from response.raise_modifiers import action_pattern_modifier, bet_sizing_modifier, is_polarized
from response.raise_sizing import raise_catalogue, weight_raise_sizes
from response.range_strength import RangeSummary
from response.ranges import ALL_COMBOS, Range
from response.schema import Adjustment, FrequencyTriple, RaiseModifier
from response.street_patterns import street_pattern
from response.uncertainty import confidence_level, frequency_ranges
from response.validator import enforce_bounds, validate


def make_action(**overrides):
    fields = dict(
        index=3,
        action_id="a3",
        actor_id="h",
        position="CO",
        verb="bet",
        street="flop",
        bet_bb=1.0,
        pot_before_bb=4.0,
        bet_to_pot=0.25,
        sizing_bucket="small",
    )
    fields.update(overrides)
    return ClassifiedAction(**fields)


def make_summary(**overrides):
    fields = dict(
        average_strength=0.5,
        strong_share=0.2,
        medium_share=0.6,
        weak_share=0.2,
        drawing_share=0.0,
        category="medium",
        total_combos=200,
        total_weight=200.0,
        board_texture="dry",
    )
    fields.update(overrides)
    return RangeSummary(**fields)


def make_odds(**overrides):
    fields = dict(
        call_amount=1.0,
        pot_odds=0.2,
        implied_odds=2.0,
        reverse_implied_odds=1.8,
        effective_stack=60.0,
        stack_to_pot=15.0,
        remaining_streets=2,
        actor_stack=60.0,
        villain_stack=60.0,
    )
    fields.update(overrides)
    return PotOdds(**fields)


def triple(fold, call, raise_):
    return FrequencyTriple(fold, call, raise_)


DRY_FLOP = ["Ks", "7d", "2c"]


# Street patterns

def test_street_pattern_table_rows():
    flop = street_pattern("flop", "medium")
    assert flop.base.as_tuple() == (0.60, 0.30, 0.10)
    assert flop.adjusted.as_tuple() == (0.60, 0.30, 0.10)
    assert flop.row == "flop/medium"
    assert "street_pattern" in [a.kind for a in flop.assumptions]

    turn = street_pattern("turn", "medium")
    assert turn.adjusted.fold == pytest.approx(0.48)
    assert turn.adjusted.call == pytest.approx(0.42)
    assert turn.adjusted.raise_ == pytest.approx(0.10)


def test_street_pattern_wet_and_dry_corrections():
    dry = street_pattern("flop", "small", DRY_FLOP)
    assert dry.adjusted.fold == pytest.approx(0.42)
    assert dry.adjusted.call == pytest.approx(0.48)

    wet = street_pattern("river", "large", ["9h", "8h", "7h", "6c", "2d"])
    assert wet.adjusted.fold == pytest.approx(0.60 - 0.02 - 0.04)
    assert wet.adjusted.call == pytest.approx(0.30 + 0.02 + 0.04)
    assert wet.adjusted.raise_ == pytest.approx(0.10)


def test_street_pattern_special_rows():
    preflop = street_pattern("preflop", "medium")
    assert preflop.base.as_tuple() == (0.60, 0.30, 0.10)
    assert "preflop_pattern" in [a.kind for a in preflop.assumptions]

    no_bet = street_pattern("flop", "none")
    assert no_bet.base.as_tuple() == (0.0, 0.75, 0.25)
    assert "no_bet_faced" in [a.kind for a in no_bet.assumptions]

    unknown = street_pattern("flop", "huge")
    assert unknown.base.as_tuple() == (0.5, 0.3, 0.2)
    assert "default_pattern" in [a.kind for a in unknown.assumptions]


def test_commitment_level_by_street():
    assert street_pattern("flop", "small", average_strength=0.5).commitment == pytest.approx(0.4)
    assert street_pattern("river", "small", average_strength=1.0).commitment == 1.0


# Additive adjustments

def test_base_fold_pulls_toward_sizing_target():
    pattern = street_pattern("flop", "small", DRY_FLOP)
    adj = base_fold_adjustment(make_action(is_cbet=True), pattern, make_odds())
    assert adj.details["target_fold"] == pytest.approx(0.495)
    assert adj.fold == pytest.approx(0.25 * (0.495 - 0.42))
    assert adj.call == pytest.approx(-adj.fold)

    large = make_action(bet_bb=8.0, bet_to_pot=2.0, sizing_bucket="large")
    bounded = base_fold_adjustment(large, street_pattern("flop", "small"), make_odds())
    assert bounded.fold == pytest.approx(0.05)


def test_all_in_target_fold_by_pot_odds():
    assert [all_in_target_fold(p) for p in (0.1, 0.2, 0.3, 0.4, 0.5)] == [0.2, 0.4, 0.6, 0.8, 0.9]


def test_range_strength_adjustment():
    weak = range_strength_adjustment(make_action(), make_summary(average_strength=0.3))
    assert weak.fold == pytest.approx(0.06)

    drawing = range_strength_adjustment(make_action(), make_summary(average_strength=0.3, drawing_share=0.3))
    assert drawing.fold == pytest.approx(0.03)

    strong = range_strength_adjustment(make_action(), make_summary(average_strength=0.8, strong_share=0.6))
    assert strong.fold == pytest.approx(-0.09)
    assert strong.raise_ == pytest.approx(0.03)
    assert strong.fold + strong.call + strong.raise_ == pytest.approx(0.0)

    shove = range_strength_adjustment(make_action(is_all_in=True, sizing_bucket="all_in"), make_summary(strong_share=0.6))
    assert shove.raise_ == 0.0


def test_position_blind_vs_blind_cuts_fold_by_ten_percent_of_base():
    pattern = street_pattern("flop", "medium", ["Ks", "Kd", "2c"])
    adj = position_adjustment(make_action(position="SB"), pattern, "BB")
    assert adj.fold == pytest.approx(-0.10 * pattern.adjusted.fold)
    assert adj.raise_ == pytest.approx(0.02)
    assert adj.fold + adj.call + adj.raise_ == pytest.approx(0.0)


def test_position_in_and_out_of_position():
    pattern = street_pattern("flop", "small", DRY_FLOP)
    in_position = position_adjustment(make_action(position="CO"), pattern, "BTN")
    assert in_position.fold == pytest.approx(-0.15 * 0.42)

    out_of_position = position_adjustment(make_action(position="BTN"), pattern, "BB")
    assert out_of_position.fold == pytest.approx(0.20 * 0.42)

    unknown = position_adjustment(make_action(position=""), pattern, "BB")
    assert unknown.fold == 0.0
    assert [a.kind for a in unknown.assumptions] == ["position_unknown"]


def test_stack_depth_bands():
    pattern = street_pattern("flop", "medium")
    action = make_action(sizing_bucket="medium")
    assert stack_depth_adjustment(action, pattern, make_odds(stack_to_pot=15)).fold == pytest.approx(-0.015)
    assert stack_depth_adjustment(action, pattern, make_odds(stack_to_pot=5)).fold == 0.0
    assert stack_depth_adjustment(action, pattern, make_odds(stack_to_pot=2)).fold == pytest.approx(-0.02)
    shallow = stack_depth_adjustment(action, pattern, make_odds(stack_to_pot=0.5))
    assert shallow.fold == pytest.approx(-0.01)
    assert shallow.raise_ == pytest.approx(-0.05)


def test_multiway_multiplier_and_delta():
    assert [multiway_multiplier(n) for n in (1, 2, 3, 4, 5, 8)] == [1.0, 1.0, 1.2, 1.4, 1.6, 1.6]
    adj = multiway_adjustment(4)
    assert adj.fold == pytest.approx(0.04)
    assert adj.details["multiplier"] == 1.4
    assert adj.details["active_players"] == 4.0


def test_call_frequency_uses_pot_odds_and_implied_odds():
    pattern = street_pattern("flop", "small", DRY_FLOP)
    assert call_estimate(make_action(), make_odds()) == pytest.approx(0.88)
    assert call_estimate(make_action(), make_odds(implied_odds=1.2)) == pytest.approx(0.8)
    assert call_estimate(make_action(is_raise=True), make_odds()) == pytest.approx(0.792)
    assert call_estimate(make_action(), make_odds(), multiway_multiplier=1.4) == pytest.approx(0.792)

    adj = call_frequency_adjustment(make_action(), pattern, make_odds())
    assert adj.call == pytest.approx(0.03)
    assert adj.fold == pytest.approx(-0.03)
    assert adj.details["call_estimate"] == pytest.approx(0.88)

    no_bet = call_frequency_adjustment(make_action(bet_bb=0.0, sizing_bucket="none"), pattern, make_odds())
    assert no_bet.call == 0.0


def test_raise_frequency_estimate_and_cap():
    pattern = street_pattern("flop", "small", DRY_FLOP)
    adj = raise_frequency_adjustment(make_action(), pattern, make_summary())
    assert adj.details["raise_estimate"] == pytest.approx(0.11)
    assert adj.raise_ == pytest.approx(0.01)

    capped = raise_frequency_adjustment(make_action(), pattern, make_summary(strong_share=0.0))
    assert capped.details["raise_estimate"] == pytest.approx(0.10)

    shove = raise_frequency_adjustment(make_action(is_all_in=True, sizing_bucket="all_in"), pattern, make_summary())
    assert shove.details["raise_estimate"] == 0.0


# Raise modifiers

def test_bet_sizing_modifier():
    assert bet_sizing_modifier(make_action(), make_summary()).multiplier == pytest.approx(1.4)
    assert bet_sizing_modifier(make_action(sizing_bucket="very_large"), make_summary()).multiplier == pytest.approx(0.4)
    assert bet_sizing_modifier(make_action(sizing_bucket="all_in"), make_summary()).multiplier == 0.0

    polar = make_summary(strong_share=0.4, medium_share=0.2, weak_share=0.4)
    assert is_polarized(polar)
    assert bet_sizing_modifier(make_action(sizing_bucket="medium"), polar).multiplier == pytest.approx(1.1)

    draws = make_summary(drawing_share=0.3)
    assert bet_sizing_modifier(make_action(sizing_bucket="medium"), draws).multiplier == pytest.approx(1.05)


def _history_hand(villain_verbs):
    actions = []
    for i, verb in enumerate(villain_verbs):
        amount = 0 if verb in ("check", "fold") else 2
        actions.append({"actionId": f"v{i}", "playerId": "v", "action": verb, "amount": amount, "street": "preflop"})
    actions.append({"actionId": "h", "playerId": "h", "action": "bet", "amount": 1, "street": "flop"})
    return parse_hand({
        "id": "hist",
        "players": [{"id": "h", "position": "CO"}, {"id": "v", "position": "BTN"}],
        "bettingActions": actions,
    })


def test_action_pattern_modifier_reads_villain_history():
    summary = make_summary()
    aggressive = _history_hand(["raise", "bet", "call"])
    assert action_pattern_modifier(aggressive, "v", 3, summary).multiplier == pytest.approx(0.8)

    passive = _history_hand(["call", "check"])
    assert action_pattern_modifier(passive, "v", 2, summary).multiplier == pytest.approx(1.2)

    no_history = _history_hand(["post"])
    assert action_pattern_modifier(no_history, "v", 1, summary).multiplier == 1.0


def test_action_pattern_weak_range_overrides_history():
    weak = make_summary(category="weak", average_strength=0.3)
    passive = _history_hand(["call", "check"])
    assert action_pattern_modifier(passive, "v", 2, weak).multiplier == pytest.approx(0.9)


# Board texture

def test_classify_board_priority():
    assert classify_board(["7s", "7d", "7c"]) == "trips"
    assert classify_board(["Ks", "Kd", "2c"]) == "paired"
    assert classify_board(["9h", "8h", "2h"]) == "wet"
    assert classify_board(["9h", "8h", "7c"]) == "wet"
    assert classify_board(["9c", "8d", "7s"]) == "connected"
    assert classify_board(["Ah", "2d", "3c"]) == "connected"
    assert classify_board(["Kc", "Jd", "5s"]) == "semi_connected"
    assert classify_board(DRY_FLOP) == "dry"
    assert classify_board(["Ks", "7d"]) == "none"


def test_board_texture_adjustments_scale_by_street():
    pattern = street_pattern("flop", "medium")
    dry = board_texture_adjustment("flop", DRY_FLOP, pattern)
    assert dry.fold == pytest.approx(0.03)
    assert dry.call == pytest.approx(-0.03)

    wet = board_texture_adjustment("river", ["9h", "8h", "2h", "Kc", "4d"], pattern)
    assert wet.fold == pytest.approx(-0.052)

    paired = board_texture_adjustment("turn", ["Ks", "Kd", "2c", "8h"], pattern)
    assert paired.raise_ == pytest.approx(-0.15 * 0.10 * 1.15)
    assert paired.call == pytest.approx(0.15 * 0.10 * 1.15)
    assert paired.fold == 0.0

    trips = board_texture_adjustment("flop", ["7s", "7d", "7c"], pattern)
    assert trips.raise_ == pytest.approx(-0.025)
    assert trips.fold == pytest.approx(0.02)
    assert trips.fold + trips.call + trips.raise_ == pytest.approx(0.0)


# Combiner and validator

def test_combine_sums_deltas_and_applies_multipliers():
    base = triple(0.4, 0.5, 0.1)
    adjustments = [Adjustment("x", fold=0.1, call=-0.1), Adjustment("y", raise_=0.05, call=-0.05)]
    modifiers = [RaiseModifier("l", 2.0), RaiseModifier("m", 0.5)]
    combined = combine(base, adjustments, modifiers, all_in=False)
    assert combined.raw.as_tuple() == pytest.approx((0.5, 0.35, 0.15))
    assert combined.frequencies.total == pytest.approx(1.0)
    assert not combined.was_adjusted


def test_combine_degenerate_totals():
    zero = triple(0.0, 0.0, 0.0)
    assert combine(zero, [], [], all_in=False).frequencies.as_tuple() == pytest.approx((1 / 3, 1 / 3, 1 / 3))
    assert combine(zero, [], [], all_in=True).frequencies.as_tuple() == (0.5, 0.5, 0.0)
    shove = combine(triple(0.5, 0.3, 0.2), [], [], all_in=True)
    assert shove.frequencies.raise_ == 0.0
    assert shove.was_adjusted


def _combined(fold, call, raise_):
    t = triple(fold, call, raise_)
    return CombinedFrequencies(raw=t, frequencies=t, raise_multiplier=1.0, was_adjusted=False)


def test_validator_clips_and_redistributes():
    result = validate(_combined(0.995, 0.005, 0.0), make_action(), make_summary(), make_odds())
    assert result.frequencies.as_tuple() == pytest.approx((0.98, 0.01, 0.01))
    assert result.was_adjusted
    assert result.confidence == pytest.approx(0.72)
    assert [a.kind for a in result.assumptions] == ["input_inconsistent"]


def test_validator_locks_raise_after_all_in():
    shove = make_action(is_all_in=True, sizing_bucket="all_in")
    result = validate(_combined(0.999, 0.001, 0.0), shove, make_summary(), make_odds())
    assert result.frequencies.raise_ == 0.0
    assert result.frequencies.fold == pytest.approx(0.99)
    assert result.frequencies.call == pytest.approx(0.01)


def test_validator_leaves_clean_input_alone():
    result = validate(_combined(0.5, 0.4, 0.1), make_action(), make_summary(), make_odds())
    assert result.frequencies.as_tuple() == pytest.approx((0.5, 0.4, 0.1))
    assert not result.was_adjusted
    assert result.confidence == pytest.approx(0.8)


def test_validator_confidence_penalties():
    missing = replace(make_summary(), total_combos=0)
    unknown = make_odds(stacks_known=False)
    result = validate(_combined(0.5, 0.4, 0.1), make_action(), missing, unknown)
    assert result.confidence == pytest.approx(0.3)
    small = replace(make_summary(), total_combos=12)
    assert validate(_combined(0.5, 0.4, 0.1), make_action(), small, make_odds()).confidence == pytest.approx(0.6)


def test_enforce_bounds_keeps_total():
    out, clipped = enforce_bounds({"fold": 0.0, "call": 0.0, "raise": 1.0}, {})
    assert sum(out.values()) == pytest.approx(1.0)
    assert out["raise"] == pytest.approx(0.98)
    assert sorted(clipped) == ["call", "fold"]


# GTO reference

def test_gto_reference_frequencies():
    ref = reference_frequencies(make_action())
    assert ref.fold == pytest.approx(0.8)
    assert ref.raise_ == pytest.approx(0.2 * 0.8 * 0.8)
    assert ref.total == pytest.approx(1.0)

    shove = reference_frequencies(make_action(bet_bb=8.0, pot_before_bb=6.0, bet_to_pot=8 / 6, is_all_in=True, sizing_bucket="all_in"))
    assert shove.raise_ == 0.0
    assert shove.fold == pytest.approx(1 - 8 / 14)

    assert reference_frequencies(make_action(bet_bb=0.0, sizing_bucket="none")).as_tuple() == (0.0, 1.0, 0.0)


def test_gto_confidence_and_override_strength():
    river_shove = make_action(street="river", is_all_in=True)
    assert reference_confidence(river_shove, 2) == pytest.approx(0.9)
    assert reference_confidence(make_action(street="preflop"), 4) == pytest.approx(0.35)

    validated = validate(_combined(0.5, 0.4, 0.1), make_action(), make_summary(), make_odds())
    ref = gto_reference(make_action(), validated)
    assert ref.mdf == pytest.approx(0.2)
    assert ref.disagreement == pytest.approx(0.5 * (0.3 + 0.328 + 0.028))
    assert ref.override_strength == pytest.approx(0.7 * ref.disagreement)
    assert 0.0 <= ref.override_strength <= 1.0


# Partition and raise sizing

def test_partition_weakest_fold_strongest_raise():
    keys = ALL_COMBOS[:10]
    villain = Range({key: 1.0 for key in keys})
    strengths = {key: (i + 1) / 10 for i, key in enumerate(keys)}
    parts = partition_range(villain, triple(0.3, 0.5, 0.2), strengths)
    assert parts.fold.keys() == keys[:3]
    assert parts.raise_.keys() == keys[8:]
    assert parts.call.keys() == keys[3:8]
    assert parts.total_weight == pytest.approx(villain.total_weight)


def test_partition_never_splits_and_stays_disjoint():
    villain = Range.from_keys(["AA", "KK", "72o", "QJs"]).without(DRY_FLOP)
    parts = partition_range(villain, triple(0.45, 0.35, 0.2), board=DRY_FLOP)
    fold, call, raise_ = set(parts.fold), set(parts.call), set(parts.raise_)
    assert not (fold & call) and not (fold & raise_) and not (call & raise_)
    assert fold | call | raise_ == set(villain)
    assert parts.total_weight == pytest.approx(villain.total_weight, abs=1e-6)


def test_raise_catalogue_amounts():
    catalogue = raise_catalogue(pot=4.0, bet=1.0, effective_stack=60.0)
    assert catalogue == {"min": 2.0, "halfPot": 4.0, "pot": 6.0, "twoPot": 10.0, "allIn": 60.0}
    clamped = raise_catalogue(pot=4.0, bet=1.0, effective_stack=9.0)
    assert clamped["twoPot"] == 9.0
    assert max(clamped.values()) <= 9.0


def test_raise_weights_by_spr_band():
    deep = weight_raise_sizes(raise_catalogue(4.0, 1.0, 60.0), 15.0, False, 60.0, 1.0)
    assert deep.spr_band == "deep"
    assert {k: v["weight"] for k, v in deep.weighted.items()} == pytest.approx(
        {"small": 0.30, "medium": 0.40, "large": 0.25, "all_in": 0.05}
    )


def test_raise_weights_fold_capped_buckets_into_all_in():
    short = weight_raise_sizes(raise_catalogue(4.0, 1.0, 9.0), 2.25, False, 9.0, 1.0)
    weights = {k: v["weight"] for k, v in short.weighted.items()}
    assert weights == pytest.approx({"small": 0.40, "medium": 0.35, "large": 0.0, "all_in": 0.25})
    amounts = [short.weighted[b]["amount"] for b in ("small", "medium", "large", "all_in")]
    assert amounts == sorted(amounts)


def test_raise_weights_all_in_only_when_stack_cannot_raise():
    shove = weight_raise_sizes(raise_catalogue(6.0, 8.0, 8.0), 1.33, True, 8.0, 8.0)
    assert shove.weighted["all_in"]["weight"] == 1.0
    assert sum(v["weight"] for v in shove.weighted.values()) == pytest.approx(1.0)
    covered = weight_raise_sizes(raise_catalogue(6.0, 8.0, 5.0), 0.8, False, 5.0, 8.0)
    assert covered.weighted["all_in"]["weight"] == 1.0


# Frequency bands

def test_confidence_levels():
    assert [confidence_level(c) for c in (0.8, 0.7, 0.3)] == ["high", "medium", "low"]


def test_frequency_bands_widen_for_extremes_and_narrow_ranges():
    bands = frequency_ranges(triple(0.9, 0.08, 0.02), 0.3, make_summary(total_combos=5, category="very_strong"))
    assert bands["confidenceLevel"] == "low"
    assert bands["fold"]["uncertainty"] == pytest.approx(0.28)
    assert bands["call"]["uncertainty"] == pytest.approx(0.24)
    assert bands["raise"]["uncertainty"] == pytest.approx(0.23)
    assert bands["fold"]["min"] == pytest.approx(0.9 - 0.9 * 0.28)
    assert bands["fold"]["max"] == 1.0

    for action in ("fold", "call", "raise"):
        band = bands[action]
        assert band["min"] <= band["frequency"] <= band["max"]
        ninety, ninety_five = band["intervals"]["90%"], band["intervals"]["95%"]
        assert ninety_five["min"] <= ninety["min"] <= ninety["max"] <= ninety_five["max"]


def test_frequency_bands_without_range_summary():
    bands = frequency_ranges(triple(0.5, 0.4, 0.1), 0.9)
    assert bands["confidenceLevel"] == "high"
    assert [bands[a]["uncertainty"] for a in ("fold", "call", "raise")] == pytest.approx([0.05, 0.05, 0.05])
