#!/usr/bin/env python3
"""Tests for card evaluation, range containers and the stored range provider."""

import pytest

from parser import parse_hand
from response.cards import (
    board_texture_score,
    combo_strength,
    draw_types,
    made_hand_category,
    preflop_strength_score,
)
from response.range_source import stored_range_provider
from response.range_strength import summarize_range
from response.ranges import ALL_COMBOS, Range, combo_key, expand_hand_class, hand_class


def test_combo_universe_and_canonical_keys():
    assert len(ALL_COMBOS) == 1326
    assert len(set(ALL_COMBOS)) == 1326
    assert ALL_COMBOS[0] == "AsAh"
    assert combo_key("Kd", "Ah") == "AhKd"
    assert combo_key("Ah", "As") == "AsAh"
    assert hand_class("AhKh") == "AKs"
    assert hand_class("AhKd") == "AKo"
    assert hand_class("QsQc") == "QQ"
    with pytest.raises(ValueError):
        combo_key("Ah", "Ah")


def test_hand_class_expansion_counts():
    assert len(expand_hand_class("QQ")) == 6
    assert len(expand_hand_class("AKs")) == 4
    assert len(expand_hand_class("AKo")) == 12
    assert len(expand_hand_class("KA")) == 16


def test_range_from_mapping_prefers_combo_weights():
    villain = Range.from_mapping({"AKs": 1.0, "AhKh": 0.5})
    assert len(villain) == 4
    assert villain.weight("AhKh") == 0.5
    assert villain.weight("AsKs") == 1.0
    assert villain.total_weight == pytest.approx(3.5)


def test_range_rejects_unknown_combo_and_drops_zero_weight():
    villain = Range()
    with pytest.raises(ValueError):
        villain.set("ZzYy", 1.0)
    villain.set("KdAh", 0.7)
    assert "AhKd" in villain
    villain.set("AhKd", 0.0)
    assert "AhKd" not in villain


def test_range_iteration_follows_universe_order():
    a = Range.from_keys(["22", "AA", "KQs"])
    b = Range.from_keys(["KQs", "AA", "22"])
    assert a.keys() == b.keys()
    assert a == b
    assert a.keys()[0] == "AsAh"


def test_full_range_excludes_dead_cards():
    full = Range.full(dead_cards=["Ah", "Kd"])
    assert len(full) == 1225
    assert full.source == "default"
    assert all("Ah" not in key and "Kd" not in key for key in full)


def test_made_hand_categories():
    board = ["Ks", "7d", "2c"]
    assert made_hand_category(["Ah", "Ad"], board) == "overpair"
    assert made_hand_category(["Kh", "Qd"], board) == "top_pair"
    assert made_hand_category(["7h", "7c"], board) == "set"
    assert made_hand_category(["Ah", "Qd"], board) == "air"
    assert made_hand_category(["Ah", "Qd"], ["Ks", "Kd", "2c"]) == "pair_board"


def test_combo_draw_strength_and_outs():
    hole = ["Qh", "Jh"]
    board = ["Th", "9h", "2c"]
    draws = draw_types(hole, board)
    assert "flush_draw" in draws
    assert "oesd" in draws
    assert "combo_draw" in draws
    strength, outs = combo_strength(hole, board)
    assert strength == pytest.approx(0.35)
    assert outs == 17


def test_preflop_strength_orders_premiums():
    assert preflop_strength_score("Ah", "As") > preflop_strength_score("Kh", "Qh")
    assert preflop_strength_score("Kh", "Qh") > preflop_strength_score("7c", "2d")
    strength, outs = combo_strength(["Ah", "As"], [])
    assert 0.0 < strength <= 1.0
    assert outs == 0


def test_board_texture_score_dry_and_wet():
    assert board_texture_score(["Ks", "7d", "2c"]) == 0.0
    assert board_texture_score(["9h", "8h", "7h"]) >= 1.5


def test_range_summary_counts_shares_as_fractions():
    board = ["Ks", "7d", "2c"]
    villain = Range.from_keys(["AA", "32o"]).without(board)
    summary = summarize_range(villain, board)
    assert summary.total_combos == 6 + 9
    assert summary.strong_share == pytest.approx(6 / 15)
    assert summary.weak_share + summary.medium_share + summary.strong_share == pytest.approx(1.0)
    assert 0.0 <= summary.average_strength <= 1.0
    assert summary.board_texture == "dry"
    assert set(summary.combo_strengths) == set(villain.keys())


def test_range_summary_neutral_when_missing():
    summary = summarize_range(None, ["Ks", "7d", "2c"])
    assert summary.average_strength == 0.5
    assert summary.category == "medium"
    assert summary.total_combos == 0
    assert [a.kind for a in summary.assumptions] == ["range_missing"]


def _provider_doc(villain_range=None):
    hero = {"actionId": "a3", "opponentId": "v"}
    if villain_range is not None:
        hero["villainRange"] = villain_range
    return {
        "id": "rp1",
        "players": [{"id": "h", "position": "CO"}, {"id": "v", "position": "BTN"}],
        "board": ["Ks", "7d", "2c"],
        "heroHoleCards": ["Ah", "Kd"],
        "bettingActions": [
            {"actionId": "a1", "playerId": "h", "action": "raise", "amount": 2, "street": "preflop"},
            {"actionId": "a2", "playerId": "v", "action": "call", "amount": 2, "street": "preflop"},
            {"actionId": "a3", "playerId": "h", "action": "bet", "amount": 1, "street": "flop"},
        ],
        "heroActions": [hero],
    }


def test_stored_range_provider_reads_villain_range_and_removes_blockers():
    hand = parse_hand(_provider_doc({"KK": 1.0, "QQ": 0.5}))
    villain = stored_range_provider(hand, 2, "v")
    assert villain.source == "stored"
    # Ks on the board and Kd in hero's hand leave one KK combo.
    assert len([k for k in villain if k[0] == "K"]) == 1
    assert len([k for k in villain if k[0] == "Q"]) == 6
    assert villain.weight("QsQh") == 0.5


def test_stored_range_provider_per_street_lists():
    hand = parse_hand(_provider_doc([["AA"], ["QQ"], [], []]))
    villain = stored_range_provider(hand, 2, "v")
    assert {k[0] for k in villain} == {"Q"}


def test_stored_range_provider_defaults_to_unblocked_full_range():
    hand = parse_hand(_provider_doc())
    villain = stored_range_provider(hand, 2, "v")
    assert villain.source == "default"
    assert len(villain) == 1081


def test_stored_range_provider_ignores_unreadable_weights():
    hand = parse_hand(_provider_doc({"AA": None}))
    villain = stored_range_provider(hand, 2, "v")
    assert villain.source == "default"
    assert len(villain) == 1081
