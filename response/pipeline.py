"""Stage descriptors, the shared blackboard and the single-action runner.

Each stage names the blackboard fields it reads and the one field it writes.
A stage whose output field is already set is skipped, so callers can seed
any intermediate result (a range summary, a fixed range) and run the rest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from models import Hand, Street
from response.adjustments import active_player_count, multiway_multiplier, run_adjustments
from response.board_texture import board_texture_adjustment
from response.call_raise import call_frequency_adjustment, raise_frequency_adjustment
from response.classifier import ClassifiedAction, classify_action
from response.combiner import CombinedFrequencies, combine
from response.finalizer import finalize_model
from response.gto import GtoReference, gto_reference
from response.partition import RangePartition, partition_range
from response.pot_odds import PotOdds, analyze_pot_odds
from response.raise_modifiers import action_pattern_modifier, bet_sizing_modifier
from response.raise_sizing import RaiseSizing, raise_catalogue, weight_raise_sizes
from response.range_source import RangeProvider, stored_range_provider
from response.range_strength import RangeSummary, summarize_range
from response.ranges import Range
from response.schema import Adjustment, Assumption, FrequencyTriple, RaiseModifier
from response.street_patterns import StreetPattern, street_pattern
from response.validator import ValidatedFrequencies, validate

logger = logging.getLogger(__name__)


@dataclass
class Blackboard:
    hand: Optional[Hand]
    action_index: int
    villain_id: Optional[str] = None
    villain_range: Optional[Range] = None
    action: Optional[ClassifiedAction] = None
    pot_odds: Optional[PotOdds] = None
    range_summary: Optional[RangeSummary] = None
    pattern: Optional[StreetPattern] = None
    base_adjustments: Optional[List[Adjustment]] = None
    call_adjustment: Optional[Adjustment] = None
    raise_adjustment: Optional[Adjustment] = None
    sizing_modifier: Optional[RaiseModifier] = None
    pattern_modifier: Optional[RaiseModifier] = None
    texture_adjustment: Optional[Adjustment] = None
    combined: Optional[CombinedFrequencies] = None
    validated: Optional[ValidatedFrequencies] = None
    gto: Optional[GtoReference] = None
    partition: Optional[RangePartition] = None
    raise_sizing: Optional[RaiseSizing] = None
    model: Optional[dict] = None
    assumptions: List[Assumption] = field(default_factory=list)

    @property
    def street(self) -> str:
        return self.action.street if self.action else "flop"

    @property
    def board_cards(self) -> List[str]:
        if self.hand is None:
            return []
        street = Street.from_label(self.street) or Street.FLOP
        return self.hand.board_at(street)

    @property
    def villain_position(self) -> str:
        if self.hand is None or not self.villain_id:
            return ""
        return self.hand.position_of(self.villain_id)

    @property
    def active_players(self) -> int:
        return active_player_count(self.hand, self.action_index)

    def all_adjustments(self) -> List[Adjustment]:
        """Additive deltas in stage order E..N."""
        out = list(self.base_adjustments or [])
        for adj in (self.call_adjustment, self.raise_adjustment, self.texture_adjustment):
            if adj is not None:
                out.append(adj)
        return out

    def all_modifiers(self) -> List[RaiseModifier]:
        return [m for m in (self.sizing_modifier, self.pattern_modifier) if m is not None]


@dataclass(frozen=True)
class Stage:
    name: str
    requires: Tuple[str, ...]
    provides: str
    run: Callable[[Blackboard], Any]
    fallback: Callable[[Blackboard], Any]


def _stage_assumptions(value: Any) -> List[Assumption]:
    if isinstance(value, (list, tuple)):
        out: List[Assumption] = []
        for item in value:
            out.extend(getattr(item, "assumptions", ()))
        return out
    return list(getattr(value, "assumptions", ()))


def _neutral_pattern(bb: Blackboard) -> StreetPattern:
    return street_pattern(bb.street, "unknown")


def _combine(bb: Blackboard) -> CombinedFrequencies:
    return combine(bb.pattern.adjusted, bb.all_adjustments(), bb.all_modifiers(), bb.action.is_all_in)


def _fallback_combined(bb: Blackboard) -> CombinedFrequencies:
    thirds = FrequencyTriple.thirds()
    return CombinedFrequencies(raw=thirds, frequencies=thirds, raise_multiplier=1.0, was_adjusted=False)


def _raise_sizing(bb: Blackboard) -> RaiseSizing:
    action, odds = bb.action, bb.pot_odds
    catalogue = raise_catalogue(action.pot_before_bb, action.bet_bb, odds.effective_stack)
    return weight_raise_sizes(
        catalogue,
        odds.stack_to_pot,
        action.is_all_in,
        odds.effective_stack,
        odds.call_amount,
    )


def _fallback_action(bb: Blackboard) -> ClassifiedAction:
    return ClassifiedAction.null(bb.action_index, note="no hand")


def default_stages(range_provider: RangeProvider = stored_range_provider) -> List[Stage]:
    """The A..U cascade in execution order."""

    def load_range(bb: Blackboard) -> Optional[Range]:
        if bb.action is None or not bb.action.valid:
            return None
        return range_provider(bb.hand, bb.action_index, bb.villain_id or "")

    return [
        Stage(
            "action_classifier", ("hand",), "action",
            lambda bb: classify_action(bb.hand, bb.action_index),
            _fallback_action,
        ),
        Stage("range_source", ("hand", "action"), "villain_range", load_range, lambda bb: None),
        Stage(
            "pot_odds", ("hand", "action"), "pot_odds",
            lambda bb: analyze_pot_odds(bb.hand, bb.action, bb.villain_id),
            lambda bb: PotOdds.neutral(),
        ),
        Stage(
            "range_strength", ("action",), "range_summary",
            lambda bb: summarize_range(bb.villain_range, bb.board_cards),
            lambda bb: RangeSummary.neutral(bb.board_cards),
        ),
        Stage(
            "street_pattern", ("action", "range_summary"), "pattern",
            lambda bb: street_pattern(
                bb.action.street, bb.action.sizing_bucket, bb.board_cards, bb.range_summary.average_strength
            ),
            _neutral_pattern,
        ),
        Stage(
            "adjustments", ("action", "pattern", "pot_odds", "range_summary"), "base_adjustments",
            lambda bb: run_adjustments(
                bb.hand, bb.action, bb.pattern, bb.pot_odds, bb.range_summary, bb.villain_position
            ),
            lambda bb: [],
        ),
        Stage(
            "call_frequency", ("action", "pattern", "pot_odds"), "call_adjustment",
            lambda bb: call_frequency_adjustment(
                bb.action, bb.pattern, bb.pot_odds, multiway_multiplier(bb.active_players)
            ),
            lambda bb: Adjustment.neutral("call_frequency", "inputs missing"),
        ),
        Stage(
            "raise_frequency", ("action", "pattern", "range_summary"), "raise_adjustment",
            lambda bb: raise_frequency_adjustment(bb.action, bb.pattern, bb.range_summary),
            lambda bb: Adjustment.neutral("raise_frequency", "inputs missing"),
        ),
        Stage(
            "bet_sizing", ("action", "range_summary"), "sizing_modifier",
            lambda bb: bet_sizing_modifier(bb.action, bb.range_summary),
            lambda bb: RaiseModifier.neutral("bet_sizing", "inputs missing"),
        ),
        Stage(
            "action_pattern", ("action", "range_summary"), "pattern_modifier",
            lambda bb: action_pattern_modifier(bb.hand, bb.villain_id, bb.action_index, bb.range_summary),
            lambda bb: RaiseModifier.neutral("action_pattern", "inputs missing"),
        ),
        Stage(
            "board_texture", ("action", "pattern"), "texture_adjustment",
            lambda bb: board_texture_adjustment(bb.action.street, bb.board_cards, bb.pattern),
            lambda bb: Adjustment.neutral("board_texture", "inputs missing"),
        ),
        Stage("combiner", ("action", "pattern"), "combined", _combine, _fallback_combined),
        Stage(
            "validator", ("combined", "action", "range_summary", "pot_odds"), "validated",
            lambda bb: validate(bb.combined, bb.action, bb.range_summary, bb.pot_odds),
            lambda bb: validate(bb.combined, _fallback_action(bb), RangeSummary.neutral(), PotOdds.neutral()),
        ),
        Stage(
            "gto_reference", ("action", "validated"), "gto",
            lambda bb: gto_reference(bb.action, bb.validated, bb.active_players),
            lambda bb: gto_reference(_fallback_action(bb), bb.validated),
        ),
        Stage(
            "range_partition", ("validated",), "partition",
            lambda bb: partition_range(
                bb.villain_range,
                bb.validated.frequencies,
                bb.range_summary.combo_strengths if bb.range_summary else None,
                bb.board_cards,
            ),
            lambda bb: partition_range(None, FrequencyTriple.thirds()),
        ),
        Stage("raise_sizing", ("action", "pot_odds"), "raise_sizing", _raise_sizing, lambda bb: None),
        Stage(
            "finalizer", ("action", "pot_odds", "range_summary", "combined", "validated", "gto",
                          "partition", "raise_sizing"), "model",
            finalize_model,
            lambda bb: None,
        ),
    ]


class ResponsePipeline:
    """Runs the stage cascade for one (hand, action index, villain) triple."""

    def __init__(
        self,
        range_provider: RangeProvider = stored_range_provider,
        stages: Optional[Sequence[Stage]] = None,
    ):
        self.range_provider = range_provider
        self.stages = list(stages) if stages is not None else default_stages(range_provider)

    def run(
        self,
        hand: Optional[Hand],
        action_index: int,
        villain_id: Optional[str] = None,
        **seed: Any,
    ) -> Blackboard:
        bb = Blackboard(hand=hand, action_index=action_index, villain_id=villain_id)
        for name, value in seed.items():
            if not hasattr(bb, name):
                raise TypeError(f"unknown blackboard field: {name}")
            setattr(bb, name, value)

        for stage in self.stages:
            if getattr(bb, stage.provides) is not None:
                logger.debug("Stage %s skipped; %s already set", stage.name, stage.provides)
                continue
            missing = [name for name in stage.requires if getattr(bb, name) is None]
            if missing:
                value = stage.fallback(bb)
                bb.assumptions.append(
                    Assumption("input_missing", stage.name, f"missing {', '.join(missing)}")
                )
            else:
                value = stage.run(bb)
            setattr(bb, stage.provides, value)
            bb.assumptions.extend(_stage_assumptions(value))
        return bb


def build_response_model(
    hand: Hand,
    action_index: int,
    villain_id: Optional[str] = None,
    range_provider: RangeProvider = stored_range_provider,
    **seed: Any,
) -> Dict[str, Any]:
    """Run the full cascade and return the response model document."""
    board = ResponsePipeline(range_provider=range_provider).run(hand, action_index, villain_id, **seed)
    if board.model is None:
        raise ValueError(f"no response model for action index {action_index}")
    return board.model
