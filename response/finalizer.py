"""Assemble the persisted response-model document from a finished blackboard."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List

from response.constants import SOURCE_VERSION
from response.schema import Assumption
from response.uncertainty import frequency_ranges

if TYPE_CHECKING:
    from response.pipeline import Blackboard


def _dedupe(assumptions: List[Assumption]) -> List[Dict[str, str]]:
    seen = set()
    out: List[Dict[str, str]] = []
    for item in assumptions:
        key = (item.kind, item.stage, item.note)
        if key in seen:
            continue
        seen.add(key)
        out.append(item.to_dict())
    return out


def finalize_model(board: "Blackboard") -> dict:
    """
    Build the response model document.

    Confidence is the lower of the validator and GTO confidences. The
    document holds no timestamps so identical inputs serialize identically.
    """
    validated = board.validated
    gto = board.gto
    confidence = min(validated.confidence, gto.confidence)
    return {
        "frequencies": validated.frequencies.to_dict(),
        "ranges": board.partition.to_dict(),
        "raiseSizing": board.raise_sizing.to_dict(),
        "gtoReference": gto.to_dict(),
        "confidence": confidence,
        "frequencyRanges": frequency_ranges(validated.frequencies, confidence, board.range_summary),
        "action": board.action.to_dict(),
        "potOdds": board.pot_odds.to_dict(),
        "rangeSummary": board.range_summary.to_dict(),
        "adjustments": [adj.to_dict() for adj in board.all_adjustments()],
        "modifiers": [mod.to_dict() for mod in board.all_modifiers()],
        "villainId": board.villain_id or "",
        "metadata": {
            "wasAdjusted": validated.was_adjusted,
            "wasNormalized": board.combined.was_adjusted,
            "assumptions": _dedupe(board.assumptions),
            "sourceVersion": SOURCE_VERSION,
        },
    }


def persisted_fields(model: dict) -> dict:
    """The four hero-action fields written by the persistence adapter."""
    return {
        "responseModel": model,
        "responseFrequencies": dict(model["frequencies"]),
        "gtoFrequencies": dict(model["gtoReference"]["frequencies"]),
        "responseRanges": model["ranges"],
    }
