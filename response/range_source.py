"""Default villain range provider.

The pipeline only ever asks `range_at(hand, action_index, player_id)` for a
Range. This module answers from the range stored on the matching hero action
and otherwise falls back to every combo the known cards do not block.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from models import Hand, HeroAction
from response.ranges import Range

logger = logging.getLogger(__name__)

RangeProvider = Callable[[Hand, int, str], Range]


def _hero_action_for_index(hand: Hand, action_index: int) -> Optional[HeroAction]:
    if action_index < 0 or action_index >= len(hand.actions):
        return None
    action_id = hand.actions[action_index].action_id
    for hero in hand.hero_actions:
        if hero.action_id == action_id:
            return hero
    return None


def _range_from_stored(raw: Any, street_index: int) -> Optional[Range]:
    """Accept a weight mapping, a flat key list, or one key list per street."""
    if isinstance(raw, dict):
        return Range.from_mapping(raw) if raw else None
    if isinstance(raw, list) and raw:
        if all(isinstance(item, list) for item in raw):
            if street_index >= len(raw) or not raw[street_index]:
                return None
            return Range.from_keys(raw[street_index])
        return Range.from_keys(str(item) for item in raw)
    return None


def stored_range_provider(hand: Hand, action_index: int, player_id: str) -> Range:
    """
    Villain range for a hand at an action index.

    Reads `villainRange` from the hero action that matches the betting
    action. Stored ranges that fail to parse are logged and replaced by the
    unblocked full range.
    """
    street = hand.actions[action_index].street if 0 <= action_index < len(hand.actions) else None
    dead = list(hand.hero_hole_cards)
    if street is not None:
        dead.extend(hand.board_at(street))

    hero = _hero_action_for_index(hand, action_index)
    if hero is not None and hero.villain_range:
        try:
            stored = _range_from_stored(hero.villain_range, street.index if street else 0)
        except (TypeError, ValueError):
            logger.warning(
                "Hand %s: unreadable villainRange for %s, using full range",
                hand.hand_id,
                player_id,
            )
            stored = None
        if stored is not None and len(stored):
            live = stored.without(dead)
            if len(live):
                return live

    return Range.full(dead_cards=dead)
