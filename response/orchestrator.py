"""Single-action computation and the batch pass over the hand store."""

from __future__ import annotations

import copy
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from models import ActionVerb, Hand
from parser import HandParser
from response.persistence import persist_response_model
from response.pipeline import ResponsePipeline
from response.range_source import RangeProvider, stored_range_provider
from response.storage import HandStore, PersistenceMissTarget, PersistenceTransport

logger = logging.getLogger(__name__)

DEFAULT_HAND_BUDGET_SECONDS = 30.0


class ComputeError(ValueError):
    """A hero action could not be mapped onto the hand."""


@dataclass
class HandOutcome:
    hand_id: str
    updated: int = 0
    skipped: int = 0
    unchanged: int = 0
    errors: int = 0
    over_budget: bool = False
    invalid: bool = False

    def summary_line(self) -> str:
        if self.invalid:
            return f"{self.hand_id}: invalid document, skipped"
        line = f"{self.hand_id}: updated {self.updated}, skipped {self.skipped}"
        if self.unchanged:
            line += f", unchanged {self.unchanged}"
        if self.errors:
            line += f", errors {self.errors}"
        if self.over_budget:
            line += " (budget exceeded)"
        return line


@dataclass
class BatchResult:
    hands_seen: int = 0
    hands_updated: int = 0
    actions_updated: int = 0
    hands_failed: int = 0
    cancelled: bool = False
    outcomes: List[HandOutcome] = field(default_factory=list)

    def done_line(self) -> str:
        return f"Done. Updated {self.actions_updated} hero actions across {self.hands_updated} hands."


def select_villain(hand: Hand, action_index: int, hint: Optional[str] = None) -> Optional[str]:
    """
    Pick the opponent who responds to the action at `action_index`.

    Order: the stored hint, the first opponent acting later on the street,
    the first opponent who acted earlier on it, then any unfolded opponent.
    """
    actor = hand.actions[action_index].player_id
    if hint and hint != actor:
        return hint
    street = hand.actions[action_index].street
    folded = hand.folded_before(action_index)

    for action in hand.actions[action_index + 1:]:
        if action.street != street:
            break
        if action.player_id != actor and action.player_id not in folded:
            return action.player_id
    for action in hand.street_actions_before(action_index, street):
        if action.player_id != actor and action.player_id not in folded and action.verb != ActionVerb.FOLD:
            return action.player_id
    for player_id in hand.active_players_at(action_index):
        if player_id != actor:
            return player_id
    return None


class ResponseOrchestrator:
    """Runs the pipeline for one hero action or for every hand in a store."""

    def __init__(
        self,
        store: Optional[HandStore] = None,
        range_provider: RangeProvider = stored_range_provider,
        hand_budget_seconds: float = DEFAULT_HAND_BUDGET_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.store = store
        self.pipeline = ResponsePipeline(range_provider=range_provider)
        self.hand_budget_seconds = float(hand_budget_seconds)
        self.clock = clock
        self.cancel_event = cancel_event or threading.Event()

    def _parse(self, doc: Dict[str, Any]) -> Hand:
        parser = HandParser()
        hand = parser.parse_document(doc)
        if hand is None:
            raise ComputeError("; ".join(parser.errors) or "unparseable hand document")
        return hand

    def compute(
        self,
        hand_doc: Dict[str, Any],
        hero_index: int,
        villain_id: Optional[str] = None,
    ) -> dict:
        """Response model for heroActions[hero_index]; the document is not modified."""
        doc = copy.deepcopy(hand_doc)
        hand = self._parse(doc)
        hero = next((h for h in hand.hero_actions if h.slot == hero_index), None)
        if hero is None:
            raise ComputeError(f"hand {hand.hand_id} has no hero action {hero_index}")
        action_index = hand.index_of_action_id(hero.action_id)
        if action_index is None:
            raise ComputeError(f"hand {hand.hand_id}: action {hero.action_id!r} not in bettingActions")
        villain = villain_id or select_villain(hand, action_index, hero.opponent_id)
        board = self.pipeline.run(hand, action_index, villain)
        return board.model

    def process_hand(self, doc: Dict[str, Any]) -> HandOutcome:
        """Compute and persist models for hero actions that lack one."""
        hand_id = str(doc.get("id", doc.get("_id", "?")))
        outcome = HandOutcome(hand_id=hand_id)
        try:
            hand = self._parse(doc)
        except ComputeError as e:
            logger.warning("Hand %s: %s", hand_id, e)
            outcome.invalid = True
            return outcome
        except Exception:
            logger.exception("Hand %s: could not parse document", hand_id)
            outcome.invalid = True
            return outcome

        pending = [h for h in hand.hero_actions if not h.has_response_model]
        outcome.skipped = len(hand.hero_actions) - len(pending)
        order = {a.action_id: a.index for a in hand.actions}
        pending.sort(key=lambda h: (order.get(h.action_id, len(hand.actions)), h.slot))

        started = self.clock()
        for position, hero in enumerate(pending):
            if self.clock() - started > self.hand_budget_seconds:
                remaining = len(pending) - position
                logger.warning(
                    "Hand %s: %.1fs budget exceeded, skipping %d hero actions",
                    hand_id, self.hand_budget_seconds, remaining,
                )
                outcome.over_budget = True
                outcome.skipped += remaining
                break
            try:
                model = self.compute(doc, hero.slot)
                if persist_response_model(self.store, hand_id, hero.slot, model):
                    outcome.updated += 1
                else:
                    outcome.unchanged += 1
            except PersistenceMissTarget as e:
                logger.warning("Hand %s hero action %d: %s", hand_id, hero.slot, e)
                outcome.errors += 1
            except PersistenceTransport:
                logger.exception("Hand %s hero action %d: store write failed", hand_id, hero.slot)
                outcome.errors += 1
            except ComputeError as e:
                logger.warning("Hand %s hero action %d: %s", hand_id, hero.slot, e)
                outcome.errors += 1
            except Exception:
                logger.exception("Hand %s hero action %d: computation failed", hand_id, hero.slot)
                outcome.errors += 1
        return outcome

    def run(
        self,
        username: Optional[str] = None,
        progress: Optional[Callable[[HandOutcome], None]] = None,
    ) -> BatchResult:
        """
        Process every stored hand, optionally for one username.

        Cancellation is checked between hands; the in-flight hand always
        finishes. Cursor failures propagate as PersistenceTransport.
        """
        if self.store is None:
            raise PersistenceTransport("no hand store configured")
        result = BatchResult()
        for doc in self.store.iter_hands(username=username):
            if self.cancel_event.is_set():
                result.cancelled = True
                break
            outcome = self.process_hand(doc)
            result.hands_seen += 1
            result.outcomes.append(outcome)
            if outcome.invalid:
                result.hands_failed += 1
            if outcome.updated:
                result.hands_updated += 1
                result.actions_updated += outcome.updated
            if progress is not None:
                progress(outcome)
            if self.cancel_event.is_set():
                logger.info("Cancellation requested; stopping after hand %s", outcome.hand_id)
                result.cancelled = True
                break
        return result
