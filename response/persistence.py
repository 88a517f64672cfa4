"""Idempotent write of a response model onto its hero action."""

from __future__ import annotations

import logging

from response.finalizer import persisted_fields
from response.storage import (
    HandStore,
    PersistenceError,
    PersistenceMissTarget,
    PersistenceTransport,
)

logger = logging.getLogger(__name__)

__all__ = [
    "PersistenceError",
    "PersistenceMissTarget",
    "PersistenceTransport",
    "persist_response_model",
]


def persist_response_model(store: HandStore, hand_id: str, hero_index: int, model: dict) -> bool:
    """
    Store the model and its three summary fields on heroActions[hero_index].

    Returns True when the document changed, False when the stored fields
    were already identical. Raises PersistenceMissTarget for an unknown hand
    or slot and PersistenceTransport for store failures.
    """
    written = store.set_hero_action_fields(hand_id, hero_index, persisted_fields(model))
    if written:
        logger.debug("Hand %s hero action %d: response model stored", hand_id, hero_index)
    else:
        logger.debug("Hand %s hero action %d: response model unchanged", hand_id, hero_index)
    return written
