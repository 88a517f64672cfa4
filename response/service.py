"""Application service layer used by the web API and the maintenance CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from parser import HandParser
from response.orchestrator import ResponseOrchestrator
from response.persistence import persist_response_model
from response.storage import HandStore, document_id


class HandNotFound(KeyError):
    """No stored hand, or no hero action at the requested slot."""


class ResponseService:
    """High-level API over the hand store and the response orchestrator."""

    def __init__(self, db_path: Path):
        self.store = HandStore(db_path=db_path)
        self.orchestrator = ResponseOrchestrator(store=self.store)

    def import_documents(self, data: Any) -> Dict[str, Any]:
        """Store one document, a list, or {"hands": [...]}; unusable entries are reported."""
        parser = HandParser()
        documents = parser.extract_documents(data)
        imported: List[str] = []
        rejected: List[str] = list(parser.errors)
        for i, doc in enumerate(documents):
            try:
                hand_id = document_id(doc)
            except ValueError as exc:
                rejected.append(f"Entry {i}: {exc}")
                continue
            if parser.parse_document(doc, index=i) is None:
                rejected.append(f"Hand {hand_id}: not a usable hand document")
                continue
            imported.append(self.store.save_hand(doc))
        return {"imported": imported, "rejected": rejected}

    def import_file(self, file_path: Path) -> Dict[str, Any]:
        parser = HandParser()
        return self.import_documents(parser.load_file(file_path))

    def list_hands(self, username: Optional[str] = None, limit: int = 50) -> List[dict]:
        return self.store.list_hands(username=username, limit=limit)

    def usernames(self) -> List[str]:
        return self.store.usernames()

    def get_hand(self, hand_id: str) -> dict:
        doc = self.store.get_hand(hand_id)
        if doc is None:
            raise HandNotFound(f"hand {hand_id} not found")
        return doc

    def delete_hand(self, hand_id: str) -> bool:
        return self.store.delete_hand(hand_id)

    def clear(self) -> dict:
        return self.store.clear()

    def stored_model(self, hand_id: str, hero_index: int) -> Optional[dict]:
        heroes = self.get_hand(hand_id).get("heroActions") or []
        if not 0 <= hero_index < len(heroes):
            raise HandNotFound(f"hand {hand_id} has no hero action {hero_index}")
        return heroes[hero_index].get("responseModel")

    def compute_model(
        self,
        hand_id: str,
        hero_index: int,
        villain_id: Optional[str] = None,
        persist: bool = True,
    ) -> Dict[str, Any]:
        doc = self.get_hand(hand_id)
        if not 0 <= hero_index < len(doc.get("heroActions") or []):
            raise HandNotFound(f"hand {hand_id} has no hero action {hero_index}")
        model = self.orchestrator.compute(doc, hero_index, villain_id=villain_id)
        written = False
        if persist:
            written = persist_response_model(self.store, hand_id, hero_index, model)
        return {"model": model, "persisted": written}
