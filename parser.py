"""
Parser for stored hand documents.

This module turns the JSON hand documents kept in the hand store
into the typed structures defined in models.py, and loads JSON files
of hand documents for import.

Expected document structure:
{
    "id": "hand_id",
    "username": "hero_name",
    "blindLevel": {"smallBlind": 0.5, "bigBlind": 1},
    "players": [{"id": "p1", "position": "BTN", "stack": 100}, ...],
    "board": ["Ks", "7d", "2c"],
    "bettingActions": [
        {"actionId": "a1", "playerId": "p1", "action": "raise",
         "amount": 2.5, "street": "preflop", "isAllIn": false},
        ...
    ],
    "heroActions": [{"actionId": "a1", "opponentId": "p2"}, ...]
}
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

from models import (
    BettingAction, Hand, HeroAction, Seat, Street, parse_verb
)

logger = logging.getLogger(__name__)

CARD_RANKS = "23456789TJQKA"
CARD_SUITS = "shdc"


class HandParser:
    """
    Parses stored hand documents into Hand objects.

    Tolerates the field-name variations seen across imported documents
    and records problems in `errors` / `warnings` instead of raising.
    """

    def __init__(self):
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def load_file(self, file_path: Union[str, Path]) -> list[dict]:
        """
        Load raw hand documents from a JSON file.

        Args:
            file_path: Path to the JSON file

        Returns:
            List of hand documents (dicts)

        Raises:
            FileNotFoundError: If the file doesn't exist
            json.JSONDecodeError: If the file is not valid JSON
        """
        file_path = Path(file_path)

        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return self.extract_documents(data)

    def extract_documents(self, data: Any) -> list[dict]:
        """Accept {"hands": [...]}, a bare list, or a single document."""
        self.errors = []
        self.warnings = []

        if isinstance(data, dict) and "hands" in data:
            data = data["hands"]
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            self.errors.append("Expected a hand document or a list of them")
            return []

        documents = []
        for i, doc in enumerate(data):
            if not isinstance(doc, dict):
                self.errors.append(f"Entry {i} is not an object")
                continue
            documents.append(doc)
        return documents

    def parse_documents(self, documents: list[dict]) -> list[Hand]:
        hands = []
        for i, doc in enumerate(documents):
            try:
                parsed = self.parse_document(doc, index=i)
                if parsed:
                    hands.append(parsed)
            except (TypeError, ValueError, KeyError) as e:
                self.errors.append(f"Error parsing hand {i}: {str(e)}")
                logger.exception(f"Failed to parse hand {i}")
        return hands

    def parse_document(self, doc: dict, index: int = 0) -> Optional[Hand]:
        """
        Parse a single stored hand document.

        Args:
            doc: Hand document
            index: Position used for error reporting when the id is absent

        Returns:
            Hand object or None if the document is unusable
        """
        hand_id = str(doc.get("id", doc.get("_id", f"hand_{index}")))

        raw_actions = doc.get("bettingActions")
        if not isinstance(raw_actions, list):
            self.errors.append(f"Hand {hand_id}: bettingActions missing")
            return None

        blind_level = self._mapping(doc.get("blindLevel"), hand_id, "blindLevel")
        big_blind = self._to_float(blind_level.get("bigBlind"), 1.0) or 1.0
        small_blind = self._to_float(blind_level.get("smallBlind"), big_blind / 2.0)

        players = doc.get("players")
        seats = self._parse_seats(players if isinstance(players, list) else [], hand_id)
        actions = self._parse_actions(raw_actions, hand_id)
        heroes = doc.get("heroActions")
        hero_actions = self._parse_hero_actions(heroes if isinstance(heroes, list) else [], hand_id)

        player_stacks = {
            str(k): float(v)
            for k, v in self._mapping(doc.get("playerStacks"), hand_id, "playerStacks").items()
            if self._to_float(v, None) is not None
        }
        pot_sizes = {
            str(k).lower(): float(v)
            for k, v in self._mapping(doc.get("potSizes"), hand_id, "potSizes").items()
            if self._to_float(v, None) is not None
        }

        return Hand(
            hand_id=hand_id,
            seats=seats,
            actions=actions,
            hero_actions=hero_actions,
            board=self._parse_board(doc, hand_id),
            username=str(doc.get("username", "")),
            small_blind=small_blind,
            big_blind=big_blind,
            pot_sizes=pot_sizes,
            player_stacks=player_stacks,
            hero_hole_cards=self._parse_cards(doc.get("heroHoleCards"), hand_id),
        )

    def _parse_seats(self, raw_players: list, hand_id: str) -> list[Seat]:
        seats = []
        for raw in raw_players:
            if not isinstance(raw, dict):
                continue
            player_id = raw.get("id", raw.get("playerId"))
            if player_id is None:
                self.warnings.append(f"Hand {hand_id}: player without id")
                continue
            seats.append(Seat(
                player_id=str(player_id),
                position=str(raw.get("position") or "").upper(),
                stack=self._to_float(raw.get("stack", raw.get("chips")), None),
            ))
        return seats

    def _parse_actions(self, raw_actions: list, hand_id: str) -> list[BettingAction]:
        actions = []
        for i, raw in enumerate(raw_actions):
            if not isinstance(raw, dict):
                self.warnings.append(f"Hand {hand_id}: action {i} is not an object")
                continue
            verb = parse_verb(raw.get("action", raw.get("type")))
            street = Street.from_label(raw.get("street"))
            if verb is None or street is None:
                self.warnings.append(
                    f"Hand {hand_id}: action {i} has unknown verb/street "
                    f"{raw.get('action')!r}/{raw.get('street')!r}"
                )
                continue
            amount = max(0.0, self._to_float(raw.get("amount"), 0.0))
            actions.append(BettingAction(
                index=len(actions),
                action_id=str(raw.get("actionId", raw.get("id", f"{hand_id}:{i}"))),
                player_id=str(raw.get("playerId", "")),
                verb=verb,
                street=street,
                amount=amount,
                is_all_in=bool(raw.get("isAllIn", False)),
                position=str(raw.get("position") or "").upper(),
            ))
        return actions

    def _parse_hero_actions(self, raw_heroes: list, hand_id: str) -> list[HeroAction]:
        heroes = []
        for slot, raw in enumerate(raw_heroes):
            if not isinstance(raw, dict):
                self.warnings.append(f"Hand {hand_id}: hero action {slot} is not an object")
                continue
            opponent = raw.get("opponentId")
            heroes.append(HeroAction(
                slot=slot,
                action_id=str(raw.get("actionId", "")),
                opponent_id=str(opponent) if opponent else None,
                villain_range=raw.get("villainRange"),
                response_model=raw.get("responseModel"),
            ))
        return heroes

    def _mapping(self, value: Any, hand_id: str, name: str) -> dict:
        if value is None:
            return {}
        if not isinstance(value, dict):
            self.warnings.append(f"Hand {hand_id}: {name} is not an object, ignored")
            return {}
        return value

    def _parse_cards(self, raw: Any, hand_id: str) -> list[str]:
        if isinstance(raw, str):
            raw = raw.split()
        if not isinstance(raw, list):
            return []
        cards = []
        for item in raw:
            card = self._normalize_card(item)
            if card is None:
                self.warnings.append(f"Hand {hand_id}: dropped card {item!r}")
                continue
            cards.append(card)
        return cards

    def _parse_board(self, doc: dict, hand_id: str) -> list[str]:
        board = doc.get("board")
        if not board:
            community = doc.get("communityCards")
            if not isinstance(community, dict):
                community = {}
            board = []
            for street in ("flop", "turn", "river"):
                cards = community.get(street) or []
                if isinstance(cards, str):
                    cards = [cards]
                if isinstance(cards, list):
                    board.extend(cards)
        return self._parse_cards(board, hand_id)[:5]

    @staticmethod
    def _to_float(value: Any, default: Optional[float]) -> Optional[float]:
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _normalize_card(self, card: Union[str, dict]) -> Optional[str]:
        """
        Normalize card representation to standard format (e.g., "Ah").

        Handles "Ah", "AH", "10h", "A♥" and {"rank": "A", "suit": "h"}.
        Returns None for anything that is not a real card.
        """
        if isinstance(card, dict):
            card = f"{card.get('rank', '?')}{card.get('suit', '?')}"

        if not isinstance(card, str) or len(card.strip()) < 2:
            return None

        text = card.strip()
        rank = text[:-1].upper()
        if rank == "10":
            rank = "T"
        suit = {'♠': 's', '♥': 'h', '♦': 'd', '♣': 'c'}.get(text[-1], text[-1].lower())
        normalized = f"{rank}{suit}"
        if len(normalized) != 2 or rank not in CARD_RANKS or suit not in CARD_SUITS:
            return None
        return normalized


def parse_hand(doc: dict) -> Optional[Hand]:
    """
    Convenience function to parse one stored document.

    Args:
        doc: Hand document

    Returns:
        Hand object, or None when the document is unusable
    """
    parser = HandParser()
    hand = parser.parse_document(doc)
    if parser.errors:
        logger.warning(f"Parsing errors: {parser.errors}")
    return hand


def load_hands(file_path: Union[str, Path]) -> list[Hand]:
    """
    Convenience function to load and parse hands from a file.

    Args:
        file_path: Path to JSON file of hand documents

    Returns:
        List of Hand objects
    """
    parser = HandParser()
    hands = parser.parse_documents(parser.load_file(file_path))

    if parser.errors:
        logger.warning(f"Parsing errors: {parser.errors}")

    return hands
