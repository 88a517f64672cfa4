"""SQLite document store for hand records."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

DEFAULT_PAGE_SIZE = 100


class PersistenceError(RuntimeError):
    """Base class for hand store failures."""


class PersistenceMissTarget(PersistenceError):
    """The hand or hero-action slot to write does not exist."""


class PersistenceTransport(PersistenceError):
    """The store could not be opened, read or written."""


def document_id(doc: Dict[str, Any]) -> str:
    hand_id = doc.get("id", doc.get("_id"))
    if hand_id is None or str(hand_id).strip() == "":
        raise ValueError("hand document has no id")
    return str(hand_id)


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True)


def resolve_store_path(uri: str) -> Path:
    """Accept `sqlite:///path` or a plain filesystem path."""
    text = str(uri or "").strip()
    if text.startswith("sqlite:///"):
        text = text[len("sqlite:///"):]
    if not text:
        raise ValueError("empty hand store path")
    return Path(text)


class HandStore:
    """Hand documents keyed by id, kept in insertion order."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as e:
            raise PersistenceTransport(f"cannot open hand store {self.db_path}: {e}") from e

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS hands (
                    hand_id TEXT PRIMARY KEY,
                    username TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    payload_json TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_hands_username ON hands(username)"
            )

    def save_hand(self, doc: Dict[str, Any]) -> str:
        """Insert or replace a hand document; returns its id."""
        hand_id = document_id(doc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO hands (hand_id, username, created_at, payload_json)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(hand_id) DO UPDATE SET
                    username = excluded.username,
                    payload_json = excluded.payload_json
                """,
                (
                    hand_id,
                    str(doc.get("username") or ""),
                    doc.get("createdAt") or datetime.now(timezone.utc).isoformat(),
                    json.dumps(doc),
                ),
            )
        return hand_id

    def get_hand(self, hand_id: str) -> Optional[dict]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload_json FROM hands WHERE hand_id = ?",
                (hand_id,),
            ).fetchone()
            if not row:
                return None
            return json.loads(row["payload_json"])

    def list_hands(self, username: Optional[str] = None, limit: int = 50) -> List[dict]:
        """Newest-first summaries: id, username, created_at and hero action counts."""
        query = "SELECT hand_id, username, created_at, payload_json FROM hands"
        params: List[Any] = []
        if username:
            query += " WHERE username = ?"
            params.append(username)
        query += " ORDER BY rowid DESC LIMIT ?"
        params.append(max(1, int(limit)))
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        out = []
        for row in rows:
            payload = json.loads(row["payload_json"])
            heroes = payload.get("heroActions") or []
            out.append(
                {
                    "id": row["hand_id"],
                    "username": row["username"],
                    "created_at": row["created_at"],
                    "hero_actions": len(heroes),
                    "modelled": sum(1 for h in heroes if isinstance(h, dict) and h.get("responseModel")),
                }
            )
        return out

    def usernames(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT DISTINCT username FROM hands WHERE username != '' ORDER BY username"
            ).fetchall()
        return [row["username"] for row in rows]

    def count_hands(self, username: Optional[str] = None) -> int:
        with self._connect() as conn:
            if username:
                row = conn.execute("SELECT COUNT(*) AS n FROM hands WHERE username = ?", (username,)).fetchone()
            else:
                row = conn.execute("SELECT COUNT(*) AS n FROM hands").fetchone()
        return int(row["n"])

    def delete_hand(self, hand_id: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM hands WHERE hand_id = ?", (hand_id,))
            return cur.rowcount > 0

    def clear(self) -> dict:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM hands")
            return {"hands_deleted": max(0, cur.rowcount)}

    def iter_hands(
        self,
        username: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Iterator[dict]:
        """
        Stream documents in insertion order, one page per query.

        Pagination is keyed on rowid, so hands updated mid-iteration are not
        revisited and no page is read twice.
        """
        last = 0
        while True:
            query = "SELECT rowid AS rid, payload_json FROM hands WHERE rowid > ?"
            params: List[Any] = [last]
            if username:
                query += " AND username = ?"
                params.append(username)
            query += " ORDER BY rowid LIMIT ?"
            params.append(max(1, int(page_size)))
            try:
                with self._connect() as conn:
                    rows = conn.execute(query, params).fetchall()
            except sqlite3.Error as e:
                raise PersistenceTransport(f"hand cursor failed after rowid {last}: {e}") from e
            if not rows:
                return
            for row in rows:
                last = row["rid"]
                yield json.loads(row["payload_json"])

    def set_hero_action_fields(self, hand_id: str, slot: int, fields: Dict[str, Any]) -> bool:
        """
        Write fields onto heroActions[slot] in one transaction.

        Returns False without writing when every field already holds the same
        canonical JSON.
        """
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise PersistenceTransport(str(e)) from e
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT payload_json FROM hands WHERE hand_id = ?",
                (hand_id,),
            ).fetchone()
            if not row:
                conn.execute("ROLLBACK")
                raise PersistenceMissTarget(f"hand {hand_id} not found")
            payload = json.loads(row["payload_json"])
            heroes = payload.get("heroActions")
            if not isinstance(heroes, list) or not 0 <= slot < len(heroes) or not isinstance(heroes[slot], dict):
                conn.execute("ROLLBACK")
                raise PersistenceMissTarget(f"hand {hand_id} has no hero action {slot}")

            target = heroes[slot]
            if all(
                key in target and canonical_json(target[key]) == canonical_json(value)
                for key, value in fields.items()
            ):
                conn.execute("ROLLBACK")
                return False

            target.update(fields)
            conn.execute(
                "UPDATE hands SET payload_json = ? WHERE hand_id = ?",
                (json.dumps(payload), hand_id),
            )
            conn.execute("COMMIT")
            return True
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise PersistenceTransport(f"write to hand {hand_id} failed: {e}") from e
        finally:
            conn.close()
