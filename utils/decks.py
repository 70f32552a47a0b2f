"""Deck storage and the deck membership engine (flashcard <-> deck edges)."""

from __future__ import annotations

import sqlite3
from typing import List, Optional

import structlog

from utils.errors import (
    AlreadyMemberError,
    ConflictError,
    DeckNotFoundError,
    NotFoundError,
    NotMemberError,
    ValidationError,
    storage_guard,
)
from utils.flashcards import list_flashcards_in_deck, require_flashcard

logger = structlog.get_logger(__name__)

DECK_COLUMNS = "id, name, description, created_at, updated_at"


def require_deck(conn, deck_id: int) -> dict:
    cursor = conn.cursor()
    cursor.execute(f"SELECT {DECK_COLUMNS} FROM decks WHERE id = ?", (deck_id,))
    row = cursor.fetchone()
    if not row:
        raise DeckNotFoundError(deck_id)
    return dict(row)


def find_deck_by_name(conn, name: str) -> Optional[dict]:
    cursor = conn.cursor()
    cursor.execute(f"SELECT {DECK_COLUMNS} FROM decks WHERE name = ?", (name,))
    row = cursor.fetchone()
    return dict(row) if row else None


def list_decks(conn) -> List[dict]:
    """Decks newest first, each with the size of its membership set."""
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT d.id, d.name, d.description, d.created_at, d.updated_at,
               COUNT(df.flashcard_id) AS card_count
        FROM decks d
        LEFT JOIN deck_flashcards df ON df.deck_id = d.id
        GROUP BY d.id
        ORDER BY d.created_at DESC, d.id DESC
        """
    )
    return [dict(row) for row in cursor.fetchall()]


def get_deck_detail(conn, deck_id: int) -> dict:
    deck = require_deck(conn, deck_id)
    deck["flashcards"] = list_flashcards_in_deck(conn, deck_id)
    return deck


def create_deck(conn, name: Optional[str], description: Optional[str] = None) -> dict:
    if not name or not name.strip():
        raise ValidationError("Deck name is required")
    cursor = conn.cursor()
    try:
        cursor.execute(
            "INSERT INTO decks (name, description) VALUES (?, ?)",
            (name.strip(), description),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        raise ConflictError("Deck with this name already exists")
    logger.info("deck_created", deck_id=cursor.lastrowid, name=name.strip())
    return require_deck(conn, cursor.lastrowid)


def update_deck(conn, deck_id: int, name: Optional[str] = None, description: Optional[str] = None) -> dict:
    require_deck(conn, deck_id)
    fields = {}
    if name is not None:
        if not name.strip():
            raise ValidationError("Deck name is required")
        fields["name"] = name.strip()
    if description is not None:
        fields["description"] = description
    if not fields:
        return require_deck(conn, deck_id)
    assignments = ", ".join(f"{column} = ?" for column in fields)
    try:
        conn.execute(
            f"UPDATE decks SET {assignments}, updated_at = datetime('now') WHERE id = ?",
            (*fields.values(), deck_id),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        raise ConflictError("Deck with this name already exists")
    return require_deck(conn, deck_id)


def delete_deck(conn, deck_id: int) -> None:
    require_deck(conn, deck_id)
    with storage_guard("delete deck"):
        conn.execute("DELETE FROM deck_flashcards WHERE deck_id = ?", (deck_id,))
        conn.execute("DELETE FROM study_sessions WHERE deck_id = ?", (deck_id,))
        conn.execute("DELETE FROM decks WHERE id = ?", (deck_id,))
        conn.commit()
    logger.info("deck_deleted", deck_id=deck_id)


def is_member(conn, deck_id: int, flashcard_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT 1 FROM deck_flashcards WHERE deck_id = ? AND flashcard_id = ?",
        (deck_id, flashcard_id),
    )
    return cursor.fetchone() is not None


def member_ids(conn, deck_id: int) -> set:
    cursor = conn.cursor()
    cursor.execute("SELECT flashcard_id FROM deck_flashcards WHERE deck_id = ?", (deck_id,))
    return {row[0] for row in cursor.fetchall()}


def attach(conn, flashcard_id: int, deck_id: int) -> None:
    """Add flashcard to deck. Raises AlreadyMemberError when the edge exists."""
    require_deck(conn, deck_id)
    require_flashcard(conn, flashcard_id)
    if is_member(conn, deck_id, flashcard_id):
        raise AlreadyMemberError(flashcard_id, deck_id)
    with storage_guard("add flashcard to deck"):
        conn.execute(
            "INSERT INTO deck_flashcards (deck_id, flashcard_id) VALUES (?, ?)",
            (deck_id, flashcard_id),
        )
        conn.commit()
    logger.info("deck_member_added", deck_id=deck_id, flashcard_id=flashcard_id)


def detach(conn, flashcard_id: int, deck_id: int) -> None:
    """Remove flashcard from deck. Raises NotMemberError when there is no edge."""
    require_deck(conn, deck_id)
    require_flashcard(conn, flashcard_id)
    if not remove_membership(conn, deck_id, flashcard_id):
        raise NotMemberError(flashcard_id, deck_id)


def remove_membership(conn, deck_id: int, flashcard_id: int) -> bool:
    """Delete the edge if present and report whether a row was removed."""
    with storage_guard("remove flashcard from deck"):
        cursor = conn.execute(
            "DELETE FROM deck_flashcards WHERE deck_id = ? AND flashcard_id = ?",
            (deck_id, flashcard_id),
        )
        conn.commit()
    removed = cursor.rowcount > 0
    if removed:
        logger.info("deck_member_removed", deck_id=deck_id, flashcard_id=flashcard_id)
    return removed


def attach_by_tag(conn, deck_id: int, tag_name: Optional[str]) -> int:
    """Attach every flashcard tagged tag_name that is not yet in the deck.

    Returns how many were attached; a repeated call returns 0.
    """
    if not tag_name or not tag_name.strip():
        raise ValidationError("Tag is required")
    require_deck(conn, deck_id)
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT ft.flashcard_id
        FROM flashcard_tags ft
        JOIN tags t ON t.id = ft.tag_id
        WHERE t.name = ?
        """,
        (tag_name.strip(),),
    )
    tagged = [row[0] for row in cursor.fetchall()]
    if not tagged:
        raise NotFoundError("No flashcards found with the given tag")
    existing = member_ids(conn, deck_id)
    new_ids = [flashcard_id for flashcard_id in tagged if flashcard_id not in existing]
    if not new_ids:
        return 0
    with storage_guard("add flashcards to deck by tag"):
        cursor.executemany(
            "INSERT OR IGNORE INTO deck_flashcards (deck_id, flashcard_id) VALUES (?, ?)",
            [(deck_id, flashcard_id) for flashcard_id in new_ids],
        )
        conn.commit()
    logger.info("deck_members_added_by_tag", deck_id=deck_id, tag=tag_name.strip(), count=len(new_ids))
    return len(new_ids)
