from __future__ import annotations

import sqlite3
from typing import List, Optional, Sequence, Union

import structlog

from utils.errors import FlashcardNotFoundError, ValidationError, storage_guard
from utils.tags import parse_tag_names, add_flashcard_tags, set_flashcard_tags, tag_names_by_flashcard

logger = structlog.get_logger(__name__)

FLASHCARD_COLUMNS = "id, character, pinyin, meaning, created_at, updated_at"


def _with_tags(conn, rows: Sequence[sqlite3.Row]) -> List[dict]:
    cards = [dict(row) for row in rows]
    names = tag_names_by_flashcard(conn, [card["id"] for card in cards])
    for card in cards:
        card["tags"] = names.get(card["id"], [])
    return cards


def _require_text(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} is required")
    return value.strip()


def require_flashcard(conn, flashcard_id: int) -> dict:
    cursor = conn.cursor()
    cursor.execute(f"SELECT {FLASHCARD_COLUMNS} FROM flashcards WHERE id = ?", (flashcard_id,))
    row = cursor.fetchone()
    if not row:
        raise FlashcardNotFoundError(flashcard_id)
    return dict(row)


def get_flashcard(conn, flashcard_id: int) -> dict:
    card = require_flashcard(conn, flashcard_id)
    card["tags"] = tag_names_by_flashcard(conn, [flashcard_id]).get(flashcard_id, [])
    return card


def list_flashcards(conn) -> List[dict]:
    """All flashcards, newest first, with tag names flattened to strings."""
    cursor = conn.cursor()
    cursor.execute(f"SELECT {FLASHCARD_COLUMNS} FROM flashcards ORDER BY created_at DESC, id DESC")
    return _with_tags(conn, cursor.fetchall())


def list_flashcards_in_deck(conn, deck_id: int) -> List[dict]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT f.id, f.character, f.pinyin, f.meaning, f.created_at, f.updated_at
        FROM flashcards f
        JOIN deck_flashcards df ON df.flashcard_id = f.id
        WHERE df.deck_id = ?
        ORDER BY f.created_at, f.id
        """,
        (deck_id,),
    )
    return _with_tags(conn, cursor.fetchall())


def find_flashcard(conn, character: str, pinyin: str, meaning: str) -> Optional[dict]:
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT {FLASHCARD_COLUMNS} FROM flashcards
        WHERE character = ? AND pinyin = ? AND meaning = ?
        ORDER BY id
        LIMIT 1
        """,
        (character, pinyin, meaning),
    )
    row = cursor.fetchone()
    return dict(row) if row else None


def insert_flashcard(conn, character: str, pinyin: str, meaning: str, tag_names: Sequence[str]) -> int:
    """Insert a flashcard row and its tag edges without committing."""
    cursor = conn.cursor()
    cursor.execute(
        "INSERT INTO flashcards (character, pinyin, meaning) VALUES (?, ?, ?)",
        (character, pinyin, meaning),
    )
    flashcard_id = cursor.lastrowid
    add_flashcard_tags(conn, flashcard_id, tag_names)
    return flashcard_id


def create_flashcard(
    conn,
    character: Optional[str],
    pinyin: Optional[str],
    meaning: Optional[str],
    tags: Union[str, Sequence[str], None] = None,
) -> dict:
    if not character or not pinyin or not meaning:
        raise ValidationError("Character, pinyin, and meaning are required")
    character = _require_text(character, "Character")
    pinyin = _require_text(pinyin, "Pinyin")
    meaning = _require_text(meaning, "Meaning")
    with storage_guard("create flashcard"):
        flashcard_id = insert_flashcard(conn, character, pinyin, meaning, parse_tag_names(tags))
        conn.commit()
    logger.info("flashcard_created", flashcard_id=flashcard_id)
    return get_flashcard(conn, flashcard_id)


def update_flashcard(
    conn,
    flashcard_id: int,
    character: Optional[str] = None,
    pinyin: Optional[str] = None,
    meaning: Optional[str] = None,
    tags: Union[str, Sequence[str], None] = None,
) -> dict:
    """Partial update; tags are replaced only when supplied (an empty string clears them)."""
    require_flashcard(conn, flashcard_id)
    fields = {}
    if character is not None:
        fields["character"] = _require_text(character, "Character")
    if pinyin is not None:
        fields["pinyin"] = _require_text(pinyin, "Pinyin")
    if meaning is not None:
        fields["meaning"] = _require_text(meaning, "Meaning")
    with storage_guard("update flashcard"):
        if fields:
            assignments = ", ".join(f"{name} = ?" for name in fields)
            conn.execute(
                f"UPDATE flashcards SET {assignments}, updated_at = datetime('now') WHERE id = ?",
                (*fields.values(), flashcard_id),
            )
        if tags is not None:
            set_flashcard_tags(conn, flashcard_id, parse_tag_names(tags))
            if not fields:
                conn.execute(
                    "UPDATE flashcards SET updated_at = datetime('now') WHERE id = ?",
                    (flashcard_id,),
                )
        conn.commit()
    return get_flashcard(conn, flashcard_id)


def delete_flashcard(conn, ledger, flashcard_id: int) -> None:
    """Delete a flashcard, its tag and deck edges, and any streak record.

    The relational rows go first in one transaction; the ledger row is
    removed afterwards through its own connection.
    """
    require_flashcard(conn, flashcard_id)
    with storage_guard("delete flashcard"):
        conn.execute("DELETE FROM flashcard_tags WHERE flashcard_id = ?", (flashcard_id,))
        conn.execute("DELETE FROM deck_flashcards WHERE flashcard_id = ?", (flashcard_id,))
        conn.execute("DELETE FROM flashcards WHERE id = ?", (flashcard_id,))
        conn.commit()
    ledger.delete(flashcard_id)
    logger.info("flashcard_deleted", flashcard_id=flashcard_id)
