"""JSON import/export of flashcards and decks.

Documents reference tags and decks by name, never by id, so they move
between databases. Imports process entries one by one and report what was
skipped instead of failing the whole document.
"""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any, Dict, List

import structlog

from utils.decks import find_deck_by_name, list_decks
from utils.errors import ValidationError
from utils.flashcards import find_flashcard, insert_flashcard, list_flashcards, list_flashcards_in_deck
from utils.tags import parse_tag_names

logger = structlog.get_logger(__name__)

REQUIRED_CARD_FIELDS = ("character", "pinyin", "meaning")


def export_filename(kind: str) -> str:
    return f"hanzifive-{kind}-{date.today().isoformat()}.json"


def _has_card_fields(entry: Any) -> bool:
    return isinstance(entry, dict) and all(
        isinstance(entry.get(field), str) and entry[field].strip() for field in REQUIRED_CARD_FIELDS
    )


def _deck_names(value: Any) -> List[str]:
    """Deck names listed on an imported card; a bare string names one deck."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [name.strip() for name in value if isinstance(name, str) and name.strip()]


def _deck_names_by_flashcard(conn) -> Dict[int, List[str]]:
    cursor = conn.execute(
        """
        SELECT df.flashcard_id, d.name
        FROM deck_flashcards df
        JOIN decks d ON d.id = df.deck_id
        ORDER BY d.name
        """
    )
    names: Dict[int, List[str]] = {}
    for row in cursor.fetchall():
        names.setdefault(row["flashcard_id"], []).append(row["name"])
    return names


def export_flashcards(conn) -> List[dict]:
    deck_names = _deck_names_by_flashcard(conn)
    return [
        {
            "character": card["character"],
            "pinyin": card["pinyin"],
            "meaning": card["meaning"],
            "createdAt": card["created_at"],
            "tags": card["tags"],
            "decks": deck_names.get(card["id"], []),
        }
        for card in list_flashcards(conn)
    ]


def import_flashcards(conn, entries: Any) -> dict:
    """Create one flashcard per entry; deck names that do not exist are ignored."""
    if not isinstance(entries, list):
        raise ValidationError("Invalid import data: Expected an array of flashcards")
    results = {"total": len(entries), "imported": 0, "skipped": 0, "errors": []}
    for entry in entries:
        if not _has_card_fields(entry):
            results["skipped"] += 1
            results["errors"].append("Skipping card: Missing required fields (character, pinyin, or meaning)")
            continue
        try:
            flashcard_id = insert_flashcard(
                conn,
                entry["character"].strip(),
                entry["pinyin"].strip(),
                entry["meaning"].strip(),
                parse_tag_names(entry.get("tags")),
            )
            for deck_name in _deck_names(entry.get("decks")):
                deck = find_deck_by_name(conn, deck_name)
                if deck:
                    conn.execute(
                        "INSERT OR IGNORE INTO deck_flashcards (deck_id, flashcard_id) VALUES (?, ?)",
                        (deck["id"], flashcard_id),
                    )
            conn.commit()
            results["imported"] += 1
        except sqlite3.Error as exc:
            conn.rollback()
            results["skipped"] += 1
            results["errors"].append(f'Error importing card "{entry["character"]}": {exc}')
    logger.info("flashcards_imported", total=results["total"], imported=results["imported"], skipped=results["skipped"])
    return results


def export_decks(conn) -> List[dict]:
    return [
        {
            "name": deck["name"],
            "description": deck["description"],
            "createdAt": deck["created_at"],
            "flashcards": [
                {
                    "character": card["character"],
                    "pinyin": card["pinyin"],
                    "meaning": card["meaning"],
                    "tags": card["tags"],
                }
                for card in list_flashcards_in_deck(conn, deck["id"])
            ],
        }
        for deck in list_decks(conn)
    ]


def _import_deck(conn, entry: dict, card_stats: dict) -> None:
    name = entry["name"].strip()
    description = entry.get("description")
    existing = find_deck_by_name(conn, name)
    if existing:
        deck_id = existing["id"]
        if description:
            conn.execute(
                "UPDATE decks SET description = ?, updated_at = datetime('now') WHERE id = ?",
                (description, deck_id),
            )
    else:
        deck_id = conn.execute(
            "INSERT INTO decks (name, description) VALUES (?, ?)",
            (name, description or None),
        ).lastrowid
    conn.commit()

    cards = entry.get("flashcards")
    if not isinstance(cards, list):
        return
    card_stats["total"] += len(cards)
    for card in cards:
        if not _has_card_fields(card):
            card_stats["skipped"] += 1
            continue
        character, pinyin, meaning = (card[field].strip() for field in REQUIRED_CARD_FIELDS)
        try:
            match = find_flashcard(conn, character, pinyin, meaning)
            if match:
                flashcard_id = match["id"]
            else:
                flashcard_id = insert_flashcard(conn, character, pinyin, meaning, parse_tag_names(card.get("tags")))
                card_stats["imported"] += 1
            conn.execute(
                "INSERT OR IGNORE INTO deck_flashcards (deck_id, flashcard_id) VALUES (?, ?)",
                (deck_id, flashcard_id),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            card_stats["skipped"] += 1
            logger.warning("deck_card_import_failed", deck=name, character=character, exc_info=True)


def import_decks(conn, entries: Any) -> dict:
    """Merge decks by name; cards matching on character, pinyin and meaning are reused."""
    if not isinstance(entries, list):
        raise ValidationError("Invalid import data: Expected an array of decks")
    results = {
        "total": len(entries),
        "imported": 0,
        "skipped": 0,
        "errors": [],
        "card_stats": {"total": 0, "imported": 0, "skipped": 0},
    }
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or not entry["name"].strip():
            results["skipped"] += 1
            results["errors"].append("Skipping deck: Missing required field (name)")
            continue
        try:
            _import_deck(conn, entry, results["card_stats"])
            results["imported"] += 1
        except sqlite3.Error as exc:
            conn.rollback()
            results["skipped"] += 1
            results["errors"].append(f'Error importing deck "{entry["name"]}": {exc}')
    logger.info("decks_imported", total=results["total"], imported=results["imported"], skipped=results["skipped"])
    return results
