from __future__ import annotations

import re
import sqlite3
from typing import Dict, Iterable, List, Optional, Sequence, Union


_TAG_SPLIT_RE = re.compile(r"[,\n]+")


def parse_tag_names(raw: Union[str, Sequence[str], None]) -> List[str]:
    """Split a comma-separated string (or clean a list) into distinct tag names.

    Names are matched exactly, so case is preserved; only surrounding
    whitespace and empty entries are dropped. Values that are neither a
    string nor a list, and list entries that are not strings, are ignored.
    """
    if not raw:
        return []
    if isinstance(raw, str):
        parts = _TAG_SPLIT_RE.split(raw)
    elif isinstance(raw, (list, tuple)):
        parts = [part for part in raw if isinstance(part, str)]
    else:
        return []
    seen = set()
    tags: List[str] = []
    for part in parts:
        name = part.strip()
        if not name or name in seen:
            continue
        seen.add(name)
        tags.append(name)
    return tags


def find_or_create_tag(conn: sqlite3.Connection, name: str) -> int:
    """Return the id of the tag called name, creating it when absent.

    The UNIQUE constraint on tags.name decides the race between two
    writers creating the same new tag: the loser's insert is ignored and
    both read back the same row.
    """
    cursor = conn.cursor()
    cursor.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (name,))
    cursor.execute("SELECT id FROM tags WHERE name = ?", (name,))
    return int(cursor.fetchone()["id"])


def upsert_tags(conn, tag_names: Iterable[str]) -> List[int]:
    return [find_or_create_tag(conn, name) for name in tag_names]


def add_flashcard_tags(conn, flashcard_id: int, tag_names: Iterable[str]) -> None:
    tag_ids = upsert_tags(conn, tag_names)
    if not tag_ids:
        return
    conn.cursor().executemany(
        "INSERT OR IGNORE INTO flashcard_tags (flashcard_id, tag_id) VALUES (?, ?)",
        [(flashcard_id, tag_id) for tag_id in tag_ids],
    )


def set_flashcard_tags(conn, flashcard_id: int, tag_names: Iterable[str]) -> None:
    conn.execute("DELETE FROM flashcard_tags WHERE flashcard_id = ?", (flashcard_id,))
    add_flashcard_tags(conn, flashcard_id, tag_names)


def tag_names_by_flashcard(conn, flashcard_ids: Optional[Sequence[int]] = None) -> Dict[int, List[str]]:
    """Map flashcard id to its tag names, sorted, for flattening into listings."""
    cursor = conn.cursor()
    query = """
        SELECT ft.flashcard_id, t.name
        FROM flashcard_tags ft
        JOIN tags t ON t.id = ft.tag_id
    """
    params: list = []
    if flashcard_ids is not None:
        if not flashcard_ids:
            return {}
        placeholders = ",".join("?" for _ in flashcard_ids)
        query += f" WHERE ft.flashcard_id IN ({placeholders})"
        params.extend(flashcard_ids)
    query += " ORDER BY t.name"
    cursor.execute(query, params)
    names: Dict[int, List[str]] = {}
    for row in cursor.fetchall():
        names.setdefault(row["flashcard_id"], []).append(row["name"])
    return names


def list_tags(conn) -> List[dict]:
    cursor = conn.cursor()
    cursor.execute("SELECT id, name, created_at FROM tags ORDER BY name")
    return [dict(row) for row in cursor.fetchall()]
