"""Streak ledger: flashcard id -> consecutive correct answers in the revise deck.

The table shares the database file with everything else but is only read
and written here, through a connection of its own. Nothing in the
relational helpers joins against it, so the two stores share no
transaction.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import structlog

from db import database
from utils.errors import storage_guard

logger = structlog.get_logger(__name__)


class StreakLedger:
    def __init__(self, db_path: Optional[Path] = None) -> None:
        self._db_path = db_path

    @property
    def db_path(self) -> Path:
        return self._db_path or database.DB_PATH

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        # Autocommit; writes open their own BEGIN IMMEDIATE
        conn = sqlite3.connect(
            self.db_path,
            timeout=database.DB_TIMEOUT_SECONDS,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def get(self, flashcard_id: int) -> Optional[dict]:
        with storage_guard("read streak"), self._connect() as conn:
            row = conn.execute(
                "SELECT flashcard_id, streak, updated_at FROM revise_card_streaks WHERE flashcard_id = ?",
                (flashcard_id,),
            ).fetchone()
        return dict(row) if row else None

    def current(self, flashcard_id: int) -> int:
        record = self.get(flashcard_id)
        return int(record["streak"]) if record else 0

    def increment(self, flashcard_id: int) -> int:
        """Add one to the streak in a single upsert and return the new value."""
        with storage_guard("increment streak"), self._write() as conn:
            conn.execute(
                """
                INSERT INTO revise_card_streaks (flashcard_id, streak, updated_at)
                VALUES (?, 1, datetime('now'))
                ON CONFLICT(flashcard_id) DO UPDATE SET
                    streak = streak + 1,
                    updated_at = excluded.updated_at
                """,
                (flashcard_id,),
            )
            streak = conn.execute(
                "SELECT streak FROM revise_card_streaks WHERE flashcard_id = ?",
                (flashcard_id,),
            ).fetchone()[0]
        return int(streak)

    def reset(self, flashcard_id: int) -> int:
        with storage_guard("reset streak"), self._write() as conn:
            conn.execute(
                """
                INSERT INTO revise_card_streaks (flashcard_id, streak, updated_at)
                VALUES (?, 0, datetime('now'))
                ON CONFLICT(flashcard_id) DO UPDATE SET
                    streak = 0,
                    updated_at = excluded.updated_at
                """,
                (flashcard_id,),
            )
        return 0

    def delete(self, flashcard_id: int) -> bool:
        with storage_guard("delete streak"), self._write() as conn:
            cursor = conn.execute(
                "DELETE FROM revise_card_streaks WHERE flashcard_id = ?",
                (flashcard_id,),
            )
            deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("streak_deleted", flashcard_id=flashcard_id)
        return deleted

    def all(self) -> List[dict]:
        with storage_guard("list streaks"), self._connect() as conn:
            rows = conn.execute(
                "SELECT flashcard_id, streak, updated_at FROM revise_card_streaks ORDER BY flashcard_id"
            ).fetchall()
        return [dict(row) for row in rows]

    def tracked_ids(self) -> set:
        return {record["flashcard_id"] for record in self.all()}


def get_ledger() -> StreakLedger:
    """FastAPI dependency returning a ledger bound to the current database file."""
    return StreakLedger()
