from typing import List, Optional

import structlog

from models.study_session import StudyMode
from utils.decks import require_deck
from utils.errors import ValidationError, storage_guard

logger = structlog.get_logger(__name__)

SESSION_COLUMNS = "id, deck_id, started_at, ended_at, correct, incorrect, study_mode"


def create_session(conn, deck_id: int, correct: int = 0, incorrect: int = 0, mode=StudyMode.NORMAL) -> dict:
    """Record one completed study run. Rows are never updated afterwards."""
    if correct < 0 or incorrect < 0:
        raise ValidationError("Correct and incorrect counts must not be negative")
    try:
        mode = StudyMode(mode or StudyMode.NORMAL)
    except ValueError:
        raise ValidationError("Study mode must be 'normal', 'reverse', or 'meaningOnly'")
    require_deck(conn, deck_id)
    with storage_guard("create study session"):
        cursor = conn.execute(
            """
            INSERT INTO study_sessions (deck_id, started_at, ended_at, correct, incorrect, study_mode)
            VALUES (?, datetime('now'), datetime('now'), ?, ?, ?)
            """,
            (deck_id, correct, incorrect, mode.value),
        )
        conn.commit()
    session_id = cursor.lastrowid
    logger.info(
        "study_session_recorded",
        session_id=session_id,
        deck_id=deck_id,
        correct=correct,
        incorrect=incorrect,
        study_mode=mode.value,
    )
    row = conn.execute(f"SELECT {SESSION_COLUMNS} FROM study_sessions WHERE id = ?", (session_id,)).fetchone()
    return dict(row)


def list_sessions(conn, deck_id: Optional[int] = None) -> List[dict]:
    """Sessions newest first, optionally limited to one deck."""
    if deck_id is None:
        cursor = conn.execute(
            f"SELECT {SESSION_COLUMNS} FROM study_sessions ORDER BY started_at DESC, id DESC"
        )
    else:
        require_deck(conn, deck_id)
        cursor = conn.execute(
            f"SELECT {SESSION_COLUMNS} FROM study_sessions WHERE deck_id = ? ORDER BY started_at DESC, id DESC",
            (deck_id,),
        )
    return [dict(row) for row in cursor.fetchall()]
