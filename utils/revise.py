"""Revise deck promotion/demotion.

Per flashcard the states are:

* Untracked - not in the revise deck, no streak record.
* Tracked(n), n < threshold - in the revise deck; the streak record holds n
  (a missing record reads as 0, it is created on the first judgment made
  while studying the revise deck).

An incorrect answer while studying the vocabulary pool deck puts an
Untracked card into the revise deck. Inside the revise deck a correct
answer adds one to the streak and an incorrect one resets it to 0. Reaching
the threshold detaches the card from the revise deck and deletes its
record, returning it to Untracked.

Deck membership and streak records live in two stores without a shared
transaction. Demotion detaches first and deletes the record second;
``reconcile`` repairs whatever a failure between the two leaves behind.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import structlog

from config import load_config
from models.revise import JudgmentOutcome, ReconcileReport
from utils.decks import find_deck_by_name, is_member, member_ids, remove_membership, require_deck
from utils.errors import DeckNotFoundError, ValidationError, storage_guard
from utils.flashcards import require_flashcard
from utils.streaks import StreakLedger

logger = structlog.get_logger(__name__)

# flashcard id -> [lock, number of threads holding or waiting on it]
_flashcard_locks: Dict[int, List] = {}
_flashcard_locks_guard = threading.Lock()


@dataclass(frozen=True)
class ReviseSettings:
    deck_name: str
    deck_description: str
    streak_threshold: int
    pool_deck_id: Optional[int]


def load_revise_settings() -> ReviseSettings:
    revise_cfg = load_config()["revise"]
    return ReviseSettings(
        deck_name=revise_cfg["deck_name"],
        deck_description=revise_cfg["deck_description"],
        streak_threshold=revise_cfg["streak_threshold"],
        pool_deck_id=revise_cfg["pool_deck_id"],
    )


@contextmanager
def _flashcard_lock(flashcard_id: int) -> Iterator[None]:
    """Hold the per-flashcard lock; the entry is dropped once no thread uses it."""
    with _flashcard_locks_guard:
        entry = _flashcard_locks.get(flashcard_id)
        if entry is None:
            entry = _flashcard_locks[flashcard_id] = [threading.RLock(), 0]
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _flashcard_locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _flashcard_locks[flashcard_id]


def find_revise_deck(conn, settings: ReviseSettings) -> Optional[dict]:
    with storage_guard("look up revise deck"):
        return find_deck_by_name(conn, settings.deck_name)


def ensure_revise_deck(conn, settings: Optional[ReviseSettings] = None) -> dict:
    """Return the revise deck, creating it on first use.

    Deck names are unique, so a concurrent creator loses the insert and
    reads back the winner's row.
    """
    settings = settings or load_revise_settings()
    with storage_guard("create revise deck"):
        cursor = conn.execute(
            "INSERT OR IGNORE INTO decks (name, description) VALUES (?, ?)",
            (settings.deck_name, settings.deck_description),
        )
        conn.commit()
    if cursor.rowcount > 0:
        logger.info("revise_deck_created", deck_id=cursor.lastrowid, name=settings.deck_name)
    return find_revise_deck(conn, settings)


def add_to_revise_deck(
    conn,
    ledger: StreakLedger,
    flashcard_id: int,
    settings: Optional[ReviseSettings] = None,
):
    """Put a flashcard into the revise deck unless it is already there.

    Returns ``(deck, added)``. A card that enters the deck starts at
    Tracked(0): any record left over from an interrupted demotion is dropped.
    """
    settings = settings or load_revise_settings()
    require_flashcard(conn, flashcard_id)
    with _flashcard_lock(flashcard_id):
        deck = ensure_revise_deck(conn, settings)
        if is_member(conn, deck["id"], flashcard_id):
            return deck, False
        if ledger.delete(flashcard_id):
            logger.warning("revise_stale_streak_removed", flashcard_id=flashcard_id)
        with storage_guard("add flashcard to revise deck"):
            conn.execute(
                "INSERT OR IGNORE INTO deck_flashcards (deck_id, flashcard_id) VALUES (?, ?)",
                (deck["id"], flashcard_id),
            )
            conn.commit()
    logger.info("revise_card_added", flashcard_id=flashcard_id, deck_id=deck["id"])
    return deck, True


def update_revise_streak(
    conn,
    ledger: StreakLedger,
    flashcard_id: int,
    correct: bool,
    settings: Optional[ReviseSettings] = None,
) -> JudgmentOutcome:
    """Apply a judgment made while studying the revise deck.

    Unlike ``record_judgment`` this entry point names the revise deck
    explicitly, so a missing deck or a card outside it is an error.
    """
    settings = settings or load_revise_settings()
    require_flashcard(conn, flashcard_id)
    with _flashcard_lock(flashcard_id):
        deck = find_revise_deck(conn, settings)
        if deck is None:
            raise DeckNotFoundError(message="Revise deck not found")
        if not is_member(conn, deck["id"], flashcard_id):
            raise ValidationError("Card is not in the revise deck")
        return _judge_in_revise_deck(conn, ledger, deck, flashcard_id, correct, settings)


def _judge_in_revise_deck(
    conn,
    ledger: StreakLedger,
    deck: Optional[dict],
    flashcard_id: int,
    correct: bool,
    settings: ReviseSettings,
) -> JudgmentOutcome:
    if deck is None or not is_member(conn, deck["id"], flashcard_id):
        # Untracked: nothing to count. Drop a record left by an interrupted demotion.
        if ledger.delete(flashcard_id):
            logger.warning("revise_stale_streak_removed", flashcard_id=flashcard_id)
        return JudgmentOutcome(streak=0)

    if not correct:
        streak = ledger.reset(flashcard_id)
        logger.info("revise_streak_reset", flashcard_id=flashcard_id)
        return JudgmentOutcome(streak=streak)

    streak = ledger.increment(flashcard_id)
    if streak < settings.streak_threshold:
        logger.info("revise_streak_incremented", flashcard_id=flashcard_id, streak=streak)
        return JudgmentOutcome(streak=streak)

    removed = remove_membership(conn, deck["id"], flashcard_id)
    ledger.delete(flashcard_id)
    logger.info(
        "revise_card_promoted",
        flashcard_id=flashcard_id,
        deck_id=deck["id"],
        streak=streak,
        removed=removed,
    )
    return JudgmentOutcome(streak=streak, promoted=True, removed=removed)


def record_judgment(
    conn,
    ledger: StreakLedger,
    flashcard_id: int,
    deck_id: int,
    correct: bool,
    settings: Optional[ReviseSettings] = None,
) -> JudgmentOutcome:
    """Single entry point for a correct/incorrect answer given while studying deck_id."""
    settings = settings or load_revise_settings()
    require_flashcard(conn, flashcard_id)
    require_deck(conn, deck_id)
    with _flashcard_lock(flashcard_id):
        revise_deck = find_revise_deck(conn, settings)
        if revise_deck is not None and revise_deck["id"] == deck_id:
            return _judge_in_revise_deck(conn, ledger, revise_deck, flashcard_id, correct, settings)

        if not correct and settings.pool_deck_id is not None and deck_id == settings.pool_deck_id:
            _, added = add_to_revise_deck(conn, ledger, flashcard_id, settings)
            return JudgmentOutcome(streak=ledger.current(flashcard_id), added=added)

        return JudgmentOutcome(streak=ledger.current(flashcard_id))


def reconcile(conn, ledger: StreakLedger, settings: Optional[ReviseSettings] = None) -> ReconcileReport:
    """Bring the streak ledger back in line with revise deck membership.

    Records whose flashcard is not in the revise deck are deleted. Members
    without a record are counted and left alone; they read as Tracked(0).
    """
    settings = settings or load_revise_settings()
    deck = find_revise_deck(conn, settings)
    members = member_ids(conn, deck["id"]) if deck else set()
    tracked = ledger.tracked_ids()
    removed = 0
    for flashcard_id in sorted(tracked - members):
        if ledger.delete(flashcard_id):
            removed += 1
    report = ReconcileReport(removed_records=removed, untracked_members=len(members - tracked))
    logger.info(
        "revise_reconciled",
        removed_records=report.removed_records,
        untracked_members=report.untracked_members,
    )
    return report
