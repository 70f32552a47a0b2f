"""Error taxonomy shared by the storage helpers and the HTTP layer."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

logger = structlog.get_logger(__name__)


class HanziFiveError(Exception):
    """Base exception for all HanziFive errors."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(HanziFiveError):
    """Referenced flashcard, deck, tag or session is absent."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=404)


class FlashcardNotFoundError(NotFoundError):
    def __init__(self, flashcard_id: int) -> None:
        self.flashcard_id = flashcard_id
        super().__init__("Flashcard not found")


class DeckNotFoundError(NotFoundError):
    def __init__(self, deck_id: Optional[int] = None, *, message: Optional[str] = None) -> None:
        self.deck_id = deck_id
        super().__init__(message or "Deck not found")


class ConflictError(HanziFiveError):
    """Duplicate edge or duplicate unique name."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=409)


class AlreadyMemberError(ConflictError):
    def __init__(self, flashcard_id: int, deck_id: int) -> None:
        self.flashcard_id = flashcard_id
        self.deck_id = deck_id
        super().__init__("Flashcard is already in the deck")


class NotMemberError(ConflictError):
    def __init__(self, flashcard_id: int, deck_id: int) -> None:
        self.flashcard_id = flashcard_id
        self.deck_id = deck_id
        super().__init__("Flashcard is not in the deck")


class ValidationError(HanziFiveError):
    """Missing or malformed required field."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class StorageError(HanziFiveError):
    """Underlying SQLite failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500)


@contextmanager
def storage_guard(action: str) -> Iterator[None]:
    """Re-raise sqlite3 failures as StorageError, naming the failed action."""
    try:
        yield
    except sqlite3.Error as exc:
        logger.error("storage_failure", action=action, error=str(exc))
        raise StorageError(f"Failed to {action}") from exc
