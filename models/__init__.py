from .flashcard import Flashcard, FlashcardCreate, FlashcardUpdate
from .deck import Deck, DeckCreate, DeckUpdate, DeckSummary, DeckDetail, DeckCardAdd, DeckTagAdd
from .tag import Tag
from .study_session import StudySession, StudySessionCreate, StudyMode
from .revise import JudgmentCreate, JudgmentOutcome, ReviseCardAdd, StreakUpdate, StreakRecord, ReconcileReport

__all__ = [
    'Flashcard', 'FlashcardCreate', 'FlashcardUpdate',
    'Deck', 'DeckCreate', 'DeckUpdate', 'DeckSummary', 'DeckDetail', 'DeckCardAdd', 'DeckTagAdd',
    'Tag',
    'StudySession', 'StudySessionCreate', 'StudyMode',
    'JudgmentCreate', 'JudgmentOutcome', 'ReviseCardAdd', 'StreakUpdate', 'StreakRecord', 'ReconcileReport',
]
