# Routes package __init__.py - re-exports routers for main.py convenience
from .flashcards import router as flashcards_router
from .decks import router as decks_router
from .tags import router as tags_router
from .study_sessions import router as study_sessions_router
from .revise import router as revise_router

__all__ = ['flashcards_router', 'decks_router', 'tags_router', 'study_sessions_router', 'revise_router']
