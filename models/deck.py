from pydantic import BaseModel, Field
from typing import List, Optional

from .flashcard import Flashcard


class DeckBase(BaseModel):
    name: str
    description: Optional[str] = None


class DeckCreate(DeckBase):
    pass


class DeckUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class Deck(DeckBase):
    id: int
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class DeckSummary(Deck):
    card_count: int = 0


class DeckDetail(Deck):
    flashcards: List[Flashcard] = Field(default_factory=list)


class DeckCardAdd(BaseModel):
    flashcard_id: int


class DeckTagAdd(BaseModel):
    tag: str
