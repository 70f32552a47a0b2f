from pydantic import BaseModel, Field
from typing import List, Optional, Union


class FlashcardBase(BaseModel):
    character: str
    pinyin: str
    meaning: str


class FlashcardCreate(FlashcardBase):
    # Comma-separated string from the form, or a list from JSON clients
    tags: Union[str, List[str], None] = None


class FlashcardUpdate(BaseModel):
    character: Optional[str] = None
    pinyin: Optional[str] = None
    meaning: Optional[str] = None
    tags: Union[str, List[str], None] = None


class Flashcard(FlashcardBase):
    id: int
    created_at: str
    updated_at: str
    tags: List[str] = Field(default_factory=list)

    class Config:
        from_attributes = True
