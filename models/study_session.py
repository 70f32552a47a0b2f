from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class StudyMode(str, Enum):
    NORMAL = "normal"
    REVERSE = "reverse"
    MEANING_ONLY = "meaningOnly"


class StudySessionCreate(BaseModel):
    deck_id: int
    correct: int = Field(default=0, ge=0)
    incorrect: int = Field(default=0, ge=0)
    study_mode: StudyMode = StudyMode.NORMAL


class StudySession(BaseModel):
    id: int
    deck_id: int
    started_at: str
    ended_at: Optional[str] = None
    correct: int
    incorrect: int
    study_mode: StudyMode

    class Config:
        from_attributes = True
