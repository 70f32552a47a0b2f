from pydantic import BaseModel


class JudgmentCreate(BaseModel):
    flashcard_id: int
    deck_id: int
    correct: bool


class ReviseCardAdd(BaseModel):
    flashcard_id: int


class StreakUpdate(BaseModel):
    flashcard_id: int
    correct: bool


class StreakRecord(BaseModel):
    flashcard_id: int
    streak: int
    updated_at: str


class JudgmentOutcome(BaseModel):
    streak: int
    promoted: bool = False
    removed: bool = False
    added: bool = False


class ReconcileReport(BaseModel):
    removed_records: int
    untracked_members: int
