from typing import List

from fastapi import APIRouter, Depends

from db.database import get_db
from models.revise import (
    JudgmentCreate,
    JudgmentOutcome,
    ReconcileReport,
    ReviseCardAdd,
    StreakRecord,
    StreakUpdate,
)
from utils.revise import add_to_revise_deck, reconcile, record_judgment, update_revise_streak
from utils.streaks import get_ledger

router = APIRouter()


@router.post("/judgments", response_model=JudgmentOutcome)
async def judge_flashcard(payload: JudgmentCreate, conn = Depends(get_db), ledger = Depends(get_ledger)):
    """Record one correct/incorrect answer given while studying a deck."""
    return record_judgment(conn, ledger, payload.flashcard_id, payload.deck_id, payload.correct)


@router.post("/add-card")
async def add_card_to_revise_deck(payload: ReviseCardAdd, conn = Depends(get_db), ledger = Depends(get_ledger)):
    deck, added = add_to_revise_deck(conn, ledger, payload.flashcard_id)
    message = (
        "Flashcard added to revise deck successfully"
        if added
        else "Flashcard is already in the revise deck"
    )
    return {"message": message, "added": added, "deck": deck}


@router.post("/update-streak")
async def update_streak(payload: StreakUpdate, conn = Depends(get_db), ledger = Depends(get_ledger)):
    outcome = update_revise_streak(conn, ledger, payload.flashcard_id, payload.correct)
    message = (
        "Card removed from revise deck after reaching the streak threshold"
        if outcome.removed
        else "Streak updated successfully"
    )
    return {"message": message, **outcome.model_dump()}


@router.get("/streaks", response_model=List[StreakRecord])
async def list_streaks(ledger = Depends(get_ledger)):
    return ledger.all()


@router.post("/reconcile", response_model=ReconcileReport)
async def reconcile_streaks(conn = Depends(get_db), ledger = Depends(get_ledger)):
    return reconcile(conn, ledger)
