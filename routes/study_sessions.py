from typing import List

from fastapi import APIRouter, Depends, status

from db.database import get_db
from models.study_session import StudySession, StudySessionCreate
from utils.sessions import create_session, list_sessions

router = APIRouter()


@router.get("", response_model=List[StudySession])
async def list_all_study_sessions(conn = Depends(get_db)):
    return list_sessions(conn)


@router.post("", response_model=StudySession, status_code=status.HTTP_201_CREATED)
async def record_study_session(payload: StudySessionCreate, conn = Depends(get_db)):
    """Store the totals of a finished study run."""
    return create_session(conn, payload.deck_id, payload.correct, payload.incorrect, payload.study_mode)
