from typing import List

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from db.database import get_db
from models.flashcard import Flashcard, FlashcardCreate, FlashcardUpdate
from utils.flashcards import create_flashcard, delete_flashcard, get_flashcard, list_flashcards, update_flashcard
from utils.streaks import get_ledger
from utils.transfer import export_filename, export_flashcards, import_flashcards

router = APIRouter()


@router.get("/export")
async def export_all_flashcards(conn = Depends(get_db)):
    """Download every flashcard with its tag and deck names."""
    headers = {"Content-Disposition": f'attachment; filename="{export_filename("flashcards")}"'}
    return JSONResponse(export_flashcards(conn), headers=headers)


@router.post("/import")
async def import_flashcard_document(payload = Body(...), conn = Depends(get_db)):
    results = import_flashcards(conn, payload)
    return {
        "message": f"Import complete: {results['imported']} imported, {results['skipped']} skipped",
        "results": results,
    }


@router.get("", response_model=List[Flashcard])
async def list_all_flashcards(conn = Depends(get_db)):
    return list_flashcards(conn)


@router.post("", response_model=Flashcard, status_code=status.HTTP_201_CREATED)
async def create_new_flashcard(payload: FlashcardCreate, conn = Depends(get_db)):
    return create_flashcard(conn, payload.character, payload.pinyin, payload.meaning, payload.tags)


@router.get("/{flashcard_id}", response_model=Flashcard)
async def read_flashcard(flashcard_id: int, conn = Depends(get_db)):
    return get_flashcard(conn, flashcard_id)


@router.put("/{flashcard_id}", response_model=Flashcard)
async def edit_flashcard(flashcard_id: int, payload: FlashcardUpdate, conn = Depends(get_db)):
    return update_flashcard(
        conn,
        flashcard_id,
        character=payload.character,
        pinyin=payload.pinyin,
        meaning=payload.meaning,
        tags=payload.tags,
    )


@router.delete("/{flashcard_id}")
async def remove_flashcard(flashcard_id: int, conn = Depends(get_db), ledger = Depends(get_ledger)):
    delete_flashcard(conn, ledger, flashcard_id)
    return {"message": "Flashcard deleted successfully"}
