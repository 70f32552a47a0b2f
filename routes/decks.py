from typing import List

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from db.database import get_db
from models.deck import Deck, DeckCardAdd, DeckCreate, DeckDetail, DeckSummary, DeckTagAdd, DeckUpdate
from models.flashcard import Flashcard
from models.study_session import StudySession
from utils.decks import (
    attach,
    attach_by_tag,
    create_deck,
    delete_deck,
    detach,
    get_deck_detail,
    list_decks,
    require_deck,
    update_deck,
)
from utils.flashcards import list_flashcards_in_deck
from utils.sessions import list_sessions
from utils.transfer import export_decks, export_filename, import_decks

router = APIRouter()


@router.get("/export")
async def export_all_decks(conn = Depends(get_db)):
    """Download every deck with its flashcards nested inside."""
    headers = {"Content-Disposition": f'attachment; filename="{export_filename("decks")}"'}
    return JSONResponse(export_decks(conn), headers=headers)


@router.post("/import")
async def import_deck_document(payload = Body(...), conn = Depends(get_db)):
    results = import_decks(conn, payload)
    return {
        "message": f"Import complete: {results['imported']} decks imported, {results['skipped']} decks skipped",
        "results": results,
    }


@router.get("", response_model=List[DeckSummary])
async def list_all_decks(conn = Depends(get_db)):
    return list_decks(conn)


@router.post("", response_model=Deck, status_code=status.HTTP_201_CREATED)
async def create_new_deck(payload: DeckCreate, conn = Depends(get_db)):
    return create_deck(conn, payload.name, payload.description)


@router.get("/{deck_id}", response_model=DeckDetail)
async def read_deck(deck_id: int, conn = Depends(get_db)):
    return get_deck_detail(conn, deck_id)


@router.put("/{deck_id}", response_model=Deck)
async def edit_deck(deck_id: int, payload: DeckUpdate, conn = Depends(get_db)):
    return update_deck(conn, deck_id, name=payload.name, description=payload.description)


@router.delete("/{deck_id}")
async def remove_deck(deck_id: int, conn = Depends(get_db)):
    delete_deck(conn, deck_id)
    return {"message": "Deck deleted successfully"}


@router.get("/{deck_id}/flashcards", response_model=List[Flashcard])
async def read_deck_flashcards(deck_id: int, conn = Depends(get_db)):
    require_deck(conn, deck_id)
    return list_flashcards_in_deck(conn, deck_id)


@router.post("/{deck_id}/cards")
async def add_card_to_deck(deck_id: int, payload: DeckCardAdd, conn = Depends(get_db)):
    attach(conn, payload.flashcard_id, deck_id)
    return {"message": "Flashcard added to deck successfully", "deck": get_deck_detail(conn, deck_id)}


@router.post("/{deck_id}/cards/by-tag")
async def add_cards_by_tag(deck_id: int, payload: DeckTagAdd, conn = Depends(get_db)):
    added = attach_by_tag(conn, deck_id, payload.tag)
    return {
        "message": f"Added {added} flashcards to deck",
        "added": added,
        "deck": get_deck_detail(conn, deck_id),
    }


@router.delete("/{deck_id}/cards/{flashcard_id}")
async def remove_card_from_deck(deck_id: int, flashcard_id: int, conn = Depends(get_db)):
    detach(conn, flashcard_id, deck_id)
    return {"message": "Flashcard removed from deck successfully", "deck": get_deck_detail(conn, deck_id)}


@router.get("/{deck_id}/study-sessions", response_model=List[StudySession])
async def read_deck_study_sessions(deck_id: int, conn = Depends(get_db)):
    return list_sessions(conn, deck_id)
