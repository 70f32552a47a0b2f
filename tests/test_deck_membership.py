import pytest

from utils.decks import attach, attach_by_tag, create_deck, delete_deck, detach, get_deck_detail, is_member, list_decks
from utils.errors import AlreadyMemberError, ConflictError, NotFoundError, NotMemberError, ValidationError
from utils.flashcards import create_flashcard


def test_attach_makes_edge_visible(conn):
    deck = create_deck(conn, "HSK 1", "first level")
    card = create_flashcard(conn, "你", "nǐ", "you")
    attach(conn, card["id"], deck["id"])
    assert is_member(conn, deck["id"], card["id"])
    assert [c["id"] for c in get_deck_detail(conn, deck["id"])["flashcards"]] == [card["id"]]
    assert list_decks(conn)[0]["card_count"] == 1


def test_attach_rejects_missing_entities_and_duplicates(conn):
    deck = create_deck(conn, "HSK 1")
    card = create_flashcard(conn, "好", "hǎo", "good")
    with pytest.raises(NotFoundError):
        attach(conn, card["id"], deck["id"] + 100)
    with pytest.raises(NotFoundError):
        attach(conn, card["id"] + 100, deck["id"])
    attach(conn, card["id"], deck["id"])
    with pytest.raises(AlreadyMemberError):
        attach(conn, card["id"], deck["id"])


def test_detach_requires_membership(conn):
    deck = create_deck(conn, "HSK 1")
    card = create_flashcard(conn, "我", "wǒ", "I")
    with pytest.raises(NotMemberError):
        detach(conn, card["id"], deck["id"])
    attach(conn, card["id"], deck["id"])
    detach(conn, card["id"], deck["id"])
    assert not is_member(conn, deck["id"], card["id"])


def test_attach_by_tag_is_idempotent(conn):
    deck = create_deck(conn, "Food")
    rice = create_flashcard(conn, "米", "mǐ", "rice", "food")
    create_flashcard(conn, "茶", "chá", "tea", "food, drinks")
    create_flashcard(conn, "书", "shū", "book", "objects")
    attach(conn, rice["id"], deck["id"])

    assert attach_by_tag(conn, deck["id"], "food") == 1
    assert attach_by_tag(conn, deck["id"], "food") == 0
    assert len(get_deck_detail(conn, deck["id"])["flashcards"]) == 2


def test_attach_by_tag_errors(conn):
    deck = create_deck(conn, "Food")
    with pytest.raises(NotFoundError):
        attach_by_tag(conn, deck["id"], "nothing-tagged")
    with pytest.raises(ValidationError):
        attach_by_tag(conn, deck["id"], " ")


def test_deck_names_are_unique(conn):
    create_deck(conn, "HSK 1")
    with pytest.raises(ConflictError):
        create_deck(conn, "HSK 1")
    with pytest.raises(ValidationError):
        create_deck(conn, "")


def test_delete_deck_removes_edges(conn):
    deck = create_deck(conn, "Temp")
    card = create_flashcard(conn, "人", "rén", "person")
    attach(conn, card["id"], deck["id"])
    delete_deck(conn, deck["id"])
    assert conn.execute("SELECT COUNT(*) FROM deck_flashcards").fetchone()[0] == 0
