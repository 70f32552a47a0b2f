import pytest

from utils.decks import attach, create_deck, find_deck_by_name, member_ids
from utils.errors import ValidationError
from utils.flashcards import create_flashcard, list_flashcards
from utils.tags import list_tags
from utils.transfer import export_decks, export_filename, export_flashcards, import_decks, import_flashcards


def test_export_flashcards_uses_names(conn):
    deck = create_deck(conn, "HSK1")
    card = create_flashcard(conn, "水", "shuǐ", "water", "HSK1, nature")
    attach(conn, card["id"], deck["id"])

    [entry] = export_flashcards(conn)

    assert entry["character"] == "水"
    assert entry["tags"] == ["HSK1", "nature"]
    assert entry["decks"] == ["HSK1"]
    assert entry["createdAt"] == card["created_at"]
    assert "id" not in entry


def test_import_flashcards_reports_skipped_entries(conn):
    create_deck(conn, "HSK1")
    results = import_flashcards(
        conn,
        [
            {"character": "火", "pinyin": "huǒ", "meaning": "fire", "tags": ["nature"], "decks": ["HSK1", "Missing"]},
            {"character": "山", "pinyin": "shān"},
            "not a card",
        ],
    )

    assert results["total"] == 3
    assert results["imported"] == 1
    assert results["skipped"] == 2
    assert len(results["errors"]) == 2
    [card] = list_flashcards(conn)
    assert card["tags"] == ["nature"]
    assert member_ids(conn, find_deck_by_name(conn, "HSK1")["id"]) == {card["id"]}
    assert find_deck_by_name(conn, "Missing") is None


def test_import_requires_a_list(conn):
    with pytest.raises(ValidationError):
        import_flashcards(conn, {"character": "火"})
    with pytest.raises(ValidationError):
        import_decks(conn, "decks")


def test_deck_export_then_import_merges_by_name(conn):
    deck = create_deck(conn, "Nature", "Things outside")
    card = create_flashcard(conn, "木", "mù", "tree", "nature")
    attach(conn, card["id"], deck["id"])
    document = export_decks(conn)
    assert document[0]["flashcards"][0]["character"] == "木"

    document[0]["flashcards"].append({"character": "石", "pinyin": "shí", "meaning": "stone"})
    document[0]["flashcards"].append({"character": "", "pinyin": "x", "meaning": "y"})
    document.append({"description": "no name"})
    results = import_decks(conn, document)

    assert results["imported"] == 1
    assert results["skipped"] == 1
    assert results["card_stats"] == {"total": 3, "imported": 1, "skipped": 1}
    merged = find_deck_by_name(conn, "Nature")
    assert merged["id"] == deck["id"]
    assert len(member_ids(conn, merged["id"])) == 2
    # The existing card was reused, not duplicated
    assert len(list_flashcards(conn)) == 2


def test_import_decks_creates_missing_decks(conn):
    results = import_decks(
        conn,
        [{"name": "Food", "flashcards": [{"character": "米", "pinyin": "mǐ", "meaning": "rice", "tags": "food"}]}],
    )
    assert results["imported"] == 1
    deck = find_deck_by_name(conn, "Food")
    [card] = list_flashcards(conn)
    assert card["tags"] == ["food"]
    assert member_ids(conn, deck["id"]) == {card["id"]}


def test_export_filename_names_kind():
    name = export_filename("decks")
    assert name.startswith("hanzifive-decks-")
    assert name.endswith(".json")


def test_import_ignores_malformed_tags_and_decks(conn):
    create_deck(conn, "HSK1")
    results = import_flashcards(
        conn,
        [
            {"character": "人", "pinyin": "rén", "meaning": "person", "tags": 5, "decks": {"name": "HSK1"}},
            {"character": "大", "pinyin": "dà", "meaning": "big", "tags": [None, 3, " HSK1 "], "decks": "HSK1"},
        ],
    )

    assert results["imported"] == 2
    assert results["skipped"] == 0
    cards = {card["character"]: card for card in list_flashcards(conn)}
    assert cards["人"]["tags"] == []
    assert cards["大"]["tags"] == ["HSK1"]
    assert member_ids(conn, find_deck_by_name(conn, "HSK1")["id"]) == {cards["大"]["id"]}
    assert [tag["name"] for tag in list_tags(conn)] == ["HSK1"]


def test_import_decks_ignores_malformed_card_tags(conn):
    results = import_decks(
        conn,
        [{"name": "Food", "flashcards": [{"character": "茶", "pinyin": "chá", "meaning": "tea", "tags": 7}]}],
    )
    assert results["card_stats"] == {"total": 1, "imported": 1, "skipped": 0}
    [card] = list_flashcards(conn)
    assert card["tags"] == []
