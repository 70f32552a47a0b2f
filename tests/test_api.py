def _create_card(client, character="学", pinyin="xué", meaning="to study", tags="HSK1"):
    resp = client.post(
        "/flashcards",
        json={"character": character, "pinyin": pinyin, "meaning": meaning, "tags": tags},
    )
    assert resp.status_code == 201
    return resp.json()


def _create_deck(client, name):
    resp = client.post("/decks", json={"name": name})
    assert resp.status_code == 201
    return resp.json()


def _judge(client, flashcard_id, deck_id, correct):
    resp = client.post(
        "/revise/judgments",
        json={"flashcard_id": flashcard_id, "deck_id": deck_id, "correct": correct},
    )
    assert resp.status_code == 200
    return resp.json()


def test_home(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_flashcard_crud(client):
    card = _create_card(client, tags="HSK1, verbs")
    assert card["tags"] == ["HSK1", "verbs"]

    resp = client.put(f"/flashcards/{card['id']}", json={"meaning": "to learn"})
    assert resp.status_code == 200
    assert resp.json()["meaning"] == "to learn"
    assert resp.json()["tags"] == ["HSK1", "verbs"]

    assert [c["id"] for c in client.get("/flashcards").json()] == [card["id"]]
    assert [t["name"] for t in client.get("/tags").json()] == ["HSK1", "verbs"]

    resp = client.delete(f"/flashcards/{card['id']}")
    assert resp.status_code == 200
    resp = client.get(f"/flashcards/{card['id']}")
    assert resp.status_code == 404
    assert resp.json() == {"message": "Flashcard not found"}


def test_create_flashcard_requires_fields(client):
    resp = client.post("/flashcards", json={"character": "", "pinyin": "x", "meaning": "y"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Character, pinyin, and meaning are required"


def test_deck_membership_errors_map_to_status_codes(client):
    card = _create_card(client)
    deck = _create_deck(client, "HSK1")

    resp = client.post(f"/decks/{deck['id']}/cards", json={"flashcard_id": card["id"]})
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()["deck"]["flashcards"]] == [card["id"]]

    resp = client.post(f"/decks/{deck['id']}/cards", json={"flashcard_id": card["id"]})
    assert resp.status_code == 409

    resp = client.post(f"/decks/{deck['id']}/cards", json={"flashcard_id": 999})
    assert resp.status_code == 404

    resp = client.delete(f"/decks/{deck['id']}/cards/{card['id']}")
    assert resp.status_code == 200
    resp = client.delete(f"/decks/{deck['id']}/cards/{card['id']}")
    assert resp.status_code == 409

    resp = client.post("/decks", json={"name": "HSK1"})
    assert resp.status_code == 409
    assert resp.json()["message"] == "Deck with this name already exists"

    resp = client.get("/decks/999")
    assert resp.status_code == 404


def test_add_cards_by_tag_endpoint(client):
    deck = _create_deck(client, "HSK1")
    _create_card(client, "一", "yī", "one", "HSK1")
    _create_card(client, "二", "èr", "two", "HSK1")

    resp = client.post(f"/decks/{deck['id']}/cards/by-tag", json={"tag": "HSK1"})
    assert resp.status_code == 200
    assert resp.json()["added"] == 2

    resp = client.post(f"/decks/{deck['id']}/cards/by-tag", json={"tag": "HSK1"})
    assert resp.json()["added"] == 0

    resp = client.post(f"/decks/{deck['id']}/cards/by-tag", json={"tag": "hsk1"})
    assert resp.status_code == 404
    assert resp.json()["message"] == "No flashcards found with the given tag"

    summary = client.get("/decks").json()
    assert summary[0]["card_count"] == 2


def test_study_session_endpoints(client):
    deck = _create_deck(client, "HSK1")
    resp = client.post(
        "/study-sessions",
        json={"deck_id": deck["id"], "correct": 5, "incorrect": 1, "study_mode": "meaningOnly"},
    )
    assert resp.status_code == 201
    assert resp.json()["study_mode"] == "meaningOnly"

    resp = client.post("/study-sessions", json={"deck_id": deck["id"], "correct": -1})
    assert resp.status_code == 422

    resp = client.post("/study-sessions", json={"deck_id": 999})
    assert resp.status_code == 404

    sessions = client.get(f"/decks/{deck['id']}/study-sessions").json()
    assert [(s["correct"], s["incorrect"]) for s in sessions] == [(5, 1)]
    assert len(client.get("/study-sessions").json()) == 1


def test_revise_round_trip(client, monkeypatch):
    pool = _create_deck(client, "All words")
    card = _create_card(client)
    client.post(f"/decks/{pool['id']}/cards", json={"flashcard_id": card["id"]})
    monkeypatch.setenv("HANZIFIVE_POOL_DECK_ID", str(pool["id"]))

    outcome = _judge(client, card["id"], pool["id"], False)
    assert outcome == {"streak": 0, "promoted": False, "removed": False, "added": True}

    revise = next(d for d in client.get("/decks").json() if d["name"] == "revise")
    assert revise["card_count"] == 1

    assert _judge(client, card["id"], revise["id"], True)["streak"] == 1
    assert _judge(client, card["id"], revise["id"], False)["streak"] == 0
    assert client.get("/revise/streaks").json()[0]["streak"] == 0

    streaks = [_judge(client, card["id"], revise["id"], True) for _ in range(3)]
    assert [s["streak"] for s in streaks] == [1, 2, 3]
    assert streaks[-1]["promoted"] and streaks[-1]["removed"]

    detail = client.get(f"/decks/{revise['id']}").json()
    assert detail["flashcards"] == []
    assert client.get("/revise/streaks").json() == []
    assert client.post("/revise/reconcile").json() == {"removed_records": 0, "untracked_members": 0}


def test_revise_add_card_and_update_streak(client):
    card = _create_card(client)

    resp = client.post("/revise/add-card", json={"flashcard_id": card["id"]})
    assert resp.status_code == 200
    assert resp.json()["added"] is True
    resp = client.post("/revise/add-card", json={"flashcard_id": card["id"]})
    assert resp.json()["added"] is False
    assert resp.json()["message"] == "Flashcard is already in the revise deck"

    for expected in (1, 2):
        resp = client.post("/revise/update-streak", json={"flashcard_id": card["id"], "correct": True})
        assert resp.json()["streak"] == expected
    resp = client.post("/revise/update-streak", json={"flashcard_id": card["id"], "correct": True})
    body = resp.json()
    assert body["removed"] is True
    assert body["message"] == "Card removed from revise deck after reaching the streak threshold"

    resp = client.post("/revise/add-card", json={"flashcard_id": 999})
    assert resp.status_code == 404


def test_judgment_for_unknown_deck_is_404(client):
    card = _create_card(client)
    resp = client.post("/revise/judgments", json={"flashcard_id": card["id"], "deck_id": 999, "correct": False})
    assert resp.status_code == 404
    assert resp.json() == {"message": "Deck not found"}


def test_deleting_flashcard_clears_revise_state(client):
    card = _create_card(client)
    client.post("/revise/add-card", json={"flashcard_id": card["id"]})
    client.post("/revise/update-streak", json={"flashcard_id": card["id"], "correct": True})
    assert len(client.get("/revise/streaks").json()) == 1

    client.delete(f"/flashcards/{card['id']}")

    assert client.get("/revise/streaks").json() == []
    revise = next(d for d in client.get("/decks").json() if d["name"] == "revise")
    assert revise["card_count"] == 0


def test_export_and_import_endpoints(client):
    deck = _create_deck(client, "HSK1")
    card = _create_card(client)
    client.post(f"/decks/{deck['id']}/cards", json={"flashcard_id": card["id"]})

    resp = client.get("/flashcards/export")
    assert resp.status_code == 200
    assert "attachment" in resp.headers["content-disposition"]
    assert resp.json()[0]["decks"] == ["HSK1"]

    resp = client.post("/flashcards/import", json=[{"character": "好", "pinyin": "hǎo", "meaning": "good"}])
    assert resp.json()["results"]["imported"] == 1

    resp = client.post("/flashcards/import", json={"not": "a list"})
    assert resp.status_code == 400

    document = client.get("/decks/export").json()
    resp = client.post("/decks/import", json=document)
    assert resp.json()["results"]["card_stats"] == {"total": 1, "imported": 0, "skipped": 0}


def test_update_streak_rejects_cards_outside_revise_deck(client):
    card = _create_card(client)

    resp = client.post("/revise/update-streak", json={"flashcard_id": card["id"], "correct": True})
    assert resp.status_code == 404
    assert resp.json() == {"message": "Revise deck not found"}

    other = _create_card(client, "书", "shū", "book", "")
    client.post("/revise/add-card", json={"flashcard_id": other["id"]})
    resp = client.post("/revise/update-streak", json={"flashcard_id": card["id"], "correct": True})
    assert resp.status_code == 400
    assert resp.json() == {"message": "Card is not in the revise deck"}
    assert client.get("/revise/streaks").json() == []


def test_import_with_malformed_tags_does_not_fail(client):
    resp = client.post(
        "/flashcards/import",
        json=[{"character": "人", "pinyin": "rén", "meaning": "person", "tags": 5, "decks": "Missing"}],
    )
    assert resp.status_code == 200
    assert resp.json()["results"]["imported"] == 1
