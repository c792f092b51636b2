import random
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from conftest import NOW, TODAY
from taskdeck.application.collection_service import CollectionService
from taskdeck.application.review_service import ReviewService
from taskdeck.consts import VERSION
from taskdeck.domain.errors import CollectionError
from taskdeck.domain.models import QueueStatus
from taskdeck.infrastructure.adapters.direct_store import DirectCardStore
from taskdeck.server import app, collection_service, review_service


@pytest.fixture
def client(builder):
    store = DirectCardStore(builder.path)
    app.dependency_overrides[review_service] = lambda: ReviewService(
        store, blocking_deck_id=builder.urgent, clock=lambda: NOW, rng=random.Random(3)
    )
    app.dependency_overrides[collection_service] = lambda: CollectionService(store)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


# --- Review ---


def test_review_queue_blocking(builder, client):
    urgent = builder.add_card(builder.urgent, "Pay rent")
    builder.add_card(builder.work, "Report")

    data = client.get("/review").json()

    assert [c["id"] for c in data["cards"]] == [urgent]
    assert data["cards"][0]["fields"] == ["Pay rent", "Back"]
    assert data["urgent_count"] == 1
    assert data["is_blocking"] is True
    assert data["urgent_deck_id"] == builder.urgent


def test_review_queue_all(builder, client):
    builder.add_card(builder.urgent)
    builder.add_card(builder.work)

    data = client.get("/review", params={"all": "true"}).json()

    assert len(data["cards"]) == 2
    assert data["is_blocking"] is True


def test_review_queue_by_deck(builder, client):
    builder.add_card(builder.urgent)
    work = builder.add_card(builder.work)

    data = client.get("/review", params={"deck_id": builder.work}).json()

    assert [c["id"] for c in data["cards"]] == [work]
    assert data["is_blocking"] is False
    assert data["urgent_count"] == 1


def test_review_decks(builder, client):
    builder.add_card(builder.home)
    builder.add_card(builder.urgent)

    data = client.get("/review/decks").json()

    assert [d["id"] for d in data["decks"]] == [builder.urgent, builder.home]
    assert data["decks"][0]["is_blocking"] is True
    assert data["decks"][0]["due_count"] == 1


def test_post_review(builder, client):
    urgent = builder.add_card(builder.urgent)
    builder.add_card(builder.work)

    response = client.post("/review", json={"card_id": urgent, "action": "soon"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "remaining_cards": 1,
        "urgent_count": 0,
        "is_blocking": False,
    }
    assert builder.row(urgent)["due"] == TODAY + 1


def test_post_review_invalid_action(builder, client):
    card_id = builder.add_card(builder.work)

    response = client.post("/review", json={"card_id": card_id, "action": "Later"})

    assert response.status_code == 400
    assert "Invalid review action" in response.json()["detail"]
    assert builder.row(card_id)["reps"] == 0


def test_post_review_unknown_card(client):
    response = client.post("/review", json={"card_id": 999, "action": "later"})
    assert response.status_code == 404


def test_post_review_missing_fields(client):
    response = client.post("/review", json={"action": "later"})
    assert response.status_code == 422


def test_review_queue_store_failure():
    service = MagicMock()
    service.get_queue.side_effect = CollectionError("Collection not found: /x")
    app.dependency_overrides[review_service] = lambda: service
    try:
        response = TestClient(app).get("/review")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "Collection not found" in response.json()["detail"]


# --- Collection CRUD ---


def test_list_decks(client):
    names = [d["name"] for d in client.get("/decks").json()]
    assert "Work tasks" in names


def test_card_lifecycle(builder, client):
    created = client.post(
        "/cards", json={"deck_id": builder.work, "front": "Plan trip", "back": "Hotel"}
    ).json()
    card_id = created["card_id"]

    cards = client.get("/cards", params={"deck_id": builder.work}).json()
    assert [c["id"] for c in cards] == [card_id]

    assert client.patch(f"/cards/{card_id}", json={"deck_id": builder.home}).status_code == 200
    assert [c["id"] for c in client.get("/cards", params={"q": "trip"}).json()] == [card_id]
    assert client.get("/cards", params={"deck_id": builder.work}).json() == []

    assert client.delete(f"/cards/{card_id}").status_code == 200
    assert client.delete(f"/cards/{card_id}").status_code == 404


def test_create_card_unknown_deck(client):
    response = client.post("/cards", json={"deck_id": 1234, "front": "x"})
    assert response.status_code == 400


def test_suspended_cards_listed_but_not_queued(builder, client):
    card_id = builder.add_card(builder.work, queue=QueueStatus.SUSPENDED)

    assert [c["id"] for c in client.get("/cards").json()] == [card_id]
    assert client.get("/review").json()["cards"] == []


def test_notes(builder, client):
    note_id = builder.row(builder.add_card(builder.work, "Old"))["nid"]

    assert client.get(f"/notes/{note_id}").json()["fields"] == ["Old", "Back"]

    response = client.put(f"/notes/{note_id}", json={"fields": ["New", "Back"], "tags": "x"})
    assert response.status_code == 200
    assert client.get(f"/notes/{note_id}").json()["fields"] == ["New", "Back"]

    assert client.get("/notes/999").status_code == 404
    assert client.put("/notes/999", json={"fields": ["a"]}).status_code == 404


@patch("taskdeck.server.threading.Thread")
def test_shutdown(mock_thread, client):
    response = client.post("/shutdown")
    assert response.status_code == 200
    mock_thread.return_value.start.assert_called_once()
