import uuid


EVENT = {
    "title": "Compleanno di Marco",
    "event_date": "2026-11-02T20:30:00+00:00",
    "guest_count": 8,
    "occasion": "compleanno",
    "confirmed_wines": [
        {"wine_name": "Vermentino", "producer": "Argiolas", "course": "antipasti", "quantity": 2},
        {"wine_name": "Barolo", "producer": "Conterno", "vintage": "2016", "course": "secondi", "quantity": 1},
    ],
}


def test_create_and_get_event(client):
    resp = client.post("/events/", json=EVENT)
    assert resp.status_code == 201, resp.text
    created = resp.json()

    assert created["status"] == "planning"
    assert [w["wine_name"] for w in created["confirmed_wines"]] == ["Vermentino", "Barolo"]
    assert created["confirmed_wines"][1]["display_name"] == "Conterno Barolo 2016"

    fetched = client.get(f"/events/{created['id']}").json()
    assert fetched == created


def test_list_events_by_status(client):
    client.post("/events/", json=EVENT)
    client.post("/events/", json={**EVENT, "title": "Cena confermata", "status": "confirmed"})

    confirmed = client.get("/events/", params={"status": "confirmed"}).json()

    assert [e["title"] for e in confirmed] == ["Cena confermata"]


def test_replace_confirmed_wines(client):
    created = client.post("/events/", json=EVENT).json()

    resp = client.patch(
        f"/events/{created['id']}",
        json={"status": "confirmed", "confirmed_wines": [{"wine_name": "Lambrusco", "quantity": 3}]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "confirmed"
    assert [(w["wine_name"], w["quantity"]) for w in body["confirmed_wines"]] == [("Lambrusco", 3)]


def test_wines_of_completed_event_are_frozen(client):
    created = client.post("/events/", json=EVENT).json()
    assert client.post(f"/events/{created['id']}/unload", json={}).status_code == 200

    resp = client.patch(f"/events/{created['id']}", json={"confirmed_wines": []})

    assert resp.status_code == 409


def test_reopening_with_new_wines_is_refused(client):
    created = client.post("/events/", json=EVENT).json()
    client.post(f"/events/{created['id']}/unload", json={})

    resp = client.patch(
        f"/events/{created['id']}",
        json={"status": "planning", "confirmed_wines": [{"wine_name": "Lambrusco", "quantity": 3}]},
    )

    assert resp.status_code == 409
    stored = client.get(f"/events/{created['id']}").json()
    assert stored["status"] == "completed"
    assert [w["wine_name"] for w in stored["confirmed_wines"]] == ["Vermentino", "Barolo"]


def test_completed_event_cannot_be_reopened(client):
    wine = client.post("/wines/", json={"name": "Barolo"}).json()
    bottle = client.post("/bottles/", json={"wine_id": wine["id"], "quantity": 5}).json()
    created = client.post("/events/", json={**EVENT, "confirmed_wines": [{"wine_name": "Barolo", "quantity": 2}]}).json()
    assert client.post(f"/events/{created['id']}/unload", json={}).status_code == 200

    assert client.patch(f"/events/{created['id']}", json={"status": "confirmed"}).status_code == 409
    assert client.post(f"/events/{created['id']}/unload", json={}).status_code == 409
    assert client.get(f"/bottles/{bottle['id']}").json()["quantity"] == 3


def test_completed_event_other_fields_can_change(client):
    created = client.post("/events/", json=EVENT).json()
    client.post(f"/events/{created['id']}/unload", json={})

    resp = client.patch(f"/events/{created['id']}", json={"notes": "Ottima serata", "status": "completed"})

    assert resp.status_code == 200
    assert resp.json()["notes"] == "Ottima serata"
    assert resp.json()["status"] == "completed"


def test_status_completed_only_through_unload(client):
    created = client.post("/events/", json=EVENT).json()

    resp = client.patch(f"/events/{created['id']}", json={"status": "completed"})

    assert resp.status_code == 409
    stored = client.get(f"/events/{created['id']}").json()
    assert stored["status"] == "planning"
    assert stored["completed_at"] is None


def test_delete_event(client):
    created = client.post("/events/", json=EVENT).json()

    assert client.delete(f"/events/{created['id']}").status_code == 204
    assert client.get(f"/events/{created['id']}").status_code == 404


def test_invalid_event(client):
    assert client.post("/events/", json={**EVENT, "guest_count": 0}).status_code == 422
    assert client.get(f"/events/{uuid.uuid4()}").status_code == 404
