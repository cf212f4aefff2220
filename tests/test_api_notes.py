from core.config import settings


def _send(client, message, sender="harini", parent_id=None):
    response = client.post("/notes/", json={"sender": sender, "message": message, "parent_id": parent_id})
    assert response.status_code == 201, response.text
    return response.json()


def test_send_and_reply_builds_tree(client):
    root = _send(client, "Good night ❤")
    reply = _send(client, "Sweet dreams", sender="deva", parent_id=root["id"])
    _send(client, "See you tomorrow", parent_id=reply["id"])
    _send(client, "Another topic", sender="deva")

    body = client.get("/notes/").json()

    assert [r["message"] for r in body["roots"]] == ["Good night ❤", "Another topic"]
    first = body["roots"][0]
    assert first["replies"][0]["message"] == "Sweet dreams"
    assert first["replies"][0]["replies"][0]["message"] == "See you tomorrow"
    assert body["orphans"] == []


def test_message_is_stored_trimmed(client):
    note = _send(client, "   hello   ")
    assert note["message"] == "hello"


def test_invalid_notes_are_rejected_before_saving(client):
    too_long = client.post("/notes/", json={"sender": "harini", "message": "x" * 501})
    assert too_long.status_code == 422
    assert too_long.json()["detail"] == "message is too long"

    blank = client.post("/notes/", json={"sender": "deva", "message": "   "})
    assert blank.json()["detail"] == "message cannot be empty"

    stranger = client.post("/notes/", json={"sender": "stranger", "message": "hi"})
    assert stranger.json()["detail"] == "sender must be selected"

    assert client.get("/notes/").json()["roots"] == []


def test_reply_to_missing_note_is_rejected(client):
    response = client.post("/notes/", json={"sender": "deva", "message": "hi", "parent_id": 12345})
    assert response.status_code == 404


def test_edit_message(client):
    note = _send(client, "helo")

    response = client.patch(f"/notes/{note['id']}", json={"message": " hello "})
    assert response.status_code == 200
    assert response.json()["message"] == "hello"

    assert client.patch(f"/notes/{note['id']}", json={"message": ""}).status_code == 422
    assert client.patch("/notes/1", json={"message": "hi"}).status_code == 404


def test_delete_removes_replies_as_well(client):
    root = _send(client, "root")
    reply = _send(client, "reply", parent_id=root["id"])
    _send(client, "nested", parent_id=reply["id"])
    keep = _send(client, "unrelated")

    assert client.delete(f"/notes/{root['id']}").status_code == 204

    body = client.get("/notes/").json()
    assert [r["id"] for r in body["roots"]] == [keep["id"]]
    assert body["orphans"] == []

    assert client.delete(f"/notes/{root['id']}").status_code == 404


def test_thread_is_flat_with_depth(client):
    root = _send(client, "root")
    _send(client, "reply", parent_id=root["id"])

    entries = client.get("/notes/thread").json()
    assert [(e["depth"], e["note"]["message"]) for e in entries] == [(0, "root"), (1, "reply")]
    assert entries[0]["reply_count"] == 1


def test_reply_chain_stops_at_max_depth(client):
    parent = _send(client, "level 0")
    for level in range(1, settings.NOTE_MAX_DEPTH + 1):
        parent = _send(client, f"level {level}", parent_id=parent["id"])

    response = client.get("/notes/")
    assert response.status_code == 200
    thread = client.get("/notes/thread").json()
    assert thread[-1]["depth"] == settings.NOTE_MAX_DEPTH

    too_deep = client.post("/notes/", json={"sender": "deva", "message": "one more", "parent_id": parent["id"]})
    assert too_deep.status_code == 422
    assert too_deep.json()["detail"] == "reply chain is too deep"


def test_notes_fail_with_502_when_database_is_unavailable(broken_client):
    sent = broken_client.post("/notes/", json={"sender": "harini", "message": "hello"})
    assert sent.status_code == 502
    assert sent.json()["detail"] == "Failed to send message"

    listed = broken_client.get("/notes/")
    assert listed.status_code == 502
    assert listed.json()["detail"] == "Could not load messages"
