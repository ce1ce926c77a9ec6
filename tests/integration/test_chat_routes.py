"""
Integration tests for chat, history, vote, document and suggestion routes.

Covers:
    - chat creation on first message, title derivation, stream id issuance
    - history pagination through the API
    - ownership and visibility checks (forbidden / not found)
    - trailing message deletion and vote cleanup
    - daily message entitlement for guests and regular users
    - posted messages always stored as user messages stamped by the server
    - document versioning and suggestions
    - storage failures rendered as generic database errors
"""

from fastapi.testclient import TestClient

from chat_platform.entitlements import MAX_MESSAGES_PER_DAY


def _post_message(client, chat_id, text="Hello there", message_id=None, visibility="private", **extra):
    message = {"role": "user", "parts": [{"type": "text", "text": text}], **extra}
    if message_id:
        message["id"] = message_id
    return client.post(
        "/api/chat",
        json={"id": chat_id, "message": message, "selected_visibility": visibility},
    )


def _second_user(app, register) -> TestClient:
    other = TestClient(app)
    register(other, "other@example.com")
    return other


def test_first_message_creates_chat(guest_client):
    resp = _post_message(guest_client, "chat-1", text="Plan a trip to Lisbon")
    assert resp.status_code == 200
    data = resp.json()
    assert data["chat"]["id"] == "chat-1"
    assert data["chat"]["title"] == "Plan a trip to Lisbon"
    assert data["chat"]["visibility"] == "private"
    assert data["message"]["chat_id"] == "chat-1"

    streams = guest_client.get("/api/chat/chat-1/stream").json()
    assert streams == [data["stream_id"]]

    messages = guest_client.get("/api/chat/chat-1/messages").json()
    assert [m["parts"][0]["text"] for m in messages] == ["Plan a trip to Lisbon"]


def test_follow_up_message_reuses_chat(guest_client):
    _post_message(guest_client, "chat-1", text="first")
    resp = _post_message(guest_client, "chat-1", text="second")
    assert resp.json()["chat"]["title"] == "first"
    assert len(guest_client.get("/api/chat/chat-1/messages").json()) == 2


def test_history_pagination(guest_client):
    for i in range(3):
        _post_message(guest_client, f"chat-{i}")

    page = guest_client.get("/api/history", params={"limit": 2}).json()
    assert page["has_more"] is True
    assert len(page["chats"]) == 2

    last = page["chats"][-1]["id"]
    rest = guest_client.get("/api/history", params={"limit": 2, "starting_after": last}).json()
    seen = {c["id"] for c in page["chats"]} | {c["id"] for c in rest["chats"]}
    assert seen == {"chat-0", "chat-1", "chat-2"}
    assert rest["has_more"] is False


def test_history_rejects_both_cursors(guest_client):
    resp = guest_client.get("/api/history", params={"starting_after": "a", "ending_before": "b"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "bad_request:api"


def test_other_user_cannot_touch_private_chat(app, guest_client, register):
    _post_message(guest_client, "chat-1")
    other = _second_user(app, register)

    assert other.get("/api/chat/chat-1").status_code == 403
    assert other.get("/api/chat/chat-1/messages").status_code == 403
    assert other.delete("/api/chat/chat-1").status_code == 403
    resp = _post_message(other, "chat-1")
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden:chat"


def test_public_chat_readable_by_others(app, guest_client, register):
    _post_message(guest_client, "chat-1")
    resp = guest_client.patch("/api/chat/chat-1/visibility", json={"visibility": "public"})
    assert resp.status_code == 200
    assert resp.json()["visibility"] == "public"

    other = _second_user(app, register)
    assert other.get("/api/chat/chat-1").status_code == 200
    assert len(other.get("/api/chat/chat-1/messages").json()) == 1
    # Still not theirs to change
    assert other.patch("/api/chat/chat-1/visibility", json={"visibility": "private"}).status_code == 403


def test_missing_chat_is_not_found(guest_client):
    resp = guest_client.get("/api/chat/nope")
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found:chat"


def test_delete_chat(guest_client):
    _post_message(guest_client, "chat-1")
    resp = guest_client.delete("/api/chat/chat-1")
    assert resp.status_code == 200
    assert resp.json()["id"] == "chat-1"
    assert guest_client.get("/api/chat/chat-1").status_code == 404
    assert guest_client.get("/api/history").json()["chats"] == []


def test_votes(guest_client):
    _post_message(guest_client, "chat-1", message_id="m1")
    resp = guest_client.patch("/api/vote", json={"chat_id": "chat-1", "message_id": "m1", "type": "up"})
    assert resp.status_code == 200

    guest_client.patch("/api/vote", json={"chat_id": "chat-1", "message_id": "m1", "type": "down"})
    votes = guest_client.get("/api/vote", params={"chatId": "chat-1"}).json()
    assert votes == [{"chat_id": "chat-1", "message_id": "m1", "is_upvoted": False}]


def test_delete_trailing_messages(guest_client):
    _post_message(guest_client, "chat-1", text="one", message_id="m1")
    _post_message(guest_client, "chat-1", text="two", message_id="m2")
    _post_message(guest_client, "chat-1", text="three", message_id="m3")
    guest_client.patch("/api/vote", json={"chat_id": "chat-1", "message_id": "m3", "type": "up"})

    resp = guest_client.delete("/api/chat/chat-1/messages", params={"messageId": "m2"})
    assert resp.status_code == 200
    assert [m["id"] for m in resp.json()] == ["m1", "m2"]
    assert guest_client.get("/api/vote", params={"chatId": "chat-1"}).json() == []


def test_delete_trailing_messages_unknown_message(guest_client):
    _post_message(guest_client, "chat-1")
    resp = guest_client.delete("/api/chat/chat-1/messages", params={"messageId": "ghost"})
    assert resp.status_code == 404


def test_guest_daily_entitlement(guest_client):
    limit = MAX_MESSAGES_PER_DAY["guest"]
    for i in range(limit):
        assert _post_message(guest_client, "chat-1", text=f"msg {i}").status_code == 200

    resp = _post_message(guest_client, "chat-1", text="one too many")
    assert resp.status_code == 429
    assert resp.json()["code"] == "rate_limit:chat"


def test_documents_versioned_and_owned(app, guest_client, register):
    r1 = guest_client.post("/api/document", params={"id": "doc-1"}, json={"title": "Essay", "content": "v1"})
    r2 = guest_client.post("/api/document", params={"id": "doc-1"}, json={"title": "Essay", "content": "v2"})
    assert r1.status_code == r2.status_code == 200

    versions = guest_client.get("/api/document", params={"id": "doc-1"}).json()
    assert [v["content"] for v in versions] == ["v1", "v2"]

    resp = guest_client.delete(
        "/api/document", params={"id": "doc-1", "timestamp": r1.json()["created_at"]}
    )
    assert resp.status_code == 200
    assert [v["content"] for v in resp.json()] == ["v2"]
    assert len(guest_client.get("/api/document", params={"id": "doc-1"}).json()) == 1

    other = _second_user(app, register)
    assert other.get("/api/document", params={"id": "doc-1"}).status_code == 403
    resp = other.post("/api/document", params={"id": "doc-1"}, json={"title": "Mine now"})
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden:document"


def test_missing_document_is_not_found(guest_client):
    resp = guest_client.get("/api/document", params={"id": "ghost"})
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found:document"


def test_suggestions(app, guest_client, register):
    guest_client.post("/api/document", params={"id": "doc-1"}, json={"title": "Essay", "content": "teh"})
    resp = guest_client.post(
        "/api/suggestions",
        json={"document_id": "doc-1", "original_text": "teh", "suggested_text": "the"},
    )
    assert resp.status_code == 200

    suggestions = guest_client.get("/api/suggestions", params={"documentId": "doc-1"}).json()
    assert [s["suggested_text"] for s in suggestions] == ["the"]

    other = _second_user(app, register)
    assert other.get("/api/suggestions", params={"documentId": "doc-1"}).status_code == 403


def test_storage_failure_renders_generic_error(app, guest_client, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(app.state.storage, "get_chats_by_user_id", broken)
    resp = guest_client.get("/api/history")
    assert resp.status_code == 400
    assert resp.json() == {"code": "", "message": "Something went wrong. Please try again later."}


def test_create_stream_for_own_chat(app, guest_client, register):
    first = _post_message(guest_client, "chat-1").json()["stream_id"]
    resp = guest_client.post("/api/chat/chat-1/stream")
    assert resp.status_code == 200
    second = resp.json()["stream_id"]
    assert guest_client.get("/api/chat/chat-1/stream").json() == [first, second]

    assert guest_client.post("/api/chat/ghost/stream").status_code == 404
    other = _second_user(app, register)
    resp = other.post("/api/chat/chat-1/stream")
    assert resp.status_code == 403
    assert resp.json()["code"] == "forbidden:chat"


def test_posted_message_cannot_claim_another_role(guest_client):
    resp = _post_message(guest_client, "chat-1", role="assistant")
    assert resp.status_code == 422
    assert guest_client.get("/api/chat/chat-1").status_code == 404


def test_posted_message_timestamp_is_set_by_server(guest_client):
    limit = MAX_MESSAGES_PER_DAY["guest"]
    for i in range(limit):
        resp = _post_message(guest_client, "chat-1", text=f"msg {i}", created_at="2000-01-01T00:00:00Z")
        assert resp.status_code == 200
        assert not resp.json()["message"]["created_at"].startswith("2000")

    resp = _post_message(guest_client, "chat-1", text="one too many", created_at="2000-01-01T00:00:00Z")
    assert resp.status_code == 429


def test_regular_daily_entitlement(client, register):
    register(client)
    limit = MAX_MESSAGES_PER_DAY["regular"]
    assert limit == 100
    for i in range(limit):
        assert _post_message(client, "chat-1", text=f"msg {i}").status_code == 200

    resp = _post_message(client, "chat-1", text="one too many")
    assert resp.status_code == 429
    assert resp.json()["code"] == "rate_limit:chat"
