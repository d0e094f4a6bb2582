"""
Tests for the HTTP surface.
Covers:
  - health/meta
  - posting messages (implicit session creation, rendering, rejection cases)
  - session create/list/select/delete/clear
  - message paging
  - persistence across app instances
"""

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from chat.core.markup import render
from chat.core.state import Config
from chat.storage.kv import MemoryKV

from conftest import EchoProvider, FailingProvider


@pytest.fixture
def cfg(tmp_path):
    return Config(profile="test", provider="simulated", model="none", max_tokens=16, storage_dir=tmp_path, answer_delay_s=0)


@pytest.fixture
def kv():
    return MemoryKV()


@pytest.fixture
def client(cfg, kv):
    app = create_app(cfg, durable=kv, provider=EchoProvider())
    with TestClient(app) as c:
        yield c


def test_health_and_meta(client):
    assert client.get("/health").json() == {"status": "ok"}
    meta = client.get("/meta").json()
    assert meta["provider"] == "simulated"
    assert meta["max_input_chars"] == 2000


def test_post_message_creates_session_and_renders_answer(client):
    r = client.post("/messages", json={"content": "  Hello <world>  "})
    assert r.status_code == 200
    body = r.json()
    assert body["accepted"] is True
    assert body["user"]["content"] == "Hello <world>"
    assert body["user"]["html"] == "Hello &lt;world&gt;"
    assert body["bot"]["content"] == "You asked: **Hello <world>**"
    assert body["bot"]["html"] == "You asked: <strong>Hello &lt;world&gt;</strong>"
    assert body["bot"]["is_error"] is False

    listing = client.get("/sessions").json()
    assert listing["active_id"] == body["session_id"]
    assert listing["stats"] == {"sessions": 1, "messages": 2}
    item = listing["items"][0]
    assert item["title"] == "Hello <world>"
    assert item["active"] is True
    assert item["label"] == "Today"
    assert item["message_count"] == 2


def test_blank_message_is_not_accepted(client):
    body = client.post("/messages", json={"content": "   "}).json()
    assert body == {"accepted": False, "session_id": None, "user": None, "bot": None}
    assert client.get("/sessions").json()["items"] == []


def test_overlong_message_is_rejected(client):
    r = client.post("/messages", json={"content": "x" * 2001})
    assert r.status_code == 422
    assert client.post("/messages", json={"content": "x" * 2000}).status_code == 200


def test_input_cap_follows_config(cfg, kv):
    cfg.max_input_chars = 5
    with TestClient(create_app(cfg, durable=kv, provider=EchoProvider())) as c:
        assert c.post("/messages", json={"content": "123456"}).status_code == 422
        assert c.post("/messages", json={"content": "12345"}).json()["accepted"] is True
        assert c.get("/meta").json()["max_input_chars"] == 5


def test_provider_failure_is_a_normal_reply(cfg, kv):
    app = create_app(cfg, durable=kv, provider=FailingProvider())
    with TestClient(app) as c:
        body = c.post("/messages", json={"content": "hi"}).json()
    assert body["accepted"] is True
    assert body["bot"]["is_error"] is True
    assert body["bot"]["content"].startswith("Sorry, I encountered an error")


def test_get_session_includes_rendered_messages(client):
    sid = client.post("/messages", json={"content": "# heading?"}).json()["session_id"]
    s = client.get(f"/sessions/{sid}").json()
    assert s["id"] == sid
    bot = s["messages"][1]
    assert bot["role"] == "bot"
    assert bot["html"] == render(bot["content"])


def test_unknown_session_returns_404(client):
    assert client.get("/sessions/nope").status_code == 404
    assert client.post("/sessions/nope/select").status_code == 404
    assert client.delete("/sessions/nope").status_code == 404
    assert client.get("/sessions/nope/messages").status_code == 404


def test_create_select_delete_flow(client):
    a = client.post("/sessions").json()["id"]
    b = client.post("/sessions").json()
    assert b["title"] == "New Chat"
    b = b["id"]

    listing = client.get("/sessions").json()
    assert [i["id"] for i in listing["items"]] == [b, a]
    assert listing["active_id"] == b

    assert client.post(f"/sessions/{a}/select").json() == {"ok": True, "active_id": a}
    client.post("/messages", json={"content": "into a"})
    assert client.get(f"/sessions/{a}").json()["message_count"] == 2

    r = client.delete(f"/sessions/{a}").json()
    assert r == {"ok": True, "active_id": b}

    r = client.delete(f"/sessions/{b}").json()
    assert r == {"ok": True, "active_id": None}


def test_clear_all(client):
    client.post("/messages", json={"content": "one"})
    client.post("/sessions")
    assert client.delete("/sessions").json() == {"ok": True}
    listing = client.get("/sessions").json()
    assert listing["items"] == []
    assert listing["active_id"] is None


def test_message_paging(client):
    sid = client.post("/messages", json={"content": "a"}).json()["session_id"]
    client.post("/messages", json={"content": "b"})

    page = client.get(f"/sessions/{sid}/messages", params={"limit": 3}).json()
    assert [m["content"] for m in page["items"]][:1] == ["a"]
    assert page["next_cursor"] == 3

    rest = client.get(f"/sessions/{sid}/messages", params={"cursor": 3}).json()
    assert len(rest["items"]) == 1
    assert rest["next_cursor"] is None


def test_sessions_survive_restart(cfg, kv):
    with TestClient(create_app(cfg, durable=kv, provider=EchoProvider())) as c:
        sid = c.post("/messages", json={"content": "remember me"}).json()["session_id"]

    with TestClient(create_app(cfg, durable=kv, provider=EchoProvider())) as c:
        listing = c.get("/sessions").json()
        assert listing["active_id"] == sid
        assert listing["items"][0]["title"] == "remember me"
        assert c.get(f"/sessions/{sid}").json()["messages"][0]["content"] == "remember me"


def test_corrupt_storage_starts_empty(cfg, kv):
    kv.save(cfg.storage_key, b"{definitely not json")
    with TestClient(create_app(cfg, durable=kv, provider=EchoProvider())) as c:
        assert c.get("/sessions").json()["items"] == []
