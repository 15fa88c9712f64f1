from __future__ import annotations

from idle_logout import ACTIVITY_KEY, create_app
from idle_logout.gateway import with_idle_flag


def _app(store, clock, **overrides):
    config = {"TESTING": True, "SECRET_KEY": "test", "IDLE_TIME": "60"}
    config.update(overrides)
    return create_app(config, store=store, clock=clock)


def test_login_creates_activity_record(store, clock) -> None:
    client = _app(store, clock).test_client()
    res = client.post("/login", data={"user": "alice"})
    assert res.status_code == 200
    assert store.get("alice", ACTIVITY_KEY) == "1000"
    with client.session_transaction() as sess:
        assert sess["user"] == "alice"


def test_active_request_refreshes_record(store, clock) -> None:
    client = _app(store, clock).test_client()
    client.post("/login", data={"user": "alice"})
    clock.set(1060)
    res = client.get("/")
    assert res.status_code == 200
    assert res.get_json()["user"] == "alice"
    assert store.get("alice", ACTIVITY_KEY) == "1060"


def test_idle_request_redirects_to_login_with_flag(store, clock) -> None:
    client = _app(store, clock).test_client()
    client.post("/login", data={"user": "alice"})
    clock.set(1061)
    res = client.get("/", follow_redirects=False)
    assert res.status_code in (302, 303)
    assert res.headers["Location"].endswith("/login?idle=1")
    assert store.get("alice", ACTIVITY_KEY) is None
    with client.session_transaction() as sess:
        assert "user" not in sess


def test_idle_api_request_returns_json_401(store, clock) -> None:
    client = _app(store, clock, IDLE_MESSAGE="Gone idle").test_client()
    client.post("/login", data={"user": "alice"})
    clock.set(5000)
    res = client.get("/api/ping")
    assert res.status_code == 401
    body = res.get_json()
    assert body["error"]["code"] == "session_timeout"
    assert body["error"]["message"] == "Gone idle"


def test_login_page_shows_idle_notice(store, clock) -> None:
    client = _app(store, clock, IDLE_MESSAGE="Line one\nLine two").test_client()
    assert client.get("/login").get_json()["notice"] is None
    notice = client.get("/login?idle=1").get_json()["notice"]
    assert notice == "Line one<br />\nLine two"


def test_logout_clears_record(store, clock) -> None:
    client = _app(store, clock).test_client()
    client.post("/login", data={"user": "alice"})
    client.post("/logout")
    assert store.get("alice", ACTIVITY_KEY) is None
    with client.session_transaction() as sess:
        assert "user" not in sess


def test_logout_without_user_is_safe(store, clock) -> None:
    client = _app(store, clock).test_client()
    assert client.post("/logout").status_code == 200
    assert len(store) == 0


def test_anonymous_requests_are_not_tracked(store, clock) -> None:
    client = _app(store, clock).test_client()
    assert client.get("/api/ping").get_json()["user"] is None
    assert len(store) == 0


def test_session_without_record_is_allowed(store, clock) -> None:
    client = _app(store, clock).test_client()
    with client.session_transaction() as sess:
        sess["user"] = "bob"
    assert client.get("/").status_code == 200
    assert store.get("bob", ACTIVITY_KEY) == "1000"


def test_request_id_header_is_echoed(store, clock) -> None:
    client = _app(store, clock).test_client()
    res = client.get("/api/ping", headers={"X-Request-Id": "rid-1"})
    assert res.headers["X-Request-Id"] == "rid-1"


def test_custom_login_url_keeps_query() -> None:
    assert with_idle_flag("/auth/login?next=/a") == "/auth/login?next=%2Fa&idle=1"
    assert with_idle_flag("/login?idle=0") == "/login?idle=1"


def test_default_store_is_sqlite(tmp_path, clock) -> None:
    app = create_app(
        {"TESTING": True, "SECRET_KEY": "test", "STORE_DB": tmp_path / "meta.sqlite3"},
        clock=clock,
    )
    client = app.test_client()
    client.post("/login", data={"user": "alice"})
    assert (tmp_path / "meta.sqlite3").exists()
    tracker = app.extensions["idle_logout"].tracker
    assert tracker.last_activity("alice") == 1000
