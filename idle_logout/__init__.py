from __future__ import annotations

from flask import Flask, jsonify, request

from .config import Config, TrackerSettings
from .errors import IdleLogoutError, handle_error, json_error
from .gateway import AuthGateway
from .logging import init_request_logging
from .store import MemoryUserStore, SQLiteUserStore, UserStore
from .tracker import ACTIVITY_KEY, IdleSessionTracker, Verdict

__all__ = [
    "ACTIVITY_KEY",
    "AuthGateway",
    "IdleSessionTracker",
    "MemoryUserStore",
    "SQLiteUserStore",
    "TrackerSettings",
    "UserStore",
    "Verdict",
    "create_app",
]


def create_app(config=None, *, store: UserStore | None = None, clock=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    if store is None:
        store = SQLiteUserStore(app.config["STORE_DB"])
        store.init()

    tracker = IdleSessionTracker(store, TrackerSettings.from_config(app.config), clock=clock)
    gateway = AuthGateway(tracker, login_url=str(app.config.get("LOGIN_URL") or "/login"))

    init_request_logging(app)
    gateway.init_app(app)
    app.register_error_handler(IdleLogoutError, handle_error)

    @app.route("/login", methods=["GET", "POST"])
    def login():
        if request.method == "POST":
            user_id = str(request.form.get("user") or "").strip()
            if not user_id:
                return json_error("validation_error", "user is required.", status=400)
            gateway.login(user_id)
            return jsonify({"ok": True, "user": user_id})
        return jsonify({"ok": True, "notice": gateway.idle_notice(request.args)})

    @app.route("/logout", methods=["GET", "POST"])
    def logout():
        gateway.logout()
        return jsonify({"ok": True})

    @app.route("/")
    def index():
        return jsonify({"ok": True, "user": gateway.current_user()})

    @app.route("/api/ping")
    def ping():
        return jsonify({"ok": True, "user": gateway.current_user()})

    return app
