"""
idle_logout/gateway.py
Flask boundary for the idle tracker: resolves the current user, feeds
login/request/logout events to the tracker and acts on its verdict.
"""
from __future__ import annotations

import logging
import urllib.parse
from typing import Callable, Mapping, Optional

from flask import Flask, redirect, request, session

from .errors import json_error
from .tracker import IdleSessionTracker, Verdict

logger = logging.getLogger("idle_logout.gateway")

DEFAULT_PUBLIC_PATHS = frozenset({"/login", "/logout"})


def with_idle_flag(url: str) -> str:
    parts = urllib.parse.urlsplit(url)
    query = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    query = [(k, v) for k, v in query if k != "idle"]
    query.append(("idle", "1"))
    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(query)))


class AuthGateway:
    def __init__(
        self,
        tracker: IdleSessionTracker,
        *,
        login_url: str = "/login",
        public_paths: frozenset[str] | set[str] = DEFAULT_PUBLIC_PATHS,
        user_loader: Callable[[], Optional[str]] | None = None,
    ) -> None:
        self.tracker = tracker
        self.login_url = login_url
        self.public_paths = frozenset(public_paths)
        self.user_loader = user_loader

    def init_app(self, app: Flask) -> None:
        app.extensions["idle_logout"] = self
        app.before_request(self._enforce_idle_timeout)

    def current_user(self) -> Optional[str]:
        if self.user_loader is not None:
            return self.user_loader()
        return session.get("user")

    def login(self, user_id: str) -> None:
        session["user"] = user_id
        self.tracker.on_authenticate(user_id)

    def logout(self) -> None:
        user_id = self.current_user()
        if user_id:
            self.tracker.on_logout(user_id)
        session.clear()

    def idle_notice(self, args: Mapping[str, str]) -> Optional[str]:
        if str(args.get("idle") or "") == "1":
            return self.tracker.idle_message
        return None

    def _enforce_idle_timeout(self):
        path = (request.path or "").rstrip("/") or "/"
        if path.startswith("/static/") or path in self.public_paths:
            return None
        user_id = self.current_user()
        if not user_id:
            return None

        if self.tracker.check_activity(user_id) is Verdict.ALLOW:
            return None

        session.clear()
        logger.info("Session for %s terminated after inactivity.", user_id)
        if path.startswith("/api/"):
            return json_error("session_timeout", self.tracker.idle_message, status=401)
        return redirect(with_idle_flag(self.login_url))
