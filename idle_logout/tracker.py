"""
idle_logout/tracker.py
Decides per request whether a user's session has been idle too long.
"""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable

from .config import TrackerSettings, parse_numeric
from .store import UserStore

logger = logging.getLogger("idle_logout.tracker")

ACTIVITY_KEY = "idle_logout_last_active_time"

Clock = Callable[[], float]


class Verdict(Enum):
    ALLOW = "allow"
    FORCE_LOGOUT = "force_logout"


class IdleSessionTracker:
    """
    Sliding-window idle timeout over a per-user activity record.

    The record is written on authentication, refreshed on every request
    judged non-idle, and deleted on logout or when the idle threshold is
    exceeded. A missing or malformed record never forces a logout; it is
    reset to the current time instead.
    """

    def __init__(
        self,
        store: UserStore,
        settings: TrackerSettings | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or TrackerSettings()
        self.clock = clock or time.time

    @property
    def idle_time_seconds(self) -> int:
        return self.settings.idle_time_seconds

    @property
    def idle_message(self) -> str:
        return self.settings.idle_message

    def _now(self, now_fn: Clock | None) -> int:
        return int((now_fn or self.clock)())

    def on_authenticate(self, user_id: object, now_fn: Clock | None = None) -> int:
        now = self._now(now_fn)
        self.store.set(user_id, ACTIVITY_KEY, now)
        logger.debug("Activity record for %s set to %s on login.", user_id, now)
        return now

    def check_activity(self, user_id: object, now_fn: Clock | None = None) -> Verdict:
        now = self._now(now_fn)
        raw = self.store.get(user_id, ACTIVITY_KEY)
        last_active = parse_numeric(raw)

        if last_active is None:
            if raw is not None:
                logger.warning("Malformed activity record for %s reset.", user_id)
            self.store.delete(user_id, ACTIVITY_KEY)
            self.store.set(user_id, ACTIVITY_KEY, now)
            return Verdict.ALLOW

        if last_active + self.idle_time_seconds < now:
            self.store.delete(user_id, ACTIVITY_KEY)
            logger.info(
                "Idle logout for %s (inactive %ss, limit %ss).",
                user_id,
                now - last_active,
                self.idle_time_seconds,
            )
            return Verdict.FORCE_LOGOUT

        self.store.set(user_id, ACTIVITY_KEY, now)
        return Verdict.ALLOW

    def on_logout(self, user_id: object) -> None:
        self.store.delete(user_id, ACTIVITY_KEY)
        logger.debug("Activity record for %s cleared on logout.", user_id)

    def last_activity(self, user_id: object) -> int | None:
        return parse_numeric(self.store.get(user_id, ACTIVITY_KEY))
