from __future__ import annotations

import math
import os
import re
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

DEFAULT_IDLE_TIME = 1800
DEFAULT_IDLE_MESSAGE = "You have been logged out due to inactivity."

_NEWLINE_RE = re.compile(r"(\r\n|\n\r|\n|\r)")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def parse_numeric(raw: object) -> int | None:
    """Return ``raw`` truncated to int if it reads as a finite number, else None."""
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    token = str(raw).strip()
    if not token or "_" in token:
        return None
    try:
        return int(token)
    except ValueError:
        pass
    try:
        value = float(token)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def nl2br(text: str) -> str:
    return _NEWLINE_RE.sub(r"<br />\1", text)


def resolve_idle_time_seconds(raw: object) -> int:
    value = parse_numeric(raw)
    if value is None or value <= 0:
        return DEFAULT_IDLE_TIME
    return value


def resolve_idle_message(raw: object) -> str:
    message = nl2br(str(raw)) if raw is not None else ""
    if not message:
        return DEFAULT_IDLE_MESSAGE
    return message


@dataclass(frozen=True)
class TrackerSettings:
    """
    Resolved tracker parameters.

    - idle_time_seconds : maximum gap between authenticated requests
    - idle_message      : text shown after an idle-triggered logout
    """
    idle_time_seconds: int = DEFAULT_IDLE_TIME
    idle_message: str = DEFAULT_IDLE_MESSAGE

    @classmethod
    def from_raw(cls, idle_time: object = None, idle_message: object = None) -> "TrackerSettings":
        return cls(
            idle_time_seconds=resolve_idle_time_seconds(idle_time),
            idle_message=resolve_idle_message(idle_message),
        )

    @classmethod
    def from_config(cls, config) -> "TrackerSettings":
        return cls.from_raw(
            _config_value(config, "IDLE_TIME"),
            _config_value(config, "IDLE_MESSAGE"),
        )


def _config_value(config, key: str) -> object:
    if isinstance(config, dict):
        return config.get(key)
    return getattr(config, key, None)


class Config:
    SECRET_KEY = _env("IDLE_LOGOUT_SECRET", "idle-logout-dev-secret-change-me")

    # Raw values; resolved once into TrackerSettings when the app is built.
    IDLE_TIME = _env("IDLE_LOGOUT_IDLE_TIME")
    IDLE_MESSAGE = _env("IDLE_LOGOUT_IDLE_MESSAGE")

    LOGIN_URL = _env("IDLE_LOGOUT_LOGIN_URL", "/login")

    USER_DATA_ROOT = Path(
        _env(
            "IDLE_LOGOUT_USER_DATA_ROOT",
            user_data_dir("idle_logout", appauthor=False),
        )
    )
    STORE_DB = Path(_env("IDLE_LOGOUT_STORE_DB", str(USER_DATA_ROOT / "user_meta.sqlite3")))
