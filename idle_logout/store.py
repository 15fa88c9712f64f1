"""
Per-user key/value stores backing the idle tracker.

Any backend that can get/set/delete a string per (user, key) works; two are
shipped: an in-process dict and a sqlite table.
"""
from __future__ import annotations

import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from .errors import StoreError


class UserStore(ABC):
    @abstractmethod
    def get(self, user_id: object, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, user_id: object, key: str, value: object) -> None:
        ...

    @abstractmethod
    def delete(self, user_id: object, key: str) -> None:
        ...


class MemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._values: dict[tuple[str, str], str] = {}

    def get(self, user_id: object, key: str) -> str | None:
        with self._lock:
            return self._values.get((str(user_id), key))

    def set(self, user_id: object, key: str, value: object) -> None:
        with self._lock:
            self._values[(str(user_id), key)] = str(value)

    def delete(self, user_id: object, key: str) -> None:
        with self._lock:
            self._values.pop((str(user_id), key), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)


class SQLiteUserStore(UserStore):
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _db(self) -> sqlite3.Connection:
        con = sqlite3.connect(str(self.path))
        con.row_factory = sqlite3.Row
        return con

    def _now_iso(self) -> str:
        return datetime.now(UTC).replace(microsecond=0).isoformat()

    def _ensure_schema(self, con: sqlite3.Connection) -> None:
        con.execute(
            """
            CREATE TABLE IF NOT EXISTS user_meta(
              user_id TEXT NOT NULL,
              meta_key TEXT NOT NULL,
              meta_value TEXT NOT NULL,
              updated_at TEXT NOT NULL,
              PRIMARY KEY(user_id, meta_key)
            );
            """
        )

    def init(self) -> None:
        con = self._db()
        try:
            self._ensure_schema(con)
            con.commit()
        except sqlite3.Error as exc:
            raise StoreError("Could not initialise user_meta schema.", exc) from exc
        finally:
            con.close()

    def get(self, user_id: object, key: str) -> str | None:
        con = self._db()
        try:
            self._ensure_schema(con)
            row = con.execute(
                "SELECT meta_value FROM user_meta WHERE user_id=? AND meta_key=?",
                (str(user_id), key),
            ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not read {key}.", exc) from exc
        finally:
            con.close()
        if row is None:
            return None
        return str(row["meta_value"])

    def set(self, user_id: object, key: str, value: object) -> None:
        con = self._db()
        try:
            self._ensure_schema(con)
            con.execute(
                """
                INSERT INTO user_meta(user_id, meta_key, meta_value, updated_at)
                VALUES (?,?,?,?)
                ON CONFLICT(user_id, meta_key) DO UPDATE SET
                  meta_value=excluded.meta_value,
                  updated_at=excluded.updated_at
                """,
                (str(user_id), key, str(value), self._now_iso()),
            )
            con.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not write {key}.", exc) from exc
        finally:
            con.close()

    def delete(self, user_id: object, key: str) -> None:
        con = self._db()
        try:
            self._ensure_schema(con)
            con.execute(
                "DELETE FROM user_meta WHERE user_id=? AND meta_key=?",
                (str(user_id), key),
            )
            con.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"Could not delete {key}.", exc) from exc
        finally:
            con.close()
