"""
Error types and the JSON error envelope for idle_logout.

The tracker itself never raises for normal input: a missing or garbled
activity record is handled as data. Only backend failures surface here.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from flask import jsonify

logger = logging.getLogger("idle_logout.errors")


class IdleLogoutError(Exception):
    """Base exception for all controlled idle_logout failures."""

    def __init__(self, message: str, error_code: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.request_id = str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc).isoformat()


class StoreError(IdleLogoutError):
    def __init__(self, message: str, original_exception: Exception | None = None):
        super().__init__(
            message, "store_error", {"exception": str(original_exception or "")}
        )


def handle_error(error: IdleLogoutError):
    """Flask error handler for IdleLogoutError."""
    logger.error("%s [%s]: %s", error.error_code, error.request_id, error.message)
    return json_error(error.error_code, error.message, status=500, details=error.details)


def json_error(code: str, message: str, status: int = 400, details: dict | None = None):
    """Standardised JSON error response."""
    return jsonify({
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "request_id": str(uuid.uuid4()),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }), status
