"""Persistent key-value store on top of the ``kv_store`` table.

Every call is its own transaction so a write has hit disk by the time
it returns; the host may suspend the process right after
``SessionController.on_background``.
"""

from __future__ import annotations

from datetime import datetime

from .db import get_session
from .models import KeyValue


class SqlKeyValueStore:
    """``KeyValueStore`` backed by SQLAlchemy."""

    def get(self, key: str) -> str | None:
        with get_session() as db:
            row = db.get(KeyValue, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with get_session() as db:
            row = db.get(KeyValue, key)
            if row is None:
                db.add(KeyValue(key=key, value=value))
            else:
                row.value = value
                row.updated_at = datetime.utcnow()

    def remove(self, key: str) -> None:
        with get_session() as db:
            row = db.get(KeyValue, key)
            if row is not None:
                db.delete(row)
