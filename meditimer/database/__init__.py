"""Database package."""

from .db import get_session, init_db, configure_engine
from .models import KeyValue
from .store import SqlKeyValueStore

__all__ = ["get_session", "init_db", "configure_engine", "KeyValue", "SqlKeyValueStore"]
