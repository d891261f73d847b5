"""Shared pytest fixtures for MediTimer tests."""

import sys
import pytest

from PyQt6.QtWidgets import QApplication

from meditimer.database.db import configure_engine, init_db
from meditimer.database.store import SqlKeyValueStore
from meditimer.timer.engine import SessionController

from helpers import FakeChime, FakeClock, FakeNotificationService, FakeWakeLock


@pytest.fixture(scope="session")
def qapp():
    """A single QApplication instance shared across the entire test run."""
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def store():
    return SqlKeyValueStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return FakeNotificationService()


@pytest.fixture
def chime():
    return FakeChime()


@pytest.fixture
def wake_lock():
    return FakeWakeLock()


@pytest.fixture
def controller(qapp, store, notifier, chime, wake_lock, clock):
    """Fresh SessionController wired to fakes and the in-memory store."""
    return SessionController(
        parent=None,
        store=store,
        notifications=notifier,
        chime=chime,
        wake_lock=wake_lock,
        clock=clock,
    )
