"""Segment-completion alerts shown through the system tray.

Each scheduled alert is a single-shot ``QTimer`` owned by the service.
When it fires, ``QSystemTrayIcon.showMessage`` raises a native
notification, so it reaches the user even while the main window is
hidden and the session clock is stopped.

An alert that comes due while the session is being watched is dropped:
the in-process chime already marked that boundary.  By default "watched"
means the application is active; the entry point narrows it to "the
session clock is ticking".
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from PyQt6.QtCore import QObject, Qt, QTimer
from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QSystemTrayIcon

from .ports import NotificationPayload

logger = logging.getLogger(__name__)

TITLE = "Timer Complete"


def app_is_active() -> bool:
    return QGuiApplication.applicationState() == Qt.ApplicationState.ApplicationActive


def compose_message(payload: NotificationPayload) -> tuple[str, str]:
    """Title and body for the alert of one segment."""
    if payload.label:
        body = f'"{payload.label}" completed'
    else:
        body = f"Timer {payload.segment_index + 1} completed"
    return TITLE, body


class TrayNotificationService(QObject):
    """``NotificationService`` backed by a tray icon and Qt timers."""

    def __init__(
        self,
        tray_icon: QSystemTrayIcon | None,
        parent: QObject | None = None,
        *,
        enabled: bool = True,
        watched: Callable[[], bool] = app_is_active,
    ) -> None:
        super().__init__(parent)
        self._tray_icon = tray_icon
        self._enabled = enabled
        self._watched = watched
        self._pending: dict[str, QTimer] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def request_permission(self) -> bool:
        if not self._enabled or self._tray_icon is None:
            return False
        return QSystemTrayIcon.isSystemTrayAvailable()

    def schedule(self, delay_seconds: int, payload: NotificationPayload) -> str:
        if delay_seconds < 0:
            raise ValueError(f"delay must be non-negative, got {delay_seconds}")
        handle = uuid.uuid4().hex
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(int(delay_seconds) * 1000)
        timer.timeout.connect(lambda: self._fire(handle, payload))
        self._pending[handle] = timer
        timer.start()
        return handle

    def cancel(self, handle: str) -> None:
        timer = self._pending.pop(handle, None)
        if timer is None:
            # Already fired or never ours; nothing to disarm.
            return
        timer.stop()
        timer.deleteLater()

    def _fire(self, handle: str, payload: NotificationPayload) -> None:
        timer = self._pending.pop(handle, None)
        if timer is not None:
            timer.deleteLater()
        if self._watched():
            logger.debug(
                "Alert for segment %s dropped: session is being watched",
                payload.segment_id,
            )
            return
        title, body = compose_message(payload)
        logger.info("Notification for segment %s: %s", payload.segment_id, body)
        if self._tray_icon is not None:
            self._tray_icon.showMessage(title, body)
