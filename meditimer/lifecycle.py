"""Suspend/resume notifications from the Qt application state.

Qt reports four application states.  Only two matter to the session
engine::

    ApplicationSuspended, ApplicationHidden  -> BACKGROUND
    ApplicationActive                        -> FOREGROUND
    ApplicationInactive                      -> ignored (transitional)

Repeated states collapse: two BACKGROUND reports in a row emit once.
"""

from __future__ import annotations

import logging
from enum import Enum

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QGuiApplication

logger = logging.getLogger(__name__)


class AppTransition(Enum):
    BACKGROUND = "background"
    FOREGROUND = "foreground"


_STATE_TO_TRANSITION: dict[Qt.ApplicationState, AppTransition] = {
    Qt.ApplicationState.ApplicationSuspended: AppTransition.BACKGROUND,
    Qt.ApplicationState.ApplicationHidden: AppTransition.BACKGROUND,
    Qt.ApplicationState.ApplicationActive: AppTransition.FOREGROUND,
}


class AppStateMonitor(QObject):
    """Turns ``applicationStateChanged`` into background/foreground events.

    Signals
    -------
    transition(AppTransition)
        Emitted once per actual background/foreground change.
    """

    transition = pyqtSignal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._last: AppTransition | None = None
        self._app: QGuiApplication | None = None

    def start(self, app: QGuiApplication | None = None) -> None:
        """Subscribe to the running application's state changes."""
        if self._app is not None:
            return
        self._app = app or QGuiApplication.instance()
        if self._app is None:
            logger.warning("No QGuiApplication; suspend/resume events unavailable")
            return
        self._app.applicationStateChanged.connect(self.handle_state)

    def stop(self) -> None:
        if self._app is None:
            return
        self._app.applicationStateChanged.disconnect(self.handle_state)
        self._app = None

    def handle_state(self, state: Qt.ApplicationState) -> None:
        event = _STATE_TO_TRANSITION.get(state)
        if event is None or event is self._last:
            return
        self._last = event
        logger.debug("Application %s", event.value)
        self.transition.emit(event)
