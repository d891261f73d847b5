"""Session controller for MediTimer.

Segment states
--------------
pending    Waiting its turn.
running    Counting down (exactly one while the session runs).
completed  Reached 0:00.

Transitions
-----------
pending → running      session start (index 0) or previous segment completed
running → completed    remaining reaches 0:00 (tick or background replay)
last completed         session finishes: index -1, not running
stop                   every segment back to pending with full duration

Threading
---------
Everything runs on the Qt GUI thread.  Clock ticks and application-state
changes arrive as queued events on the same loop, so no two mutations of
the session ever interleave.

Peripheral effects (chime, wake-lock, notifications, persistence) are
fire-and-forget: each call site logs a failure and carries on.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..lifecycle import AppStateMonitor, AppTransition
from ..ports import Chime, KeyValueStore, NotificationService, WakeLock
from .models import (
    DEFAULT_DURATION,
    Duration,
    Segment,
    SegmentStatus,
    Session,
    SnapshotError,
)
from .reconciler import completed_during, reconcile
from .scheduler import NotificationScheduler

logger = logging.getLogger(__name__)


# ── constants ─────────────────────────────────────────────────────────────

TIMER_STATE_KEY = "timer_state"
BACKGROUND_TIMESTAMP_KEY = "background_timestamp"
TICK_INTERVAL_MS = 1000

_EDITABLE_FIELDS = ("label", "minutes", "seconds")


# ── engine ────────────────────────────────────────────────────────────────


class SessionController(QObject):
    """Owns the session and drives it from the clock and app lifecycle.

    Signals
    -------
    tick(index: int, remaining_seconds: int)
        Emitted every second while a segment counts down.
    state_changed(session: Session)
        Emitted after every structural or lifecycle change (a copy).
    segment_completed(index: int, replayed: bool)
        A segment reached 0:00.  ``replayed`` is True when it finished
        while the app was in the background; no chime is played then.
    session_finished()
        The last segment completed.
    invalid_session()
        ``start_meditation`` refused a session with a 0:00 segment.
    """

    tick = pyqtSignal(int, int)
    state_changed = pyqtSignal(object)
    segment_completed = pyqtSignal(int, bool)
    session_finished = pyqtSignal()
    invalid_session = pyqtSignal()

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        store: KeyValueStore,
        notifications: NotificationService | None = None,
        chime: Chime | None = None,
        wake_lock: WakeLock | None = None,
        clock: Callable[[], float] = time.time,
        default_duration: Duration = DEFAULT_DURATION,
    ) -> None:
        super().__init__(parent)

        # ── collaborators ─────────────────────────────────────────────
        self._store = store
        self._scheduler = (
            NotificationScheduler(notifications) if notifications is not None else None
        )
        self._chime = chime
        self._wake_lock = wake_lock
        self._clock = clock
        self._default_duration = default_duration

        # ── session state ─────────────────────────────────────────────
        self._session = Session.with_default_segment(default_duration)
        self._suspended = False
        self._monitor: AppStateMonitor | None = None

        # ── Qt timer ──────────────────────────────────────────────────
        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(TICK_INTERVAL_MS)
        self._qt_timer.timeout.connect(self._on_tick)

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def session(self) -> Session:
        """A copy of the current session; mutating it has no effect."""
        return self._session.copy()

    @property
    def segments(self) -> list[Segment]:
        return [s.copy() for s in self._session.segments]

    @property
    def is_running(self) -> bool:
        return self._session.is_running

    @property
    def current_index(self) -> int:
        return self._session.current_index

    @property
    def clock_active(self) -> bool:
        """True while the one-second countdown timer is armed."""
        return self._qt_timer.isActive()

    def elapsed_since_start(self) -> int:
        """Wall-clock seconds since ``start_meditation`` (0 when idle)."""
        if self._session.started_at is None:
            return 0
        return max(0, int(self._clock() - self._session.started_at))

    # ══════════════════════════════════════════════════════════════════
    #  SEGMENT EDITING
    # ══════════════════════════════════════════════════════════════════

    def add_segment(self) -> Segment | None:
        """Append a 5:00 pending segment.  Ignored while running."""
        if self._session.is_running:
            logger.warning("add_segment ignored: session is running")
            return None
        segment = Segment(original=self._default_duration)
        self._session.segments.append(segment)
        self._emit_state()
        return segment.copy()

    def update_segment(self, segment_id: str, **fields: Any) -> bool:
        """Change ``label`` and/or the ``minutes``/``seconds`` duration.

        Unknown ids and edits while running are no-ops (returns False).
        A duration change also resets what is left to the new length.
        """
        if self._session.is_running:
            logger.warning("update_segment ignored: session is running")
            return False
        segment = self._session.find(segment_id)
        if segment is None:
            logger.debug("update_segment: no segment %s", segment_id)
            return False

        unknown = set(fields) - set(_EDITABLE_FIELDS)
        if unknown:
            logger.debug("update_segment: ignoring fields %s", sorted(unknown))

        if "label" in fields:
            segment.label = str(fields["label"] or "")
        if "minutes" in fields or "seconds" in fields:
            segment.original = Duration.clamped(
                fields.get("minutes", segment.original.minutes),
                fields.get("seconds", segment.original.seconds),
            )
            segment.reset()
        self._emit_state()
        return True

    def remove_segment(self, segment_id: str) -> bool:
        """Drop a segment.  Unknown ids and edits while running are no-ops."""
        if self._session.is_running:
            logger.warning("remove_segment ignored: session is running")
            return False
        segment = self._session.find(segment_id)
        if segment is None:
            logger.debug("remove_segment: no segment %s", segment_id)
            return False
        self._session.segments.remove(segment)
        self._emit_state()
        return True

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start_meditation(self) -> bool:
        """Begin the session at segment 0.

        Returns False, without touching any state, when the session is
        empty or a segment is 0:00 (``invalid_session`` is emitted), or
        when a session is already running.
        """
        if self._session.is_running:
            return False
        if not self._session.is_startable():
            logger.warning("Refusing to start: every segment needs at least 1 second")
            self.invalid_session.emit()
            return False

        self._best_effort("Start chime", self._chime)
        if self._wake_lock is not None:
            self._best_effort("Wake-lock acquire", self._wake_lock.acquire)

        session = self._session
        for index, segment in enumerate(session.segments):
            if index == 0:
                segment.activate()
            else:
                segment.reset()
        session.current_index = 0
        session.is_running = True
        session.started_at = self._clock()
        session.scheduled_signal_ids = self._arm_notifications()

        logger.info(
            "Session started: %d segments, %d s total",
            len(session.segments),
            sum(s.total_seconds for s in session.segments),
        )
        self._qt_timer.start()
        self._emit_state()
        return True

    def stop_meditation(self) -> None:
        """Abandon the session and return every segment to pending."""
        logger.info("Stopping session after %d s", self.elapsed_since_start())
        self._qt_timer.stop()
        self._disarm_notifications()
        if self._wake_lock is not None:
            self._best_effort("Wake-lock release", self._wake_lock.release)
        self._clear_recovery_state()
        self._session.reset_to_baseline()
        self._emit_state()

    # ══════════════════════════════════════════════════════════════════
    #  LIFECYCLE — suspend / resume
    # ══════════════════════════════════════════════════════════════════

    def attach(self, monitor: AppStateMonitor) -> None:
        """Subscribe to background/foreground events for our lifetime."""
        self.detach()
        monitor.transition.connect(self._on_transition)
        self._monitor = monitor

    def detach(self) -> None:
        if self._monitor is None:
            return
        self._monitor.transition.disconnect(self._on_transition)
        self._monitor = None

    def on_background(self) -> None:
        """Stop ticking and persist a snapshot plus the current time."""
        if self._suspended:
            return
        self._suspended = True
        if not self._session.is_running:
            return
        self._qt_timer.stop()
        stamp_ms = int(self._clock() * 1000)
        try:
            self._store.set(BACKGROUND_TIMESTAMP_KEY, str(stamp_ms))
            self._store.set(TIMER_STATE_KEY, self._session.to_json())
        except Exception:
            logger.warning("Failed to persist session for background", exc_info=True)
        else:
            logger.debug("Session persisted at %d", stamp_ms)

    def on_foreground(self) -> None:
        """Replay the time spent in the background, then resume ticking."""
        self._suspended = False
        raw_stamp = raw_state = None
        try:
            raw_stamp = self._store.get(BACKGROUND_TIMESTAMP_KEY)
            raw_state = self._store.get(TIMER_STATE_KEY)
        except Exception:
            logger.warning("Failed to read background session state", exc_info=True)
        finally:
            self._clear_recovery_state()

        if self._session.is_running and (raw_stamp or raw_state):
            self._recover(raw_state, raw_stamp)

        if self._session.is_running and not self._qt_timer.isActive():
            self._qt_timer.start()

    def _on_transition(self, event: AppTransition) -> None:
        if event is AppTransition.BACKGROUND:
            self.on_background()
        elif event is AppTransition.FOREGROUND:
            self.on_foreground()

    def _recover(self, raw_state: str | None, raw_stamp: str | None) -> None:
        try:
            if raw_state is None or raw_stamp is None:
                raise SnapshotError("snapshot and timestamp must both be present")
            snapshot = Session.from_json(raw_state)
            stamp_ms = int(raw_stamp)
        except (SnapshotError, ValueError):
            logger.warning("Skipping background replay: stored state unusable", exc_info=True)
            return

        if not snapshot.is_running or [s.id for s in snapshot.segments] != [
            s.id for s in self._session.segments
        ]:
            logger.warning("Skipping background replay: snapshot does not match session")
            return

        elapsed = max(0, (int(self._clock() * 1000) - stamp_ms) // 1000)
        self._replay(snapshot, elapsed)

    def _replay(self, snapshot: Session, elapsed: int) -> None:
        result = reconcile(snapshot, elapsed)
        result.scheduled_signal_ids = self._session.scheduled_signal_ids
        completed = completed_during(snapshot, result)
        self._session = result
        logger.info(
            "Replayed %d s in background: %d segment(s) completed",
            elapsed, len(completed),
        )

        # The pre-scheduled notifications covered these; no chime.
        for index in completed:
            self.segment_completed.emit(index, True)

        if result.is_running:
            self._emit_state()
        else:
            self._finish()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        segment = self._session.running_segment
        if (
            not self._session.is_running
            or segment is None
            or segment.status is not SegmentStatus.RUNNING
        ):
            self._qt_timer.stop()
            return

        remaining = segment.remaining_seconds - 1
        if remaining <= 0:
            self.tick.emit(self._session.current_index, 0)
            self._complete_current()
            return

        segment.remaining = Duration.from_seconds(remaining)
        self.tick.emit(self._session.current_index, remaining)

    def _complete_current(self) -> None:
        session = self._session
        index = session.current_index
        session.segments[index].complete()
        self._best_effort("Completion chime", self._chime)

        # Watched it finish: the scheduled alert would be a duplicate.
        if self._scheduler is not None and index < len(session.scheduled_signal_ids):
            self._scheduler.cancel(session.scheduled_signal_ids[index])
            session.scheduled_signal_ids[index] = None

        self.segment_completed.emit(index, False)

        nxt = index + 1
        if nxt < len(session.segments):
            session.segments[nxt].activate()
            session.current_index = nxt
            self._emit_state()
        else:
            self._finish()

    def _finish(self) -> None:
        self._qt_timer.stop()
        self._session.mark_finished()
        if self._wake_lock is not None:
            self._best_effort("Wake-lock release", self._wake_lock.release)
        self._disarm_notifications()
        self._clear_recovery_state()
        logger.info("Session finished after %d s", self.elapsed_since_start())
        self._emit_state()
        self.session_finished.emit()

    def _emit_state(self) -> None:
        self.state_changed.emit(self._session.copy())

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL — peripheral effects
    # ══════════════════════════════════════════════════════════════════

    def _arm_notifications(self) -> list[str | None]:
        if self._scheduler is None:
            return []
        if not self._scheduler.request_permission():
            logger.warning(
                "Notification permission not granted; "
                "segments will only signal while the app is active"
            )
            return []
        return self._scheduler.schedule(self._session.segments)

    def _disarm_notifications(self) -> None:
        handles = self._session.scheduled_signal_ids
        self._session.scheduled_signal_ids = []
        if self._scheduler is not None and handles:
            cancelled = self._scheduler.cancel_all(handles)
            logger.debug("Cancelled %d scheduled notifications", cancelled)

    def _clear_recovery_state(self) -> None:
        for key in (BACKGROUND_TIMESTAMP_KEY, TIMER_STATE_KEY):
            try:
                self._store.remove(key)
            except Exception:
                logger.warning("Failed to clear %s", key, exc_info=True)

    @staticmethod
    def _best_effort(what: str, fn: Callable[[], Any] | None) -> bool:
        """Run a peripheral side effect; report, never raise, its failure."""
        if fn is None:
            return False
        try:
            result = fn()
        except Exception:
            logger.warning("%s failed", what, exc_info=True)
            return False
        return result is not False
