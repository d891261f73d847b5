"""Timer package."""

from .engine import (
    SessionController,
    TIMER_STATE_KEY,
    BACKGROUND_TIMESTAMP_KEY,
    TICK_INTERVAL_MS,
)
from .models import (
    Duration,
    Segment,
    SegmentStatus,
    Session,
    SnapshotError,
    DEFAULT_DURATION,
)
from .reconciler import reconcile, completed_during
from .scheduler import NotificationScheduler, cumulative_offsets

__all__ = [
    "SessionController",
    "TIMER_STATE_KEY",
    "BACKGROUND_TIMESTAMP_KEY",
    "TICK_INTERVAL_MS",
    "Duration",
    "Segment",
    "SegmentStatus",
    "Session",
    "SnapshotError",
    "DEFAULT_DURATION",
    "reconcile",
    "completed_during",
    "NotificationScheduler",
    "cumulative_offsets",
]
