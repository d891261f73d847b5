"""Segment and session data model for MediTimer.

A *segment* is one countdown interval; a *session* is the ordered list
of segments plus the engine's position in it.

Segment states
--------------
pending     Waiting its turn (remaining == original duration).
running     Counting down.  At most one per session.
completed   Finished, remaining is 0:00.

Snapshots
---------
``Session.to_json()`` / ``Session.from_json()`` produce and parse the
string stored while the app is backgrounded.  Anything that does not
parse back into a consistent session raises ``SnapshotError``.
"""

from __future__ import annotations

import json
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple


# ── constants ─────────────────────────────────────────────────────────────

MAX_MINUTES = 99
MAX_SECONDS = 59
DEFAULT_MINUTES = 5
DEFAULT_SECONDS = 0


class SnapshotError(ValueError):
    """A persisted session snapshot could not be turned back into a Session."""


# ── duration ──────────────────────────────────────────────────────────────


class Duration(NamedTuple):
    minutes: int
    seconds: int

    @property
    def total_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    @classmethod
    def from_seconds(cls, total: int) -> "Duration":
        total = max(0, int(total))
        return cls(total // 60, total % 60)

    @classmethod
    def clamped(cls, minutes: int, seconds: int) -> "Duration":
        """Build a duration from user input, pinned to 0-99 min / 0-59 s."""
        return cls(
            max(0, min(int(minutes), MAX_MINUTES)),
            max(0, min(int(seconds), MAX_SECONDS)),
        )

    def __str__(self) -> str:
        return f"{self.minutes:02d}:{self.seconds:02d}"


DEFAULT_DURATION = Duration(DEFAULT_MINUTES, DEFAULT_SECONDS)
ZERO = Duration(0, 0)


class SegmentStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"


def new_segment_id() -> str:
    return f"segment-{int(time.time() * 1000)}-{secrets.token_hex(5)}"


# ── segment ───────────────────────────────────────────────────────────────


@dataclass(eq=False)
class Segment:
    """One countdown interval.

    ``original`` is the authoritative full length, used on every reset.
    ``remaining`` is what the clock (or the reconciler) counts down.
    """

    id: str = field(default_factory=new_segment_id)
    label: str = ""
    original: Duration = DEFAULT_DURATION
    remaining: Duration | None = None
    status: SegmentStatus = SegmentStatus.PENDING

    def __post_init__(self) -> None:
        if self.remaining is None:
            self.remaining = self.original

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def total_seconds(self) -> int:
        """Full length in seconds (not what is left)."""
        return self.original.total_seconds

    @property
    def remaining_seconds(self) -> int:
        return self.remaining.total_seconds

    def reset(self) -> None:
        self.remaining = self.original
        self.status = SegmentStatus.PENDING

    def activate(self) -> None:
        self.remaining = self.original
        self.status = SegmentStatus.RUNNING

    def complete(self) -> None:
        self.remaining = ZERO
        self.status = SegmentStatus.COMPLETED

    def copy(self) -> "Segment":
        return Segment(
            id=self.id,
            label=self.label,
            original=self.original,
            remaining=self.remaining,
            status=self.status,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "minutes": self.remaining.minutes,
            "seconds": self.remaining.seconds,
            "status": self.status.value,
            "original_minutes": self.original.minutes,
            "original_seconds": self.original.seconds,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Segment":
        try:
            original = Duration(
                int(data["original_minutes"]), int(data["original_seconds"])
            )
            remaining = Duration(int(data["minutes"]), int(data["seconds"]))
            status = SegmentStatus(data["status"])
            segment_id = str(data["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SnapshotError(f"bad segment entry: {data!r}") from exc
        if min(*original, *remaining) < 0:
            raise SnapshotError(f"negative duration in segment {segment_id}")
        if remaining.total_seconds > original.total_seconds:
            raise SnapshotError(f"segment {segment_id} has more time left than its length")
        return cls(
            id=segment_id,
            label=str(data.get("label") or ""),
            original=original,
            remaining=remaining,
            status=status,
        )


# ── session ───────────────────────────────────────────────────────────────


@dataclass
class Session:
    """Ordered segments plus the engine's position and running flag.

    ``started_at`` is informational (elapsed-time logging and the
    snapshot).  Background recovery measures elapsed time from the stored
    background timestamp instead, never from ``started_at``.
    """

    segments: list[Segment] = field(default_factory=list)
    current_index: int = -1
    is_running: bool = False
    started_at: float | None = None
    scheduled_signal_ids: list[str | None] = field(default_factory=list)

    @classmethod
    def with_default_segment(cls, duration: Duration = DEFAULT_DURATION) -> "Session":
        return cls(segments=[Segment(original=duration)])

    # ── queries ───────────────────────────────────────────────────────

    @property
    def running_segment(self) -> Segment | None:
        if 0 <= self.current_index < len(self.segments):
            return self.segments[self.current_index]
        return None

    def find(self, segment_id: str) -> Segment | None:
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        return None

    def is_startable(self) -> bool:
        """True when there is at least one segment and none is 0:00."""
        return bool(self.segments) and all(
            s.total_seconds > 0 for s in self.segments
        )

    # ── mutation helpers ──────────────────────────────────────────────

    def reset_to_baseline(self) -> None:
        """Back to the pending baseline used after stop."""
        for segment in self.segments:
            segment.reset()
        self.current_index = -1
        self.is_running = False
        self.started_at = None
        self.scheduled_signal_ids = []

    def mark_finished(self) -> None:
        """Every segment done; nothing is running any more."""
        for segment in self.segments:
            segment.complete()
        self.current_index = -1
        self.is_running = False

    # ── copies & snapshots ────────────────────────────────────────────

    def copy(self) -> "Session":
        return Session(
            segments=[s.copy() for s in self.segments],
            current_index=self.current_index,
            is_running=self.is_running,
            started_at=self.started_at,
            scheduled_signal_ids=list(self.scheduled_signal_ids),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timers": [s.to_dict() for s in self.segments],
            "current_timer_index": self.current_index,
            "is_running": self.is_running,
            "timer_start_time": self.started_at,
            "scheduled_notifications": list(self.scheduled_signal_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        if not isinstance(data, dict):
            raise SnapshotError("snapshot is not an object")
        raw_segments = data.get("timers")
        if not isinstance(raw_segments, list):
            raise SnapshotError("snapshot has no segment list")
        segments = [Segment.from_dict(item) for item in raw_segments]

        try:
            index = int(data.get("current_timer_index", -1))
        except (TypeError, ValueError) as exc:
            raise SnapshotError("bad current index") from exc
        if index != -1 and not 0 <= index < len(segments):
            raise SnapshotError(f"current index {index} out of range")

        is_running = bool(data.get("is_running", False))
        running = [i for i, s in enumerate(segments) if s.status is SegmentStatus.RUNNING]
        if is_running and running != [index]:
            raise SnapshotError("running flag disagrees with segment states")
        if not is_running and running:
            raise SnapshotError("idle snapshot has a running segment")

        started_at = data.get("timer_start_time")
        if started_at is not None:
            try:
                started_at = float(started_at)
            except (TypeError, ValueError) as exc:
                raise SnapshotError("bad start time") from exc
        handles = data.get("scheduled_notifications") or []
        if not isinstance(handles, list):
            raise SnapshotError("scheduled notifications must be a list")

        return cls(
            segments=segments,
            current_index=index,
            is_running=is_running,
            started_at=started_at,
            scheduled_signal_ids=[str(h) if h is not None else None for h in handles],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "Session":
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as exc:
            raise SnapshotError("snapshot is not valid JSON") from exc
        return cls.from_dict(data)
