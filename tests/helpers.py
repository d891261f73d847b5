"""Shared test helpers for MediTimer."""

from meditimer.ports import NotificationPayload
from meditimer.timer.engine import SessionController


class SignalCollector:
    """Utility to capture pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Settable wall clock (epoch seconds)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeNotificationService:
    def __init__(self, *, granted: bool = True):
        self.granted = granted
        self.scheduled: dict[str, tuple[int, NotificationPayload]] = {}
        self.cancelled: list[str] = []
        self.fail_schedule_for: set[int] = set()
        self.fail_cancel_for: set[str] = set()
        self._next = 0

    def request_permission(self) -> bool:
        return self.granted

    def schedule(self, delay_seconds: int, payload: NotificationPayload) -> str:
        if payload.segment_index in self.fail_schedule_for:
            raise RuntimeError("scheduling refused")
        self._next += 1
        handle = f"n{self._next}"
        self.scheduled[handle] = (delay_seconds, payload)
        return handle

    def cancel(self, handle: str) -> None:
        if handle in self.fail_cancel_for:
            raise RuntimeError("cancel refused")
        self.cancelled.append(handle)

    @property
    def delays(self) -> list[int]:
        return [delay for delay, _ in self.scheduled.values()]


class FakeChime:
    def __init__(self, *, broken: bool = False):
        self.calls = 0
        self.broken = broken

    def __call__(self) -> bool:
        self.calls += 1
        if self.broken:
            raise RuntimeError("no audio device")
        return True


class FakeWakeLock:
    def __init__(self, *, broken: bool = False):
        self.held = False
        self.broken = broken
        self.acquired = 0
        self.released = 0

    def acquire(self) -> bool:
        self.acquired += 1
        if self.broken:
            raise OSError("caffeinate missing")
        self.held = True
        return True

    def release(self) -> bool:
        self.released += 1
        if self.broken:
            raise OSError("caffeinate missing")
        self.held = False
        return True


def set_durations(controller: SessionController, *durations: tuple[int, int]) -> list[str]:
    """Make the session exactly *durations* long; returns the segment ids."""
    ids = [s.id for s in controller.segments]
    for segment_id in ids[1:]:
        controller.remove_segment(segment_id)
    ids = ids[:1]
    while len(ids) < len(durations):
        ids.append(controller.add_segment().id)
    for segment_id, (minutes, seconds) in zip(ids, durations):
        controller.update_segment(segment_id, minutes=minutes, seconds=seconds)
    return ids


def run_ticks(controller: SessionController, n: int) -> None:
    for _ in range(n):
        controller._on_tick()
