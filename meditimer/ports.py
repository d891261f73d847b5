"""Interfaces for the collaborators the session controller depends on.

Concrete implementations live in ``database`` (key-value store),
``notifications``, ``wakelock`` and ``audio.sounds``.  Tests substitute
in-memory fakes.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Protocol


# Zero-argument completion signal.  Returns False when it could not play.
Chime = Callable[[], bool]


class NotificationPayload(NamedTuple):
    """What a scheduled alert needs to describe the segment it is for."""

    segment_id: str
    segment_index: int
    label: str


class KeyValueStore(Protocol):
    """Durable string storage that survives the process being suspended."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    def remove(self, key: str) -> None:
        """Delete *key*.  Removing a missing key is not an error."""


class NotificationService(Protocol):
    """Schedules alerts that fire even when the engine is not ticking."""

    def request_permission(self) -> bool:
        """Return True when alerts may be scheduled."""

    def schedule(self, delay_seconds: int, payload: NotificationPayload) -> str:
        """Arm an alert *delay_seconds* from now and return its handle."""

    def cancel(self, handle: str) -> None:
        """Disarm a previously scheduled alert."""


class WakeLock(Protocol):
    """Keeps the host awake.  Both calls are idempotent."""

    def acquire(self) -> bool:
        ...

    def release(self) -> bool:
        ...
