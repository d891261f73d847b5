"""One out-of-process alert per segment boundary.

At session start every segment gets an alert armed at the cumulative
offset of its end from *now*::

    offsets = [d0, d0 + d1, d0 + d1 + d2, ...]

Submission and cancellation failures are logged and skipped.  The
handle list stays index-aligned with the segments; a failed submission
leaves ``None`` in its slot.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..ports import NotificationPayload, NotificationService
from .models import Segment

logger = logging.getLogger(__name__)


def cumulative_offsets(segments: Sequence[Segment]) -> list[int]:
    """Seconds from start until each segment ends."""
    offsets: list[int] = []
    total = 0
    for segment in segments:
        total += segment.total_seconds
        offsets.append(total)
    return offsets


class NotificationScheduler:
    """Arms and disarms segment-completion alerts on a NotificationService."""

    def __init__(self, service: NotificationService) -> None:
        self._service = service

    def request_permission(self) -> bool:
        try:
            return bool(self._service.request_permission())
        except Exception:
            logger.warning("Notification permission request failed", exc_info=True)
            return False

    def schedule(self, segments: Sequence[Segment]) -> list[str | None]:
        handles: list[str | None] = []
        for index, (segment, offset) in enumerate(
            zip(segments, cumulative_offsets(segments))
        ):
            payload = NotificationPayload(segment.id, index, segment.label)
            try:
                handle = self._service.schedule(offset, payload)
            except Exception:
                logger.warning(
                    "Failed to schedule notification for segment %s", segment.id,
                    exc_info=True,
                )
                handle = None
            else:
                logger.debug(
                    "Segment %d (%s) alert in %d s", index + 1,
                    segment.label or "unnamed", offset,
                )
            handles.append(handle)

        armed = sum(1 for h in handles if h is not None)
        logger.info("Scheduled %d notifications for %d segments", armed, len(segments))
        return handles

    def cancel(self, handle: str | None) -> bool:
        """Disarm one alert.  ``None`` (a failed slot) is a no-op."""
        if handle is None:
            return False
        try:
            self._service.cancel(handle)
        except Exception:
            logger.warning("Failed to cancel notification %s", handle, exc_info=True)
            return False
        return True

    def cancel_all(self, handles: Iterable[str | None]) -> int:
        """Disarm every alert; one failure does not stop the rest."""
        return sum(1 for handle in handles if self.cancel(handle))
