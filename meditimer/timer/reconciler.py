"""Fast-forward a session across time during which the clock was not ticking.

``reconcile`` is a pure fold over segment durations.  It never looks at
the wall clock and never touches its input: the same ``(snapshot,
elapsed)`` pair always produces the same session.

A remainder of exactly zero counts as a finished segment, matching
``SessionController._on_tick`` which completes a segment on the tick
that takes it to 0:00.  Ticking ``n`` times and reconciling once with
``elapsed=n`` therefore land on the same state.
"""

from __future__ import annotations

from .models import Duration, Session, SegmentStatus


def reconcile(snapshot: Session, elapsed: int) -> Session:
    """Return *snapshot* advanced by *elapsed* seconds.

    Segments that run out are marked completed and the next one picks up
    the overflow.  Running out of segments finishes the session
    (``current_index = -1``, ``is_running = False``, all completed).
    """
    session = snapshot.copy()
    elapsed = int(elapsed)
    current = session.running_segment
    if elapsed <= 0 or not session.is_running or current is None:
        return session

    index = session.current_index
    remainder = current.remaining_seconds - elapsed

    while remainder <= 0:
        session.segments[index].complete()
        index += 1
        if index >= len(session.segments):
            session.mark_finished()
            return session
        nxt = session.segments[index]
        nxt.activate()
        remainder += nxt.total_seconds

    landing = session.segments[index]
    landing.remaining = Duration.from_seconds(remainder)
    landing.status = SegmentStatus.RUNNING
    session.current_index = index
    return session


def completed_during(before: Session, after: Session) -> list[int]:
    """Indices that were not completed in *before* but are in *after*."""
    return [
        i
        for i, (old, new) in enumerate(zip(before.segments, after.segments))
        if old.status is not SegmentStatus.COMPLETED
        and new.status is SegmentStatus.COMPLETED
    ]
