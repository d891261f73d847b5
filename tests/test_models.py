"""Tests for the segment/session data model and snapshot parsing."""

import json

import pytest

from meditimer.timer.models import (
    DEFAULT_DURATION,
    Duration,
    Segment,
    SegmentStatus,
    Session,
    SnapshotError,
)


class TestDuration:

    def test_total_seconds(self):
        assert Duration(2, 30).total_seconds == 150

    def test_from_seconds_borrows_into_minutes(self):
        assert Duration.from_seconds(119) == Duration(1, 59)

    def test_from_seconds_floors_negative_at_zero(self):
        assert Duration.from_seconds(-5) == Duration(0, 0)

    def test_clamped_pins_to_range(self):
        assert Duration.clamped(150, 75) == Duration(99, 59)
        assert Duration.clamped(-1, -1) == Duration(0, 0)

    def test_str(self):
        assert str(Duration(5, 3)) == "05:03"


class TestSegment:

    def test_defaults(self):
        s = Segment()
        assert s.original == DEFAULT_DURATION == Duration(5, 0)
        assert s.remaining == s.original
        assert s.status is SegmentStatus.PENDING
        assert s.label == ""

    def test_ids_unique(self):
        ids = {Segment().id for _ in range(50)}
        assert len(ids) == 50

    def test_equality_is_by_id(self):
        a = Segment(original=Duration(1, 0))
        b = a.copy()
        b.label = "different"
        assert a == b
        assert hash(a) == hash(b)
        assert a != Segment(original=Duration(1, 0))

    def test_complete_zeroes_remaining(self):
        s = Segment(original=Duration(0, 10))
        s.complete()
        assert s.remaining_seconds == 0
        assert s.status is SegmentStatus.COMPLETED

    def test_activate_restores_full_duration(self):
        s = Segment(original=Duration(0, 10), remaining=Duration(0, 3))
        s.activate()
        assert s.remaining == Duration(0, 10)
        assert s.status is SegmentStatus.RUNNING


class TestSession:

    def test_default_session(self):
        s = Session.with_default_segment()
        assert len(s.segments) == 1
        assert s.current_index == -1
        assert s.is_running is False
        assert s.running_segment is None

    def test_default_session_with_duration(self):
        s = Session.with_default_segment(Duration(0, 45))
        assert s.segments[0].original == Duration(0, 45)
        assert s.segments[0].remaining_seconds == 45

    def test_empty_session_not_startable(self):
        assert Session().is_startable() is False

    def test_zero_segment_not_startable(self):
        s = Session(segments=[Segment(), Segment(original=Duration(0, 0))])
        assert s.is_startable() is False

    def test_copy_is_independent(self):
        s = Session.with_default_segment()
        c = s.copy()
        c.segments[0].label = "changed"
        c.scheduled_signal_ids.append("x")
        assert s.segments[0].label == ""
        assert s.scheduled_signal_ids == []


class TestSnapshot:

    def _running(self) -> Session:
        a = Segment(label="breath", original=Duration(0, 30), remaining=Duration(0, 12),
                    status=SegmentStatus.RUNNING)
        b = Segment(original=Duration(1, 0))
        return Session(
            segments=[a, b], current_index=0, is_running=True,
            started_at=1_700_000_000.0, scheduled_signal_ids=["n1", None],
        )

    def test_json_round_trip_preserves_everything(self):
        original = self._running()
        restored = Session.from_json(original.to_json())
        assert restored.to_dict() == original.to_dict()

    def test_snapshot_keys(self):
        data = self._running().to_dict()
        assert set(data) == {
            "timers", "current_timer_index", "is_running",
            "timer_start_time", "scheduled_notifications",
        }
        assert data["timers"][0]["original_minutes"] == 0
        assert data["timers"][0]["seconds"] == 12

    def test_garbage_is_rejected(self):
        with pytest.raises(SnapshotError):
            Session.from_json("{not json")

    def test_non_object_rejected(self):
        with pytest.raises(SnapshotError):
            Session.from_json("[1, 2]")

    def test_missing_segment_field_rejected(self):
        data = self._running().to_dict()
        del data["timers"][0]["original_seconds"]
        with pytest.raises(SnapshotError):
            Session.from_json(json.dumps(data))

    def test_index_out_of_range_rejected(self):
        data = self._running().to_dict()
        data["current_timer_index"] = 5
        with pytest.raises(SnapshotError):
            Session.from_json(json.dumps(data))

    def test_running_flag_must_match_segment(self):
        data = self._running().to_dict()
        data["timers"][0]["status"] = "pending"
        with pytest.raises(SnapshotError):
            Session.from_json(json.dumps(data))

    def test_remaining_longer_than_original_rejected(self):
        data = self._running().to_dict()
        data["timers"][0]["minutes"] = 10
        with pytest.raises(SnapshotError):
            Session.from_json(json.dumps(data))

    def test_unknown_status_rejected(self):
        data = self._running().to_dict()
        data["timers"][1]["status"] = "paused"
        with pytest.raises(SnapshotError):
            Session.from_json(json.dumps(data))
