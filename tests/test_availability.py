"""Tests for the in-memory availability index."""

from datetime import datetime

import pytest

from barbershop.availability import AvailabilityIndex
from barbershop.errors import ConflictError, InvalidIntervalError
from barbershop.models import Appointment


def t(hour, minute=0):
    return datetime(2025, 8, 31, hour, minute)


def appt(appointment_id, barber_id, start, end):
    return Appointment(
        id=appointment_id, barber_id=barber_id, client_id=1, starts_at=start, ends_at=end
    )


@pytest.fixture
def idx():
    index = AvailabilityIndex()
    index.insert(appt(1, 1, t(10), t(10, 40)))
    index.insert(appt(2, 1, t(12), t(13)))
    return index


class TestHasConflict:
    def test_overlap_detected(self, idx):
        assert idx.has_conflict(1, t(10, 30), t(11))

    def test_back_to_back_is_free(self, idx):
        assert not idx.has_conflict(1, t(10, 40), t(11, 10))
        assert not idx.has_conflict(1, t(9, 30), t(10))

    def test_gap_is_free(self, idx):
        assert not idx.has_conflict(1, t(11), t(12))

    def test_interval_spanning_several(self, idx):
        assert idx.has_conflict(1, t(9), t(14))

    def test_other_barber_unaffected(self, idx):
        assert not idx.has_conflict(2, t(10), t(10, 40))

    def test_exclude_skips_one_appointment(self, idx):
        assert not idx.has_conflict(1, t(10, 10), t(10, 50), exclude=1)
        assert idx.has_conflict(1, t(10, 10), t(12, 10), exclude=1)


class TestInsert:
    def test_conflicting_insert_rejected(self, idx):
        with pytest.raises(ConflictError):
            idx.insert(appt(3, 1, t(10, 30), t(11)))
        assert 3 not in idx

    def test_zero_length_rejected(self, idx):
        with pytest.raises(InvalidIntervalError):
            idx.insert(appt(3, 1, t(15), t(15)))

    def test_intervals_kept_in_start_order(self, idx):
        idx.insert(appt(3, 1, t(8), t(9)))
        idx.insert(appt(4, 1, t(11), t(11, 30)))
        starts = [i.starts_at for i in idx.intervals(1)]
        assert starts == sorted(starts)
        assert len(idx) == 4

    def test_replacing_moves_interval(self, idx):
        idx.insert(appt(1, 1, t(10, 20), t(11)), replacing=1)
        assert [(i.appointment_id, i.starts_at) for i in idx.intervals(1)] == [
            (1, t(10, 20)),
            (2, t(12)),
        ]
        assert not idx.has_conflict(1, t(10), t(10, 20))

    def test_replacing_still_checks_others(self, idx):
        with pytest.raises(ConflictError):
            idx.insert(appt(1, 1, t(11, 30), t(12, 30)), replacing=1)
        # The original interval is untouched after a failed move.
        assert idx.has_conflict(1, t(10), t(10, 40))


class TestRemove:
    def test_remove_frees_time(self, idx):
        idx.remove(1)
        assert not idx.has_conflict(1, t(10), t(10, 40))
        assert 1 not in idx

    def test_remove_is_idempotent(self, idx):
        idx.remove(1)
        idx.remove(1)
        idx.remove(999)
        assert len(idx) == 1


class TestRebuild:
    def test_rebuild_replaces_contents(self, idx):
        loaded = idx.rebuild([appt(7, 2, t(9), t(10))])
        assert loaded == 1
        assert idx.intervals(1) == []
        assert idx.has_conflict(2, t(9, 30), t(9, 45))

    def test_rebuild_keeps_overlapping_rows(self, caplog):
        index = AvailabilityIndex()
        with caplog.at_level("WARNING"):
            index.rebuild([appt(1, 1, t(9), t(12)), appt(2, 1, t(10), t(10, 30))])
        assert len(index) == 2
        assert "overlap" in caplog.text
        # The long appointment still blocks time after the short one ends.
        assert index.has_conflict(1, t(11), t(11, 30))
