# barbershop/availability.py
"""
In-memory index of each barber's booked time.

For every barber the index keeps the half-open intervals of appointments that
are not cancelled, ordered by start time. Overlap checks bisect past every
interval that starts at or after the end of the candidate range, so only the
earlier intervals are examined.

The index is shared between request threads and guards its own state. It does
not serialize check-then-insert sequences; callers hold the barber lock for
that (see ``barbershop.locks``).
"""

import bisect
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .core import overlaps
from .errors import ConflictError, InvalidIntervalError
from .models import Appointment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Interval:
    appointment_id: int
    starts_at: datetime
    ends_at: datetime


def _start(interval: Interval) -> datetime:
    return interval.starts_at


class AvailabilityIndex:
    def __init__(self) -> None:
        self._by_barber: Dict[int, List[Interval]] = {}
        self._owner: Dict[int, int] = {}  # appointment id -> barber id
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._owner)

    def __contains__(self, appointment_id: int) -> bool:
        with self._lock:
            return appointment_id in self._owner

    def _find_conflict(
        self, barber_id: int, start: datetime, end: datetime, exclude: Optional[int]
    ) -> Optional[Interval]:
        intervals = self._by_barber.get(barber_id, [])
        # Nothing starting at or after `end` can overlap [start, end).
        upper = bisect.bisect_left(intervals, end, key=_start)
        for interval in reversed(intervals[:upper]):
            if interval.appointment_id == exclude:
                continue
            if overlaps(interval.starts_at, interval.ends_at, start, end):
                return interval
        return None

    def has_conflict(
        self,
        barber_id: int,
        start: datetime,
        end: datetime,
        exclude: Optional[int] = None,
    ) -> bool:
        """True if a booked interval of ``barber_id`` overlaps [start, end)."""
        with self._lock:
            return self._find_conflict(barber_id, start, end, exclude) is not None

    def insert(self, appointment: Appointment, replacing: Optional[int] = None) -> None:
        """
        Add ``appointment``'s interval.

        ``replacing`` names an appointment whose interval is ignored for the
        conflict check and dropped on success; a reschedule passes the
        appointment's own id.
        """
        if appointment.ends_at <= appointment.starts_at:
            raise InvalidIntervalError("Appointment must end after it starts")

        with self._lock:
            clash = self._find_conflict(
                appointment.barber_id, appointment.starts_at, appointment.ends_at, replacing
            )
            if clash is not None:
                raise ConflictError(
                    f"Barber {appointment.barber_id} is already booked from "
                    f"{clash.starts_at:%Y-%m-%d %H:%M} to {clash.ends_at:%H:%M}"
                )
            if replacing is not None:
                self._discard(replacing)
            self._discard(appointment.id)
            self._add(appointment)

    def remove(self, appointment_id: int) -> None:
        """Drop an appointment's interval. Unknown ids are ignored."""
        with self._lock:
            self._discard(appointment_id)

    def rebuild(self, appointments: Iterable[Appointment]) -> int:
        """
        Replace the index contents with ``appointments``.

        Rows are loaded even when they overlap each other, since they are
        already committed; each overlap is logged so it can be cleaned up.
        """
        with self._lock:
            self._by_barber.clear()
            self._owner.clear()
            for appointment in appointments:
                clash = self._find_conflict(
                    appointment.barber_id, appointment.starts_at, appointment.ends_at, None
                )
                if clash is not None:
                    logger.warning(
                        "Stored appointments %s and %s overlap for barber %s",
                        clash.appointment_id,
                        appointment.id,
                        appointment.barber_id,
                    )
                self._discard(appointment.id)
                self._add(appointment)
            loaded = len(self._owner)
        logger.info("Availability index rebuilt with %d appointments", loaded)
        return loaded

    def intervals(self, barber_id: int) -> List[Interval]:
        with self._lock:
            return list(self._by_barber.get(barber_id, []))

    def _add(self, appointment: Appointment) -> None:
        interval = Interval(appointment.id, appointment.starts_at, appointment.ends_at)
        bisect.insort(self._by_barber.setdefault(appointment.barber_id, []), interval, key=_start)
        self._owner[appointment.id] = appointment.barber_id

    def _discard(self, appointment_id: Optional[int]) -> None:
        barber_id = self._owner.pop(appointment_id, None)
        if barber_id is None:
            return
        intervals = self._by_barber[barber_id]
        intervals[:] = [i for i in intervals if i.appointment_id != appointment_id]
        if not intervals:
            del self._by_barber[barber_id]
