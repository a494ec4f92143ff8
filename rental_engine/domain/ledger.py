"""
Vehicle Availability Ledger
===========================

Each vehicle carries the booked intervals of its PENDING and ACTIVE
rentals.  The buffer is a policy of the *check*, never stored in the
interval itself.

Conflict rule
-------------
A candidate ``[start, end]`` is free of an existing ``[s, e]`` only if

    end < s - buffer   or   start > e + buffer

The default buffer of 2 days forces a service gap between different
customers.  A same-customer extension (adjacent or overlapping booking on
the same vehicle) is checked with buffer 0 instead, since the customer
keeps continuous custody.

Complexity
----------
Let k = intervals on the vehicle, n = rentals in the system.

* ``conflict``:            O(k)
* ``is_extension``:        O(n)
* ``reserve`` / ``release``: O(k)
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

from .entities import BookedInterval, Rental, Vehicle
from .enums import OPEN_RENTAL_STATUSES

DEFAULT_BUFFER_DAYS = 2


def buffered_window(
    interval: BookedInterval, buffer_days: int
) -> tuple[date, date]:
    pad = timedelta(days=buffer_days)
    return interval.start - pad, interval.end + pad


def overlaps(
    start: date, end: date, other_start: date, other_end: date
) -> bool:
    return not (end < other_start or start > other_end)


def conflict(
    vehicle: Vehicle,
    start: date,
    end: date,
    buffer_days: int = DEFAULT_BUFFER_DAYS,
) -> Optional[BookedInterval]:
    """Return the first interval whose buffered window touches the range."""
    for interval in vehicle.intervals:
        window_start, window_end = buffered_window(interval, buffer_days)
        if overlaps(start, end, window_start, window_end):
            return interval
    return None


def is_extension(
    rentals: Iterable[Rental],
    vehicle_id: int,
    start: date,
    end: date,
    username: str,
) -> bool:
    """True if *username* already holds an adjacent or overlapping booking."""
    one_day = timedelta(days=1)
    for rental in rentals:
        if (
            rental.vehicle_id != vehicle_id
            or rental.username != username
            or rental.status not in OPEN_RENTAL_STATUSES
        ):
            continue
        if (
            start == rental.end_date + one_day
            or end == rental.start_date - one_day
            or overlaps(start, end, rental.start_date, rental.end_date)
        ):
            return True
    return False


def extension_aware_conflict(
    vehicle: Vehicle,
    rentals: Iterable[Rental],
    start: date,
    end: date,
    username: str,
    buffer_days: int = DEFAULT_BUFFER_DAYS,
) -> Optional[BookedInterval]:
    """
    Same-user extensions bypass the buffer; everything else falls back to
    the normal buffered check.
    """
    if is_extension(rentals, vehicle.id, start, end, username):
        if conflict(vehicle, start, end, buffer_days=0) is None:
            return None
    return conflict(vehicle, start, end, buffer_days)


def reserve(
    vehicle: Vehicle, start: date, end: date, rental_id: Optional[int] = None
) -> BookedInterval:
    interval = BookedInterval(start, end, rental_id)
    vehicle.intervals.append(interval)
    return interval


def release(vehicle: Vehicle, start: date, end: date) -> bool:
    """Remove the ``[start, end]`` interval.  Missing intervals are a no-op."""
    before = len(vehicle.intervals)
    vehicle.intervals = [
        i for i in vehicle.intervals if not (i.start == start and i.end == end)
    ]
    return len(vehicle.intervals) != before


def has_future_booking(vehicle: Vehicle, today: date) -> bool:
    return any(i.start >= today for i in vehicle.intervals)


def unavailable_periods(
    vehicle: Vehicle, buffer_days: int = DEFAULT_BUFFER_DAYS
) -> list[tuple[date, date]]:
    """Buffered windows, ordered by start, for the schedule view."""
    return sorted(buffered_window(i, buffer_days) for i in vehicle.intervals)
