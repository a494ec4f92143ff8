"""Unit tests for the vehicle availability ledger."""

from datetime import date

from rental_engine.domain import ledger
from rental_engine.domain.entities import Customer, Rental
from rental_engine.domain.enums import RentalStatus
from tests.conftest import make_vehicle


def _booked_vehicle():
    vehicle = make_vehicle()
    ledger.reserve(vehicle, date(2024, 1, 1), date(2024, 1, 10), rental_id=1)
    return vehicle


def _rental(username="alice", status=RentalStatus.ACTIVE, start=date(2024, 1, 1), end=date(2024, 1, 10)):
    return Rental(
        id=1, customer=Customer("Alice Tan"), vehicle_id=1,
        start_date=start, end_date=end, fee=0.0, username=username, status=status,
    )


class TestBufferedConflict:
    def test_free_vehicle_has_no_conflict(self):
        assert ledger.conflict(make_vehicle(), date(2024, 1, 1), date(2024, 1, 5)) is None

    def test_direct_overlap_conflicts(self):
        clash = ledger.conflict(_booked_vehicle(), date(2024, 1, 5), date(2024, 1, 6))
        assert clash is not None and clash.rental_id == 1

    def test_inside_buffer_after_end_conflicts(self):
        vehicle = _booked_vehicle()
        assert ledger.conflict(vehicle, date(2024, 1, 11), date(2024, 1, 15)) is not None
        assert ledger.conflict(vehicle, date(2024, 1, 12), date(2024, 1, 15)) is not None

    def test_just_past_buffer_is_free(self):
        vehicle = _booked_vehicle()
        assert ledger.conflict(vehicle, date(2024, 1, 13), date(2024, 1, 15)) is None

    def test_buffer_applies_before_start_too(self):
        vehicle = _booked_vehicle()
        assert ledger.conflict(vehicle, date(2023, 12, 25), date(2023, 12, 30)) is not None
        assert ledger.conflict(vehicle, date(2023, 12, 25), date(2023, 12, 29)) is None

    def test_zero_buffer_allows_adjacent(self):
        vehicle = _booked_vehicle()
        assert ledger.conflict(vehicle, date(2024, 1, 11), date(2024, 1, 15), buffer_days=0) is None

    def test_buffered_window(self):
        interval = _booked_vehicle().intervals[0]
        assert ledger.buffered_window(interval, 2) == (date(2023, 12, 30), date(2024, 1, 12))


class TestExtensionAwareConflict:
    def test_same_user_adjacent_booking_is_an_extension(self):
        rentals = [_rental()]
        assert ledger.is_extension(rentals, 1, date(2024, 1, 11), date(2024, 1, 15), "alice")
        assert ledger.is_extension(rentals, 1, date(2023, 12, 25), date(2023, 12, 31), "alice")

    def test_other_user_is_not_an_extension(self):
        assert not ledger.is_extension([_rental()], 1, date(2024, 1, 11), date(2024, 1, 15), "bob")

    def test_closed_rentals_do_not_count(self):
        rentals = [_rental(status=RentalStatus.RETURNED)]
        assert not ledger.is_extension(rentals, 1, date(2024, 1, 11), date(2024, 1, 15), "alice")

    def test_gap_is_not_an_extension(self):
        assert not ledger.is_extension([_rental()], 1, date(2024, 1, 12), date(2024, 1, 15), "alice")

    def test_extension_bypasses_buffer(self):
        vehicle = _booked_vehicle()
        rentals = [_rental()]
        assert ledger.extension_aware_conflict(
            vehicle, rentals, date(2024, 1, 11), date(2024, 1, 15), "alice"
        ) is None

    def test_stranger_with_same_dates_conflicts(self):
        vehicle = _booked_vehicle()
        rentals = [_rental()]
        assert ledger.extension_aware_conflict(
            vehicle, rentals, date(2024, 1, 11), date(2024, 1, 15), "bob"
        ) is not None

    def test_extension_still_blocked_by_third_party_booking(self):
        vehicle = _booked_vehicle()
        ledger.reserve(vehicle, date(2024, 1, 14), date(2024, 1, 16), rental_id=2)
        assert ledger.extension_aware_conflict(
            vehicle, [_rental()], date(2024, 1, 11), date(2024, 1, 15), "alice"
        ) is not None


class TestReserveRelease:
    def test_release_removes_interval(self):
        vehicle = _booked_vehicle()
        assert ledger.release(vehicle, date(2024, 1, 1), date(2024, 1, 10)) is True
        assert vehicle.intervals == []

    def test_release_twice_is_a_no_op(self):
        vehicle = _booked_vehicle()
        ledger.reserve(vehicle, date(2024, 2, 1), date(2024, 2, 3), rental_id=2)
        ledger.release(vehicle, date(2024, 1, 1), date(2024, 1, 10))
        after_first = list(vehicle.intervals)

        assert ledger.release(vehicle, date(2024, 1, 1), date(2024, 1, 10)) is False
        assert vehicle.intervals == after_first

    def test_future_booking(self):
        vehicle = _booked_vehicle()
        assert ledger.has_future_booking(vehicle, date(2024, 1, 1))
        assert not ledger.has_future_booking(vehicle, date(2024, 1, 2))

    def test_unavailable_periods_sorted_and_buffered(self):
        vehicle = make_vehicle()
        ledger.reserve(vehicle, date(2024, 3, 1), date(2024, 3, 2))
        ledger.reserve(vehicle, date(2024, 1, 1), date(2024, 1, 10))
        assert ledger.unavailable_periods(vehicle, 2) == [
            (date(2023, 12, 30), date(2024, 1, 12)),
            (date(2024, 2, 28), date(2024, 3, 4)),
        ]
