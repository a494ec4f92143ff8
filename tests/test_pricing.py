"""Unit tests for the rental fee calculator."""

from datetime import date, timedelta

import pytest

from rental_engine.domain.entities import Customer, Rental
from rental_engine.domain.pricing import FeeCalculator, discount_for, rental_days
from tests.conftest import make_vehicle

JAN_1 = date(2024, 1, 1)


def _rental(start: date, end: date, insurance: bool = True) -> Rental:
    return Rental(
        id=1, customer=Customer("Alice Tan"), vehicle_id=1,
        start_date=start, end_date=end, fee=0.0, insurance=insurance,
    )


class TestQuote:
    def test_days_are_inclusive(self):
        assert rental_days(JAN_1, JAN_1) == 1
        assert rental_days(JAN_1, date(2024, 1, 10)) == 10

    def test_plain_rate_below_any_tier(self):
        vehicle = make_vehicle()
        assert FeeCalculator.quote(vehicle, JAN_1, date(2024, 1, 3), False) == 300.0

    def test_ten_days_with_tier_and_insurance(self):
        vehicle = make_vehicle()
        # 100 x 10 x 0.9 x 1.05
        assert FeeCalculator.quote(vehicle, JAN_1, date(2024, 1, 10), True) == 945.00

    def test_insurance_ignored_when_not_requested(self):
        vehicle = make_vehicle()
        assert FeeCalculator.quote(vehicle, JAN_1, date(2024, 1, 10), False) == 900.00

    def test_result_rounded_to_cents(self):
        vehicle = make_vehicle(daily_rate=33.333, discount_tiers={})
        assert FeeCalculator.quote(vehicle, JAN_1, JAN_1, False) == 33.33


class TestDiscountTiers:
    def test_longest_qualifying_tier_wins(self):
        vehicle = make_vehicle(discount_tiers={7: 0.10, 30: 0.25, 14: 0.15})
        assert discount_for(vehicle, 6) == 0.0
        assert discount_for(vehicle, 7) == 0.10
        assert discount_for(vehicle, 20) == 0.15
        assert discount_for(vehicle, 45) == 0.25

    def test_no_tiers_means_no_discount(self):
        assert discount_for(make_vehicle(discount_tiers={}), 100) == 0.0

    def test_discount_is_non_decreasing_in_days(self):
        vehicle = make_vehicle(discount_tiers={3: 0.05, 7: 0.10, 30: 0.20})
        fractions = [discount_for(vehicle, d) for d in range(1, 60)]
        assert fractions == sorted(fractions)

    @pytest.mark.parametrize("insurance", [False, True])
    def test_quote_non_decreasing_with_fixed_tier(self, insurance):
        vehicle = make_vehicle(discount_tiers={7: 0.10})
        # within a fixed tier the price only grows with the length of stay
        fees = [
            FeeCalculator.quote(vehicle, JAN_1, JAN_1 + timedelta(days=d), insurance)
            for d in range(6, 40)
        ]
        assert fees == sorted(fees)


class TestReturnPricing:
    def test_on_time_return_has_no_late_fee(self):
        calc = FeeCalculator()
        assert calc.late_fee(date(2024, 1, 10), date(2024, 1, 10)) == 0.0
        assert calc.late_fee(date(2024, 1, 10), date(2024, 1, 8)) == 0.0

    def test_late_fee_is_flat_per_day(self):
        calc = FeeCalculator(late_penalty_per_day=25.0)
        assert calc.late_fee(date(2024, 1, 10), date(2024, 1, 13)) == 75.0

    def test_late_return_reprices_whole_stay(self):
        calc = FeeCalculator()
        vehicle = make_vehicle()
        rental = _rental(JAN_1, date(2024, 1, 10))
        # 12 days, 7-day tier still applies: 100 x 12 x 0.9 x 1.05
        assert calc.actual_fee(rental, vehicle, date(2024, 1, 12)) == 1134.00

    def test_late_return_can_reach_a_better_tier(self):
        calc = FeeCalculator()
        vehicle = make_vehicle(insurance_rate=0.0)
        rental = _rental(JAN_1, date(2024, 1, 5), insurance=False)
        # booked 5 days at full rate, returned after 8 days -> discounted
        assert calc.actual_fee(rental, vehicle, date(2024, 1, 8)) == 720.0

    def test_early_return_charges_the_booked_period(self):
        calc = FeeCalculator()
        vehicle = make_vehicle()
        rental = _rental(JAN_1, date(2024, 1, 10))
        assert calc.actual_fee(rental, vehicle, date(2024, 1, 4)) == 945.00
