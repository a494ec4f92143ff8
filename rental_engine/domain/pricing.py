"""
Rental Fee Calculator
=====================

Formula
-------
Fee = Daily_Rate x Days x (1 - Long_Term_Discount) x (1 + Insurance_Rate)

* **Days** is inclusive: a booking from the 1st to the 10th is 10 days.
* **Long_Term_Discount** = largest fraction among the vehicle's tiers whose
  minimum-day threshold is met (0 when none qualify).
* **Insurance_Rate** applies only when the customer opts in.

At return time the whole stay is re-priced up to ``max(today, end_date)``,
so a late return can move the booking into a better discount tier.  The
flat late penalty is tracked separately and never folded into the fee.

Complexity: O(number of discount tiers) per quote.
"""

from __future__ import annotations

from datetime import date

from .entities import Rental, Vehicle

DEFAULT_LATE_PENALTY = 20.0  # RM per day past the planned end date


def rental_days(start: date, end: date) -> int:
    return (end - start).days + 1


def discount_for(vehicle: Vehicle, days: int) -> float:
    """Step function of *days*: the best tier whose threshold is met."""
    best = 0.0
    for min_days, fraction in vehicle.discount_tiers.items():
        if days >= min_days and fraction > best:
            best = fraction
    return best


class FeeCalculator:
    """High-level API used by the reservation manager and the API layer."""

    def __init__(self, late_penalty_per_day: float = DEFAULT_LATE_PENALTY):
        self.late_penalty_per_day = late_penalty_per_day

    @staticmethod
    def quote(
        vehicle: Vehicle, start: date, end: date, wants_insurance: bool
    ) -> float:
        days = rental_days(start, end)
        fee = vehicle.daily_rate * days
        fee = fee * (1 - discount_for(vehicle, days))
        if wants_insurance:
            fee += fee * vehicle.insurance_rate
        return round(fee, 2)

    def late_fee(self, original_end: date, today: date) -> float:
        days_late = max(0, (today - original_end).days)
        return round(days_late * self.late_penalty_per_day, 2)

    def actual_fee(self, rental: Rental, vehicle: Vehicle, today: date) -> float:
        effective_end = max(today, rental.end_date)
        return self.quote(vehicle, rental.start_date, effective_end, rental.insurance)
