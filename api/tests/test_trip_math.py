from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services import trip_math


def _expense(category, cost):
    return SimpleNamespace(category=category, cost=Decimal(cost))


def test_trip_days_count_both_ends():
    assert trip_math.days_between_inclusive(date(2024, 6, 15), date(2024, 7, 5)) == 21
    assert trip_math.days_between_inclusive(date(2024, 6, 15), date(2024, 6, 15)) == 1


def test_dates_take_precedence_over_day_count():
    assert trip_math.trip_days(date(2024, 6, 15), date(2024, 7, 5), 3) == 21
    assert trip_math.trip_days(None, None, 7) == 7
    assert trip_math.trip_days(date(2024, 6, 15), None, None) is None


def test_nights_exclude_checkout_day():
    assert trip_math.nights_between(date(2024, 6, 1), date(2024, 6, 4)) == 3


def test_day_numbers_are_one_based():
    start = date(2024, 6, 15)
    assert trip_math.day_number_for_date(start, date(2024, 6, 15)) == 1
    assert trip_math.day_number_for_date(start, date(2024, 6, 17)) == 3
    assert trip_math.date_for_day_number(start, 3) == date(2024, 6, 17)


def test_nightly_rate_rounds_to_cents():
    assert trip_math.nightly_rate(Decimal("300"), 3) == Decimal("100.00")
    assert f"{trip_math.nightly_rate(Decimal('300'), 3):.2f}" == "100.00"
    assert trip_math.nightly_rate(Decimal("100"), 3) == Decimal("33.33")
    assert trip_math.nightly_rate(Decimal("0.05"), 2) == Decimal("0.03")


def test_nightly_rate_needs_a_night():
    with pytest.raises(ValueError):
        trip_math.nightly_rate(Decimal("100"), 0)


def test_category_totals_list_every_category():
    totals = trip_math.category_totals([
        _expense("flights", "300"),
        _expense("food", "40.50"),
        _expense("food", "9.50"),
        _expense("souvenirs", "10"),
    ])

    assert list(totals) == list(trip_math.EXPENSE_CATEGORIES)
    assert totals["flights"] == Decimal("300")
    assert totals["food"] == Decimal("50.00")
    assert totals["other"] == Decimal("10")
    assert totals["activities"] == Decimal("0")


def test_category_shares_are_percentages():
    shares = {
        row["category"]: row
        for row in trip_math.category_shares([_expense("flights", "300"), _expense("food", "100")])
    }

    assert shares["flights"]["share"] == 75.0
    assert shares["food"]["share"] == 25.0
    assert shares["other"]["share"] == 0.0
    assert shares["flights"]["total"] == 300.0


def test_category_shares_of_empty_trip():
    assert all(row["share"] == 0.0 for row in trip_math.category_shares([]))


def test_trip_total_and_counts():
    expenses = [_expense("flights", "199.99"), _expense("accommodation", "80"), _expense("accommodation", "80")]

    assert trip_math.trip_total(expenses) == pytest.approx(359.99)
    assert trip_math.expense_counts(expenses) == {"flights": 1, "accommodation": 2, "activities": 0}
