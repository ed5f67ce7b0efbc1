"""
Trip Date & Budget Arithmetic

Calendar math for trip lengths, lodging nights and day numbers, plus the
per-category aggregation behind the budget chart. Day numbers are 1-based:
day 1 is the trip's start date.
"""
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from app.models.expense import EXPENSE_CATEGORIES

CENTS = Decimal("0.01")


def days_between_inclusive(start: date, end: date) -> int:
    """Number of trip days from start to end, counting both ends."""
    return (end - start).days + 1


def nights_between(check_in: date, check_out: date) -> int:
    """Nights of a stay; the check-out day is not a night."""
    return (check_out - check_in).days


def day_number_for_date(trip_start: date, day: date) -> int:
    return (day - trip_start).days + 1


def date_for_day_number(trip_start: date, day_number: int) -> date:
    return trip_start + timedelta(days=day_number - 1)


def nightly_rate(total_cost, nights: int) -> Decimal:
    """
    Split a stay's total cost evenly across its nights, rounded to cents.

    >>> nightly_rate(Decimal("300"), 3)
    Decimal('100.00')
    """
    if nights <= 0:
        raise ValueError("nights must be positive")
    return (Decimal(str(total_cost)) / nights).quantize(CENTS, rounding=ROUND_HALF_UP)


def trip_days(start: Optional[date], end: Optional[date], days: Optional[int]) -> Optional[int]:
    """Dates win over an explicit day count when both are known."""
    if start and end:
        return days_between_inclusive(start, end)
    return days


def trip_total(expenses: Iterable) -> float:
    return float(sum((Decimal(str(e.cost)) for e in expenses), Decimal("0")))


def category_totals(expenses: Iterable) -> Dict[str, Decimal]:
    """Sum of costs per category, every known category present, in display order."""
    totals: Dict[str, Decimal] = OrderedDict((c, Decimal("0")) for c in EXPENSE_CATEGORIES)
    for expense in expenses:
        category = expense.category if expense.category in totals else "other"
        totals[category] += Decimal(str(expense.cost))
    return totals


def category_shares(expenses: Iterable) -> List[dict]:
    """Category totals with each category's percentage of the whole trip."""
    totals = category_totals(expenses)
    grand_total = sum(totals.values(), Decimal("0"))
    breakdown = []
    for category, total in totals.items():
        share = (total / grand_total * 100) if grand_total else Decimal("0")
        breakdown.append({
            "category": category,
            "total": float(total),
            "share": float(share.quantize(CENTS, rounding=ROUND_HALF_UP)),
        })
    return breakdown


def expense_counts(expenses: Iterable) -> Dict[str, int]:
    counts = {"flights": 0, "accommodation": 0, "activities": 0}
    for expense in expenses:
        if expense.category in counts:
            counts[expense.category] += 1
    return counts
