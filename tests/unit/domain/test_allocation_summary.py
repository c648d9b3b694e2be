"""Tests for the allocation summary projection."""

from datetime import date
from decimal import Decimal

import pytest

from tms_core.domain.entities.assignment import Assignment
from tms_core.domain.entities.order import Order
from tms_core.domain.policies.allocation_summary import summarize

ORDER = Order(
    id=1, tenant_id=1,
    loading_date=date(2026, 1, 5), unloading_date=date(2026, 1, 10),
    price_net=Decimal("2000.00"), currency="PLN",
)


def _a(aid, share, start, end=None, amount=None, active=True) -> Assignment:
    return Assignment(
        id=aid, tenant_id=1, order_id=1, driver_id=aid,
        start_date=start, end_date=end, revenue_share=share,
        allocated_amount=amount, is_active=active,
    )


def d(day: int) -> date:
    return date(2026, 1, day)


def test_empty_order():
    s = summarize([], ORDER, as_of=d(5))
    assert s.total == 0
    assert s.active_count == 0
    assert s.completed_count == 0
    assert s.total_revenue_share == 0.0
    assert s.remaining_share == 1.0
    assert s.total_allocated == Decimal("0.00")
    assert s.order_price == Decimal("2000.00")
    assert s.currency == "PLN"


def test_counts_and_money():
    assignments = [
        _a(1, 0.6, d(5), d(6), amount=Decimal("1200.00")),
        _a(2, 0.4, d(5), amount=Decimal("800.00")),
        _a(3, 0.6, d(7), amount=Decimal("1200.00")),
    ]
    s = summarize(assignments, ORDER, as_of=d(5))
    assert s.total == 3
    assert s.active_count == 2
    assert s.completed_count == 1
    assert s.total_allocated == Decimal("3200.00")


def test_all_open_and_started_equals_plain_sum():
    s = summarize([_a(1, 0.6, d(5)), _a(2, 0.4, d(5))], ORDER, as_of=d(6))
    assert s.total_revenue_share == pytest.approx(1.0)
    assert s.remaining_share == 0.0


def test_ended_assignment_still_counts_while_it_overlaps():
    """A naive sum of open shares would report 0.6 remaining on the 5th."""
    assignments = [_a(1, 0.6, d(5), d(6)), _a(2, 0.4, d(5))]
    on_fifth = summarize(assignments, ORDER, as_of=d(5))
    assert on_fifth.total_revenue_share == pytest.approx(1.0)
    assert on_fifth.remaining_share == 0.0

    on_seventh = summarize(assignments, ORDER, as_of=d(7))
    assert on_seventh.total_revenue_share == pytest.approx(0.4)
    assert on_seventh.remaining_share == pytest.approx(0.6)


def test_future_assignment_counts_from_its_start():
    s = summarize([_a(1, 0.3, d(9))], ORDER, as_of=d(5))
    assert s.total_revenue_share == pytest.approx(0.3)


def test_as_of_is_clamped_into_order_window():
    assignments = [_a(1, 0.6, d(5), d(6)), _a(2, 0.4, d(5))]
    before = summarize(assignments, ORDER, as_of=date(2025, 12, 1))
    after = summarize(assignments, ORDER, as_of=date(2026, 3, 1))
    assert before.total_revenue_share == pytest.approx(1.0)
    assert after.total_revenue_share == pytest.approx(0.4)


def test_inactive_rows_are_listed_but_not_loaded():
    s = summarize([_a(1, 1.0, d(5), active=False)], ORDER, as_of=d(5))
    assert s.total == 1
    assert s.active_count == 0
    assert s.remaining_share == 1.0


def test_total_allocated_rounded_to_currency():
    order = Order(
        id=2, tenant_id=1, loading_date=d(5), unloading_date=d(10),
        price_net=Decimal("1000"), currency="JPY",
    )
    s = summarize([_a(1, 0.5, d(5), amount=Decimal("500"))], order, as_of=d(5))
    assert str(s.total_allocated) == "500"
